"""
Tool catalog and executor for the dronepilot conversation loop.

``ToolCatalog`` advertises the available actions and validates proposed
payloads into typed commands; ``DroneActionExecutor`` carries those commands
out on the drone.

Quick-start example::

    from dronepilot.conversation.tools import DEFAULT_CATALOG, DroneActionExecutor

    command = DEFAULT_CATALOG.parse(action)
    output = await DroneActionExecutor(drone, weather).execute(command)
"""

from dronepilot.conversation.tools.catalog import (
    DEFAULT_CATALOG,
    DEFAULT_COMMANDS,
    ActionError,
    ActionValidationError,
    Command,
    DroneCommand,
    GetWeatherInfo,
    Land,
    Move,
    SetCameraPitch,
    TakeOff,
    ToolCatalog,
    Turn,
    UnknownActionError,
)
from dronepilot.conversation.tools.executor import ActionExecutor, DroneActionExecutor

__all__ = [
    "DEFAULT_CATALOG",
    "DEFAULT_COMMANDS",
    "ActionError",
    "ActionExecutor",
    "ActionValidationError",
    "Command",
    "DroneActionExecutor",
    "DroneCommand",
    "GetWeatherInfo",
    "Land",
    "Move",
    "SetCameraPitch",
    "TakeOff",
    "ToolCatalog",
    "Turn",
    "UnknownActionError",
]
