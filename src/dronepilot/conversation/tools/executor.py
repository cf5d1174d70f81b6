"""
Action executor for the dronepilot conversation loop.

``DroneActionExecutor`` turns a validated ``DroneCommand`` into calls on the
``DroneClient`` (or the ``WeatherService`` for weather lookups) and returns the
short text the model sees as the action's result.
"""

from __future__ import annotations

import logging
from typing import Never, NoReturn, Protocol, runtime_checkable

from dronepilot.adapters.drone.client import DroneClient
from dronepilot.conversation.tools.catalog import (
    DroneCommand,
    GetWeatherInfo,
    Land,
    Move,
    SetCameraPitch,
    TakeOff,
    Turn,
    UnknownActionError,
)
from dronepilot.services.weather import WeatherService

logger = logging.getLogger(__name__)

SUCCESS = "success"


def _unhandled(command: Never) -> NoReturn:
    # Reached only when a command class joins the catalog but not this match.
    raise UnknownActionError(getattr(command, "tool_name", type(command).__name__))


@runtime_checkable
class ActionExecutor(Protocol):
    """Executes one validated command and returns its result text.

    Raises:
        DroneCommandError: If the device reports a failure.
        DroneTransportError: If the device cannot be reached.
        WeatherError: If a weather lookup fails in transport.
    """

    async def execute(self, command: DroneCommand) -> str: ...


class DroneActionExecutor:
    """Default executor backed by a drone client and a weather service."""

    def __init__(self, drone: DroneClient, weather: WeatherService) -> None:
        self.drone = drone
        self.weather = weather

    async def execute(self, command: DroneCommand) -> str:
        logger.info("Executing %s %s", command.tool_name, command.model_dump())
        match command:
            case TakeOff():
                await self.drone.take_off()
            case Land():
                await self.drone.land()
            case Move(direction=direction, distance=distance):
                await self.drone.move(direction, distance)
            case Turn(direction=direction, angle=angle):
                await self.drone.rotate(direction, angle)
            case SetCameraPitch(angle=angle):
                await self.drone.set_camera_pitch(angle)
            case GetWeatherInfo():
                return await self.weather.get_briefing()
            case _:
                _unhandled(command)
        return SUCCESS
