"""HTTP adapter for the drone control server."""

from dronepilot.adapters.drone.client import (
    DroneClient,
    DroneCommandError,
    DroneError,
    DroneTransportError,
    MoveDirection,
    TurnDirection,
)

__all__ = [
    "DroneClient",
    "DroneCommandError",
    "DroneError",
    "DroneTransportError",
    "MoveDirection",
    "TurnDirection",
]
