"""
Tool catalog for the dronepilot conversation loop.

Every action the model may propose is a pydantic model with its tool name and
description attached as class variables.  ``DroneCommand`` is the closed union
of those models; the executor matches on it exhaustively, and the JSON schema
advertised to the model is generated from the same classes that validate the
model's payloads, so the contract and the validator cannot drift apart.

Typical usage::

    catalog = ToolCatalog(DEFAULT_COMMANDS)
    tools = catalog.tools()              # -> list[ToolSpec] for the request
    command = catalog.parse(action)      # -> Move(direction="forward", distance=2.0)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Sequence
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dronepilot.conversation.providers import ProposedAction, ToolSpec

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ActionError(Exception):
    """Base exception for proposed actions that cannot be turned into commands."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


class UnknownActionError(ActionError):
    """The model proposed a tool the catalog does not know.

    This means the advertised catalog and the dispatch table disagree, which is
    a contract violation rather than a runtime condition.
    """

    def __init__(self, name: str) -> None:
        super().__init__(name, f"Unknown action: {name!r}")


class ActionValidationError(ActionError):
    """The payload for a known tool does not satisfy its parameter schema."""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class Command(BaseModel):
    """Base class of every catalog command."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    tool_name: ClassVar[str]
    tool_description: ClassVar[str]
    strict: ClassVar[bool] = True


class TakeOff(Command):
    tool_name: ClassVar[str] = "take_off"
    tool_description: ClassVar[str] = (
        "Take off and hover at a low altitude. Must be called before any movement."
    )


class Land(Command):
    tool_name: ClassVar[str] = "land"
    tool_description: ClassVar[str] = "Land the drone at its current position."


class Move(Command):
    tool_name: ClassVar[str] = "move"
    tool_description: ClassVar[str] = (
        "Move the drone a distance in meters in a direction relative to its current heading."
    )

    direction: Literal["forward", "backward", "left", "right", "up", "down"] = Field(
        description="Direction relative to the drone's heading."
    )
    distance: float = Field(gt=0, description="Distance to travel, in meters.")


class Turn(Command):
    tool_name: ClassVar[str] = "turn"
    tool_description: ClassVar[str] = "Rotate the drone in place by an angle in degrees."

    direction: Literal["clockwise", "counterclockwise"] = Field(
        description="Rotation direction as seen from above."
    )
    angle: float = Field(gt=0, le=360, description="Angle to rotate, in degrees.")


class SetCameraPitch(Command):
    tool_name: ClassVar[str] = "set_camera_pitch"
    tool_description: ClassVar[str] = (
        "Tilt the camera gimbal downwards. 0 looks at the horizon, 90 looks straight down."
    )

    angle: float = Field(ge=0, le=90, description="Downward pitch, in degrees.")


class GetWeatherInfo(Command):
    tool_name: ClassVar[str] = "get_weather_info"
    tool_description: ClassVar[str] = "Get the weather info for the location of the drone."


DroneCommand = TakeOff | Land | Move | Turn | SetCameraPitch | GetWeatherInfo

DEFAULT_COMMANDS: tuple[type[Command], ...] = (
    TakeOff,
    Land,
    Move,
    Turn,
    SetCameraPitch,
    GetWeatherInfo,
)


# ---------------------------------------------------------------------------
# Schema helpers
# ---------------------------------------------------------------------------


def _strip_titles(schema: dict[str, Any]) -> dict[str, Any]:
    cleaned = {key: value for key, value in schema.items() if key != "title"}
    properties = cleaned.get("properties")
    if isinstance(properties, dict):
        cleaned["properties"] = {
            name: {key: value for key, value in prop.items() if key != "title"}
            for name, prop in properties.items()
        }
    return cleaned


def build_tool_spec(command: type[Command]) -> ToolSpec:
    """Derive the advertised ``ToolSpec`` from a command model."""
    schema = _strip_titles(command.model_json_schema())
    schema.setdefault("properties", {})
    schema.setdefault("required", [])
    schema["additionalProperties"] = False
    return ToolSpec(
        name=command.tool_name,
        description=command.tool_description,
        parameters=schema,
        strict=command.strict,
    )


def _summarise(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "arguments"
        problems.append(f"{location}: {error['msg']}")
    return "; ".join(problems)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ToolCatalog:
    """Fixed, ordered set of tools the model may propose.

    Raises:
        ValueError: If two commands share a tool name.
    """

    def __init__(self, commands: Sequence[type[Command]] = DEFAULT_COMMANDS) -> None:
        self._entries: dict[str, tuple[ToolSpec, type[Command]]] = {}
        for command in commands:
            if command.tool_name in self._entries:
                raise ValueError(f"Tool {command.tool_name!r} is declared twice.")
            self._entries[command.tool_name] = (build_tool_spec(command), command)

    def tools(self) -> list[ToolSpec]:
        """Return every ``ToolSpec`` in declaration order."""
        return [spec for spec, _command in self._entries.values()]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[type[Command]]:
        return iter(command for _spec, command in self._entries.values())

    def parse(self, action: ProposedAction) -> DroneCommand:
        """Validate *action* against its schema and return the typed command.

        Raises:
            UnknownActionError: If ``action.name`` is not in the catalog.
            ActionValidationError: If the payload is not valid JSON, not an
                object, misses a required field, carries a field outside a
                strict schema, or has a wrong-typed or out-of-range value.
        """
        entry = self._entries.get(action.name)
        if entry is None:
            raise UnknownActionError(action.name)
        spec, command = entry

        raw = action.arguments.strip() or "{}"
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ActionValidationError(
                action.name, f"arguments are not valid JSON: {exc.msg}"
            ) from exc
        if not isinstance(payload, dict):
            raise ActionValidationError(action.name, "arguments must be a JSON object")

        if not spec.strict:
            dropped = set(payload) - set(command.model_fields)
            if dropped:
                logger.debug("Dropping unknown fields %s for %r", sorted(dropped), action.name)
            payload = {key: value for key, value in payload.items() if key in command.model_fields}

        try:
            return command.model_validate(payload, strict=True)  # type: ignore[return-value]
        except ValidationError as exc:
            raise ActionValidationError(action.name, _summarise(exc)) from exc


DEFAULT_CATALOG = ToolCatalog(DEFAULT_COMMANDS)
