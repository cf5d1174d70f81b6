"""
Session and conversation state for the dronepilot driver.

``SessionState`` holds what must be remembered for the lifetime of one
conversation (its id and whether the weather briefing has been delivered).
``ConversationState`` holds the items of the sub-turn currently being built
and the continuation token naming everything the service has already seen.
Both are owned and mutated by ``ConversationDriver`` only.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Literal

from dronepilot.conversation.providers import ProposedAction

ActionOutcome = Literal["success", "override", "failure"]


@dataclass
class SessionState:
    """Per-conversation flags.

    Attributes:
        session_id: Identifier for log correlation.
        briefing_delivered: ``True`` once a snapshot carrying the weather
            briefing has been built for this session.
    """

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    briefing_delivered: bool = False


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one proposed action, correlated by ``call_id``."""

    call_id: str
    outcome: ActionOutcome
    output: str

    @classmethod
    def success(cls, call_id: str, output: str) -> ActionResult:
        return cls(call_id=call_id, outcome="success", output=output)

    @classmethod
    def override(cls, call_id: str, reason: str) -> ActionResult:
        return cls(call_id=call_id, outcome="override", output=reason)

    @classmethod
    def failure(cls, call_id: str, message: str) -> ActionResult:
        return cls(call_id=call_id, outcome="failure", output=f"Error: {message}")

    def to_input_item(self) -> dict[str, Any]:
        """Render as a ``function_call_output`` input item."""
        return {
            "type": "function_call_output",
            "call_id": self.call_id,
            "output": self.output,
        }


@dataclass
class ConversationState:
    """Items of the pending request plus the stored continuation token."""

    items: list[dict[str, Any]] = field(default_factory=list)
    continuation_token: str | None = None

    def reseed(self, snapshot_item: dict[str, Any]) -> None:
        """Drop the previous turn's items and start from a fresh snapshot."""
        self.items.clear()
        self.items.append(snapshot_item)

    def add_action(self, action: ProposedAction) -> None:
        self.items.append(action.to_input_item())

    def fold(self, result: ActionResult) -> None:
        self.items.append(result.to_input_item())

    def discard_turn(self) -> None:
        self.items.clear()
