"""
Human approval gate for proposed actions.

Every action the model proposes must pass through an ``ApprovalGate`` before
it reaches the drone.  The gate fails closed: only the canonical affirmative
token counts as approval; any other answer, including silence, blocks the
action and becomes the reason reported back to the model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol, runtime_checkable

from dronepilot.conversation.providers import ProposedAction

logger = logging.getLogger(__name__)

NO_RESPONSE_REASON = "No response given."

# Async callable (prompt) -> line typed by the operator.
AskOperator = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class Proceed:
    """The operator approved the action."""


@dataclass(frozen=True)
class Override:
    """The operator blocked the action.

    Attributes:
        reason: The operator's literal answer, or ``NO_RESPONSE_REASON``.
    """

    reason: str


ApprovalDecision = Proceed | Override


@runtime_checkable
class ApprovalGate(Protocol):
    """Decides whether a proposed action may run."""

    async def approve(self, action: ProposedAction) -> ApprovalDecision: ...


class ConsoleApprovalGate:
    """Approval gate that asks a single operator on a line-based channel.

    Attributes:
        affirmative: The one answer that approves an action. Compared
            exactly; only the trailing line terminator is ignored.
    """

    def __init__(self, ask: AskOperator, affirmative: str = "y") -> None:
        if not affirmative or affirmative != affirmative.strip():
            raise ValueError("The affirmative token must be non-blank with no surrounding whitespace.")
        self._ask = ask
        self.affirmative = affirmative

    async def approve(self, action: ProposedAction) -> ApprovalDecision:
        answer = await self._ask(
            f"Run {action.name}? Type {self.affirmative!r} to approve, "
            "or give a reason to reject: "
        )
        decision = self.decide(answer)
        if isinstance(decision, Override):
            logger.warning("Operator overrode %s (%s): %r", action.name, action.call_id, decision.reason)
        else:
            logger.info("Operator approved %s (%s)", action.name, action.call_id)
        return decision

    def decide(self, answer: str | None) -> ApprovalDecision:
        """Map a raw operator answer onto a decision."""
        line = (answer or "").rstrip("\r\n")
        if not line:
            return Override(NO_RESPONSE_REASON)
        if line == self.affirmative:
            return Proceed()
        # Anything else, including case or spacing variants, blocks the action.
        return Override(line)
