"""
dronepilot Conversation Package.

Implements the turn state machine that lets a completion service propose
drone actions, gates each one on operator approval, and folds the outcomes
back into the conversation.
"""

from dronepilot.conversation.approval import (
    ApprovalDecision,
    ApprovalGate,
    ConsoleApprovalGate,
    Override,
    Proceed,
)
from dronepilot.conversation.loop import ConversationDriver, DriverState
from dronepilot.conversation.providers import (
    CompletionResult,
    CompletionService,
    ProposedAction,
    ResponsesProvider,
    ToolSpec,
)
from dronepilot.conversation.session import ActionResult, ConversationState, SessionState
from dronepilot.conversation.snapshot import SituationSnapshot, SituationSnapshotBuilder

__all__ = [
    "ActionResult",
    "ApprovalDecision",
    "ApprovalGate",
    "CompletionResult",
    "CompletionService",
    "ConsoleApprovalGate",
    "ConversationDriver",
    "ConversationState",
    "DriverState",
    "Override",
    "Proceed",
    "ProposedAction",
    "ResponsesProvider",
    "SessionState",
    "SituationSnapshot",
    "SituationSnapshotBuilder",
    "ToolSpec",
]
