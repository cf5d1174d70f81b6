"""
ConversationDriver: the turn state machine for dronepilot.

This module drives the model one sub-turn at a time: it opens each fresh turn
with a situation snapshot, submits the pending items on top of the stored
continuation token, walks the proposed actions strictly in order through
validation, the approval gate and the executor, and folds every outcome back
into the conversation before the next sub-turn.

The continuation token only advances after a sub-turn that proposed no
actions; until then every resubmission is built on the same prior context,
so the service always sees the tool calls it issued together with their
results.
"""

from __future__ import annotations

import enum
import logging
import time
from typing import Protocol

from dronepilot.adapters.drone.client import DroneCommandError, DroneError
from dronepilot.conversation.approval import ApprovalGate, Override
from dronepilot.conversation.providers import (
    CompletionResult,
    CompletionService,
    LLMError,
    ProposedAction,
)
from dronepilot.conversation.session import ActionResult, ConversationState, SessionState
from dronepilot.conversation.snapshot import SituationSnapshotBuilder, SnapshotError
from dronepilot.conversation.tools.catalog import ActionValidationError, ToolCatalog
from dronepilot.conversation.tools.executor import ActionExecutor
from dronepilot.services.weather import WeatherError

logger = logging.getLogger(__name__)

# Failures that abort the current turn; the operator retries via the ready cue.
TURN_ABORTING_ERRORS: tuple[type[Exception], ...] = (
    LLMError,
    DroneError,
    WeatherError,
    SnapshotError,
)


class DriverState(enum.Enum):
    AWAITING_SITUATION = "awaiting_situation"
    AWAITING_MODEL_CONTINUATION = "awaiting_model_continuation"


class Operator(Protocol):
    """Human I/O used by the driver besides approvals."""

    async def wait_ready(self) -> None: ...

    def show_message(self, text: str) -> None: ...

    def show_action(self, action: ProposedAction) -> None: ...

    def show_error(self, text: str) -> None: ...


class ConversationDriver:
    """Runs the snapshot → model → approve → execute → fold cycle.

    Typical usage::

        driver = ConversationDriver(
            completion=ResponsesProvider(model="gpt-4o-mini", instructions=prompt),
            catalog=DEFAULT_CATALOG,
            snapshots=SituationSnapshotBuilder(drone, weather),
            approval=ConsoleApprovalGate(console.ask),
            executor=DroneActionExecutor(drone, weather),
            operator=console,
        )
        await driver.run()

    Attributes:
        state: Current ``DriverState``.
        conversation: Pending items and continuation token.
        session: Per-conversation flags (weather briefing delivery).
    """

    def __init__(
        self,
        *,
        completion: CompletionService,
        catalog: ToolCatalog,
        snapshots: SituationSnapshotBuilder,
        approval: ApprovalGate,
        executor: ActionExecutor,
        operator: Operator,
        session: SessionState | None = None,
    ) -> None:
        self.completion = completion
        self.catalog = catalog
        self.snapshots = snapshots
        self.approval = approval
        self.executor = executor
        self.operator = operator
        self.session = session or SessionState()
        self.conversation = ConversationState()
        self.state = DriverState.AWAITING_SITUATION

    @property
    def continuation_token(self) -> str | None:
        return self.conversation.continuation_token

    def start_new_session(self) -> SessionState:
        """Forget the service-side context and start a new conversation.

        The next snapshot will carry the weather briefing again.
        """
        self.session = SessionState()
        self.conversation = ConversationState()
        self.state = DriverState.AWAITING_SITUATION
        logger.info("Started new session %s", self.session.session_id)
        return self.session

    async def run(self) -> None:
        """Drive turns until the process is stopped.

        Turn-aborting failures are reported and the driver goes back to
        waiting for the operator.

        Raises:
            UnknownActionError: If the model proposes a tool outside the catalog.
        """
        logger.info("Conversation driver started (session %s)", self.session.session_id)
        while True:
            try:
                await self.step()
            except TURN_ABORTING_ERRORS as exc:
                self._abort_turn(exc)

    async def step(self) -> DriverState:
        """Run a single iteration of the state machine and return the new state."""
        if self.state is DriverState.AWAITING_SITUATION:
            await self.operator.wait_ready()
            snapshot = await self.snapshots.build(self.session)
            self.conversation.reseed(snapshot.to_input_item())

        llm_t0 = time.monotonic()
        result: CompletionResult = await self.completion.respond(
            list(self.conversation.items),
            self.catalog.tools(),
            previous_response_id=self.conversation.continuation_token,
        )
        logger.debug(
            "Completion took %.3fs (response=%s, messages=%d, actions=%d, tokens=%s)",
            time.monotonic() - llm_t0,
            result.response_id,
            len(result.messages),
            len(result.actions),
            result.usage.total_tokens if result.usage else "n/a",
        )

        for message in result.messages:
            self.operator.show_message(message)

        # Strictly sequential: each action is settled before the next starts.
        for action in result.actions:
            await self._handle_action(action)

        if result.actions:
            self.state = DriverState.AWAITING_MODEL_CONTINUATION
        else:
            self.conversation.continuation_token = result.response_id
            self.state = DriverState.AWAITING_SITUATION
            logger.info("Situation resolved; continuation token is now %s", result.response_id)
        return self.state

    async def _handle_action(self, action: ProposedAction) -> None:
        self.operator.show_action(action)
        self.conversation.add_action(action)

        try:
            command = self.catalog.parse(action)
        except ActionValidationError as exc:
            logger.warning("Rejected %s (%s): %s", action.name, action.call_id, exc)
            self.conversation.fold(ActionResult.failure(action.call_id, str(exc)))
            return

        decision = await self.approval.approve(action)
        if isinstance(decision, Override):
            self.conversation.fold(ActionResult.override(action.call_id, decision.reason))
            return

        try:
            output = await self.executor.execute(command)
        except DroneCommandError as exc:
            logger.warning("Drone failed %s (%s): %s", action.name, action.call_id, exc)
            self.conversation.fold(ActionResult.failure(action.call_id, str(exc)))
            return

        self.conversation.fold(ActionResult.success(action.call_id, output))

    def _abort_turn(self, exc: Exception) -> None:
        logger.error("Turn aborted: %s: %s", type(exc).__name__, exc)
        self.operator.show_error(f"Turn aborted ({type(exc).__name__}): {exc}")
        self.conversation.discard_turn()
        self.state = DriverState.AWAITING_SITUATION
