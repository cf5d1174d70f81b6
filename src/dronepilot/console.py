"""Line-based operator console for the drone conversation loop."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Callable, TextIO

from dronepilot.conversation.providers import ProposedAction

logger = logging.getLogger(__name__)

ReadLine = Callable[[str], str]


class OperatorConsole:
    """Reads operator input and echoes model output on a terminal.

    Blocking reads run in a worker thread so the event loop remains the
    single thread of control while it waits.
    """

    def __init__(self, read_line: ReadLine = input, out: TextIO | None = None) -> None:
        self._read_line = read_line
        self._out = out or sys.stdout

    async def ask(self, prompt: str) -> str:
        """Return the operator's answer to *prompt* (``""`` on end of input)."""
        try:
            return await asyncio.to_thread(self._read_line, prompt)
        except EOFError:
            logger.debug("Operator input closed while waiting on %r", prompt)
            return ""

    async def wait_ready(self) -> None:
        """Block until the operator presses Enter.

        Raises:
            EOFError: If operator input is closed; the session cannot go on.
        """
        self._print("Waiting for operator ready...")
        await asyncio.to_thread(self._read_line, "Press Enter when ready: ")
        self._print("Continuing...")

    def show_message(self, text: str) -> None:
        self._print(f"[model] {text}")

    def show_action(self, action: ProposedAction) -> None:
        self._print(f"[action] {action.name} {action.arguments}")

    def show_error(self, text: str) -> None:
        self._print(f"[error] {text}")

    def _print(self, text: str) -> None:
        print(text, file=self._out, flush=True)
