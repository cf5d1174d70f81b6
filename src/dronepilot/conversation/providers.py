"""
Completion service abstractions for the dronepilot conversation package.

Defines the `CompletionService` Protocol so the `ConversationDriver` can work
with any backend that speaks the turn-based, incrementally continued
Responses protocol, without being tied to a specific SDK.

The concrete implementation, `ResponsesProvider`, uses
``openai.AsyncOpenAI().responses`` and maps the opaque continuation token onto
``previous_response_id``.

Also provides:
- Custom exception hierarchy for completion service errors.
- ``UsageStats`` for token usage reporting.
- The wire-level data types exchanged with the service: ``ToolSpec``,
  ``ProposedAction`` and ``CompletionResult``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from openai import APIConnectionError, APIStatusError, AsyncOpenAI, RateLimitError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Custom exception hierarchy
# ---------------------------------------------------------------------------


class LLMError(Exception):
    """Base exception for all completion service errors."""


class LLMRateLimitError(LLMError):
    """Raised when the service returns a rate-limit (429) response."""


class LLMConnectionError(LLMError):
    """Raised when the service endpoint cannot be reached."""


class LLMAPIError(LLMError):
    """Raised for other service errors (e.g., 5xx, authentication failures).

    Attributes:
        status_code: HTTP status code from the API, or ``None`` if unavailable.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Core data types
# ---------------------------------------------------------------------------


@dataclass
class UsageStats:
    """Token usage recorded for a single completion call."""

    input_tokens: int
    output_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class ToolSpec:
    """Describes an action the model may propose.

    Attributes:
        name: The tool's unique name (used by the model to invoke it).
        description: Natural-language description shown to the model.
        parameters: JSON Schema dict describing the accepted fields.
        strict: When ``True`` the service is asked to follow the schema
            exactly, and payloads carrying fields outside it are rejected.
    """

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)
    strict: bool = True

    def to_openai_format(self) -> dict[str, Any]:
        """Serialise to the Responses API function tool format."""
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
            "strict": self.strict,
        }


@dataclass(frozen=True)
class ProposedAction:
    """A tool invocation proposed by the model.

    Attributes:
        call_id: Correlation id assigned by the service.
        name: Name of the proposed tool.
        arguments: The raw JSON argument payload, exactly as sent.
    """

    call_id: str
    name: str
    arguments: str

    def to_input_item(self) -> dict[str, Any]:
        """Render as a ``function_call`` input item for the next request."""
        return {
            "type": "function_call",
            "call_id": self.call_id,
            "name": self.name,
            "arguments": self.arguments,
        }


@dataclass
class CompletionResult:
    """Result of a single completion call.

    Attributes:
        response_id: Continuation token representing all context up to and
            including this response.
        messages: Plain text messages, in output order.
        actions: Proposed actions, in output order.
        usage: Token usage for this call, or ``None`` if unavailable.
    """

    response_id: str
    messages: list[str] = field(default_factory=list)
    actions: list[ProposedAction] = field(default_factory=list)
    usage: UsageStats | None = None


# ---------------------------------------------------------------------------
# CompletionService Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class CompletionService(Protocol):
    """Protocol for completion backends used by ConversationDriver."""

    async def respond(
        self,
        items: list[dict[str, Any]],
        tools: list[ToolSpec],
        *,
        previous_response_id: str | None = None,
    ) -> CompletionResult:
        """Submit *items* on top of the context named by *previous_response_id*.

        Raises:
            LLMRateLimitError: If the API returns a 429 rate-limit response.
            LLMConnectionError: If the API endpoint cannot be reached.
            LLMAPIError: For other API-level failures.
        """
        ...


# ---------------------------------------------------------------------------
# Concrete provider implementation
# ---------------------------------------------------------------------------


class ResponsesProvider:
    """Completion service backed by the OpenAI Responses API.

    Attributes:
        model: The model identifier.
        instructions: System instructions sent with every request.
        base_url: Optional API base URL override.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        instructions: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
    ) -> None:
        self.model = model
        self.instructions = instructions
        self.base_url = base_url
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def respond(
        self,
        items: list[dict[str, Any]],
        tools: list[ToolSpec],
        *,
        previous_response_id: str | None = None,
    ) -> CompletionResult:
        """Call the Responses API and return a structured `CompletionResult`.

        Raises:
            LLMRateLimitError: If the API returns a 429 response.
            LLMConnectionError: If the API endpoint cannot be reached.
            LLMAPIError: For other API-level failures (e.g. 4xx/5xx).
        """
        kwargs: dict[str, Any] = {
            "model": self.model,
            "input": items,
        }
        if self.instructions:
            kwargs["instructions"] = self.instructions
        if tools:
            kwargs["tools"] = [t.to_openai_format() for t in tools]
        if previous_response_id:
            kwargs["previous_response_id"] = previous_response_id

        logger.debug(
            "Completion request: model=%s, items=%d, tools=%d, previous_response_id=%s",
            self.model,
            len(items),
            len(tools),
            previous_response_id,
        )

        try:
            response = await self._client.responses.create(**kwargs)
        except RateLimitError as exc:
            logger.warning("Completion rate limit exceeded: %s", exc)
            raise LLMRateLimitError(f"Rate limit exceeded: {exc}") from exc
        except APIConnectionError as exc:
            logger.error("Completion service connection failed: %s", exc)
            raise LLMConnectionError(f"Could not connect to completion service: {exc}") from exc
        except APIStatusError as exc:
            logger.error("Completion service error %d: %s", exc.status_code, exc)
            raise LLMAPIError(
                f"Completion service returned status {exc.status_code}: {exc}",
                status_code=exc.status_code,
            ) from exc

        messages: list[str] = []
        actions: list[ProposedAction] = []
        for item in response.output:
            if item.type == "function_call":
                actions.append(
                    ProposedAction(
                        call_id=item.call_id,
                        name=item.name,
                        arguments=item.arguments,
                    )
                )
            elif item.type == "message":
                text = "".join(
                    part.text for part in item.content if getattr(part, "type", None) == "output_text"
                )
                if text:
                    messages.append(text)
            else:
                logger.debug("Ignoring output item of type %r", item.type)

        usage: UsageStats | None = None
        if response.usage is not None:
            usage = UsageStats(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                total_tokens=response.usage.total_tokens,
            )

        logger.debug(
            "Completion response: id=%s, messages=%d, actions=%d, tokens=%s",
            response.id,
            len(messages),
            len(actions),
            usage.total_tokens if usage else "n/a",
        )

        return CompletionResult(
            response_id=response.id,
            messages=messages,
            actions=actions,
            usage=usage,
        )
