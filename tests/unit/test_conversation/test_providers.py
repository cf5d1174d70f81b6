"""Unit tests for dronepilot.conversation.providers."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from dronepilot.conversation.providers import (
    CompletionResult,
    CompletionService,
    LLMAPIError,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    ProposedAction,
    ResponsesProvider,
    ToolSpec,
    UsageStats,
)


def _make_provider(create: AsyncMock, **kwargs) -> ResponsesProvider:
    with patch("dronepilot.conversation.providers.AsyncOpenAI") as mock_cls:
        mock_client = MagicMock()
        mock_client.responses.create = create
        mock_cls.return_value = mock_client
        return ResponsesProvider(**kwargs)


def _response(*output, response_id: str = "resp_1", usage=None) -> SimpleNamespace:
    return SimpleNamespace(id=response_id, output=list(output), usage=usage)


def _message(*texts: str) -> SimpleNamespace:
    return SimpleNamespace(
        type="message",
        content=[SimpleNamespace(type="output_text", text=t) for t in texts],
    )


def _function_call(call_id: str, name: str, arguments: str) -> SimpleNamespace:
    return SimpleNamespace(type="function_call", call_id=call_id, name=name, arguments=arguments)


_SNAPSHOT = {"role": "user", "content": [{"type": "input_text", "text": "Altitude: 0.0"}]}


# ---------------------------------------------------------------------------
# ToolSpec / ProposedAction
# ---------------------------------------------------------------------------


def test_tool_spec_to_openai_format() -> None:
    tool = ToolSpec(
        name="land",
        description="Land the drone.",
        parameters={"type": "object", "properties": {}, "required": []},
    )

    fmt = tool.to_openai_format()

    assert fmt == {
        "type": "function",
        "name": "land",
        "description": "Land the drone.",
        "parameters": {"type": "object", "properties": {}, "required": []},
        "strict": True,
    }


def test_tool_spec_non_strict() -> None:
    assert ToolSpec(name="x", description="y", strict=False).to_openai_format()["strict"] is False


def test_proposed_action_keeps_raw_arguments() -> None:
    action = ProposedAction(call_id="call_7", name="move", arguments='{"distance": 2}')
    assert action.to_input_item() == {
        "type": "function_call",
        "call_id": "call_7",
        "name": "move",
        "arguments": '{"distance": 2}',
    }


def test_completion_result_defaults() -> None:
    result = CompletionResult(response_id="resp_1")
    assert result.messages == []
    assert result.actions == []
    assert result.usage is None


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("exc_cls", [LLMRateLimitError, LLMConnectionError, LLMAPIError])
def test_llm_errors_inherit_llm_error(exc_cls) -> None:
    assert issubclass(exc_cls, LLMError)


def test_llm_api_error_status_code_defaults_to_none() -> None:
    assert LLMAPIError("boom").status_code is None


# ---------------------------------------------------------------------------
# ResponsesProvider: request building
# ---------------------------------------------------------------------------


def test_provider_implements_protocol() -> None:
    provider = _make_provider(AsyncMock())
    assert isinstance(provider, CompletionService)


def test_provider_stores_config() -> None:
    provider = _make_provider(
        AsyncMock(), model="gpt-4o", instructions="Fly.", base_url="http://localhost:1234/v1"
    )
    assert provider.model == "gpt-4o"
    assert provider.instructions == "Fly."
    assert provider.base_url == "http://localhost:1234/v1"


@pytest.mark.anyio
async def test_first_request_has_no_previous_response_id() -> None:
    create = AsyncMock(return_value=_response())
    provider = _make_provider(create, model="gpt-4o-mini", instructions="Fly.")
    tools = [ToolSpec(name="land", description="Land.")]

    await provider.respond([_SNAPSHOT], tools)

    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["instructions"] == "Fly."
    assert kwargs["input"] == [_SNAPSHOT]
    assert kwargs["tools"] == [tools[0].to_openai_format()]
    assert "previous_response_id" not in kwargs


@pytest.mark.anyio
async def test_continuation_token_is_sent_as_previous_response_id() -> None:
    create = AsyncMock(return_value=_response())
    provider = _make_provider(create)

    await provider.respond([_SNAPSHOT], [], previous_response_id="resp_0")

    kwargs = create.await_args.kwargs
    assert kwargs["previous_response_id"] == "resp_0"
    assert "tools" not in kwargs
    assert "instructions" not in kwargs


# ---------------------------------------------------------------------------
# ResponsesProvider: response parsing
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_parses_messages_and_actions_in_order() -> None:
    create = AsyncMock(
        return_value=_response(
            _message("Taking off ", "to look around."),
            _function_call("call_1", "take_off", "{}"),
            SimpleNamespace(type="reasoning"),
            _function_call("call_2", "move", '{"direction": "up", "distance": 2}'),
            response_id="resp_9",
            usage=SimpleNamespace(input_tokens=100, output_tokens=20, total_tokens=120),
        )
    )
    provider = _make_provider(create)

    result = await provider.respond([_SNAPSHOT], [])

    assert result.response_id == "resp_9"
    assert result.messages == ["Taking off to look around."]
    assert [a.call_id for a in result.actions] == ["call_1", "call_2"]
    assert result.actions[1] == ProposedAction(
        call_id="call_2", name="move", arguments='{"direction": "up", "distance": 2}'
    )
    assert result.usage == UsageStats(input_tokens=100, output_tokens=20, total_tokens=120)


@pytest.mark.anyio
async def test_empty_message_is_dropped() -> None:
    refusal = SimpleNamespace(type="refusal", refusal="no")
    create = AsyncMock(
        return_value=_response(SimpleNamespace(type="message", content=[refusal]))
    )
    provider = _make_provider(create)

    result = await provider.respond([_SNAPSHOT], [])

    assert result.messages == []
    assert result.actions == []
    assert result.usage is None


# ---------------------------------------------------------------------------
# ResponsesProvider: error handling
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_raises_llm_rate_limit_error_on_429() -> None:
    from openai import RateLimitError as OpenAIRateLimitError

    create = AsyncMock(
        side_effect=OpenAIRateLimitError(
            "rate limit", response=MagicMock(status_code=429), body={}
        )
    )
    provider = _make_provider(create)

    with pytest.raises(LLMRateLimitError):
        await provider.respond([_SNAPSHOT], [])


@pytest.mark.anyio
async def test_raises_llm_connection_error_on_network_failure() -> None:
    from openai import APIConnectionError as OpenAIConnectionError

    create = AsyncMock(side_effect=OpenAIConnectionError(request=MagicMock()))
    provider = _make_provider(create)

    with pytest.raises(LLMConnectionError):
        await provider.respond([_SNAPSHOT], [])


@pytest.mark.anyio
async def test_raises_llm_api_error_on_5xx() -> None:
    from openai import APIStatusError

    mock_response = MagicMock()
    mock_response.status_code = 500
    create = AsyncMock(
        side_effect=APIStatusError("Internal Server Error", response=mock_response, body={})
    )
    provider = _make_provider(create)

    with pytest.raises(LLMAPIError) as exc_info:
        await provider.respond([_SNAPSHOT], [])
    assert exc_info.value.status_code == 500
