"""Unit tests for the LiteLLM model backend adapter.

``litellm.acompletion`` is patched; chunks and responses are simple
namespaces shaped like OpenAI chat completion objects.
"""

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import litellm
import pytest

from agent_runtime.agent.config import LlmConfig
from agent_runtime.agent.errors import (
    AuthenticationFailedError,
    InvalidResponseError,
    ProviderError,
    RateLimitedError,
)
from agent_runtime.agent.llm import (
    FinishReason,
    LLMRequest,
    StreamDone,
    TextChunk,
    ToolCallDelta,
    ToolCallStart,
    ToolCallStop,
    UsageUpdate,
)
from agent_runtime.agent.llm_client import LiteLLMProvider, to_openai_message, to_openai_tool
from agent_runtime.agent.messages import Message, TokenUsage, ToolCall
from agent_runtime.agent.tools import ToolDefinition


def _chunk(
    content: str | None = None,
    tool_calls: list[Any] | None = None,
    finish_reason: str | None = None,
    usage: Any = None,
    choices: bool = True,
) -> SimpleNamespace:
    delta = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)] if choices else [],
        usage=usage,
    )


def _call_delta(index: int, id: str | None = None, name: str | None = None, arguments: str | None = None):
    return SimpleNamespace(index=index, id=id, function=SimpleNamespace(name=name, arguments=arguments))


async def _aiter(items: list[Any]):
    for item in items:
        yield item


async def _collect(provider: LiteLLMProvider, request: LLMRequest) -> list[Any]:
    return [event async for event in provider.stream(request)]


@pytest.fixture
def provider() -> LiteLLMProvider:
    return LiteLLMProvider(LlmConfig(model="gpt-4o-mini", api_key="sk-test", base_url="http://proxy:4000"))


@pytest.fixture
def request_() -> LLMRequest:
    return LLMRequest(model="gpt-4o-mini", messages=[Message.system("Be brief."), Message.user("Hi")])


class TestMessageConversion:
    """Tests for transcript to OpenAI message conversion."""

    def test_plain_message(self):
        """System and user messages map to role/content."""
        assert to_openai_message(Message.user("Hi")) == {"role": "user", "content": "Hi"}

    def test_assistant_with_tool_calls(self):
        """Assistant tool calls are sent as function calls."""
        message = Message.assistant("", [ToolCall("c1", "add", "")])
        payload = to_openai_message(message)
        assert payload["content"] is None
        assert payload["tool_calls"] == [
            {"id": "c1", "type": "function", "function": {"name": "add", "arguments": "{}"}}
        ]

    def test_tool_message(self):
        """Tool results reference their call id."""
        payload = to_openai_message(Message.tool("c1", "4", name="add"))
        assert payload == {"role": "tool", "tool_call_id": "c1", "content": "4", "name": "add"}

    def test_tool_definition(self):
        """Tool definitions map to function tools."""
        definition = ToolDefinition("add", "Add", {"type": "object"})
        assert to_openai_tool(definition) == {
            "type": "function",
            "function": {"name": "add", "description": "Add", "parameters": {"type": "object"}},
        }


class TestCompletionKwargs:
    """Tests for request parameter mapping."""

    def test_connection_settings(self, provider: LiteLLMProvider, request_: LLMRequest):
        """API key and base URL are passed through."""
        kwargs = provider._completion_kwargs(request_)
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["api_base"] == "http://proxy:4000"
        assert "tools" not in kwargs
        assert "temperature" not in kwargs

    def test_request_overrides_config(self):
        """Request sampling parameters override the configured defaults."""
        provider = LiteLLMProvider(LlmConfig(model="m", temperature=0.2, max_tokens=100))
        request = LLMRequest(
            model="m", messages=[Message.user("x")], temperature=0.9, top_p=0.5, stop_sequences=["END"]
        )
        kwargs = provider._completion_kwargs(request)
        assert kwargs["temperature"] == 0.9
        assert kwargs["max_tokens"] == 100
        assert kwargs["top_p"] == 0.5
        assert kwargs["stop"] == ["END"]


class TestComplete:
    """Tests for LiteLLMProvider.complete()."""

    async def test_text_response(self, provider: LiteLLMProvider, request_: LLMRequest):
        """A text response is normalized."""
        response = SimpleNamespace(
            choices=[
                SimpleNamespace(
                    message=SimpleNamespace(content="Hello", tool_calls=None), finish_reason="stop"
                )
            ],
            usage=SimpleNamespace(prompt_tokens=5, completion_tokens=2),
        )
        with patch("litellm.acompletion", AsyncMock(return_value=response)):
            result = await provider.complete(request_)

        assert result.content == "Hello"
        assert result.tool_calls is None
        assert result.finish_reason is FinishReason.STOP
        assert result.usage == TokenUsage(5, 2)

    async def test_tool_call_response(self, provider: LiteLLMProvider, request_: LLMRequest):
        """Tool calls are normalized."""
        call = SimpleNamespace(id="c1", function=SimpleNamespace(name="add", arguments='{"a": 1}'))
        response = SimpleNamespace(
            choices=[
                SimpleNamespace(
                    message=SimpleNamespace(content=None, tool_calls=[call]), finish_reason="tool_calls"
                )
            ],
            usage=None,
        )
        with patch("litellm.acompletion", AsyncMock(return_value=response)):
            result = await provider.complete(request_)

        assert result.tool_calls == [ToolCall("c1", "add", '{"a": 1}')]
        assert result.finish_reason is FinishReason.TOOL_USE
        assert result.usage is None

    async def test_no_choices(self, provider: LiteLLMProvider, request_: LLMRequest):
        """A response without choices is invalid."""
        with patch("litellm.acompletion", AsyncMock(return_value=SimpleNamespace(choices=[], usage=None))):
            with pytest.raises(InvalidResponseError):
                await provider.complete(request_)


class TestStream:
    """Tests for LiteLLMProvider.stream()."""

    async def test_text_stream(self, provider: LiteLLMProvider, request_: LLMRequest):
        """Text deltas become TextChunks followed by usage and StreamDone."""
        chunks = [
            _chunk("Hel"),
            _chunk("lo"),
            _chunk(finish_reason="stop"),
            _chunk(choices=False, usage=SimpleNamespace(prompt_tokens=9, completion_tokens=2)),
        ]
        acompletion = AsyncMock(return_value=_aiter(chunks))
        with patch("litellm.acompletion", acompletion):
            events = await _collect(provider, request_)

        assert events[:2] == [TextChunk("Hel"), TextChunk("lo")]
        assert events[2] == UsageUpdate(output_tokens=2, input_tokens=9)
        assert isinstance(events[3], StreamDone)
        assert events[3].response.finish_reason is FinishReason.STOP
        assert events[3].response.usage == TokenUsage(9, 2)
        assert acompletion.call_args.kwargs["stream"] is True
        assert acompletion.call_args.kwargs["stream_options"] == {"include_usage": True}

    async def test_interleaved_tool_calls_by_index(self, provider: LiteLLMProvider, request_: LLMRequest):
        """Tool call deltas are keyed by index and mapped to their call id."""
        chunks = [
            _chunk(tool_calls=[_call_delta(0, "call_a", "search", "")]),
            _chunk(tool_calls=[_call_delta(1, "call_b", "fetch", '{"url"')]),
            _chunk(tool_calls=[_call_delta(0, arguments='{"q": "x"}')]),
            _chunk(tool_calls=[_call_delta(1, arguments=': "u"}')]),
            _chunk(finish_reason="tool_calls"),
        ]
        with patch("litellm.acompletion", AsyncMock(return_value=_aiter(chunks))):
            events = await _collect(provider, request_)

        assert events == [
            ToolCallStart("call_a", "search"),
            ToolCallStart("call_b", "fetch"),
            ToolCallDelta("call_b", '{"url"'),
            ToolCallDelta("call_a", '{"q": "x"}'),
            ToolCallDelta("call_b", ': "u"}'),
            ToolCallStop("call_a"),
            ToolCallStop("call_b"),
            events[-1],
        ]
        assert events[-1].response.finish_reason is FinishReason.TOOL_USE

    async def test_missing_call_id_generated(self, provider: LiteLLMProvider, request_: LLMRequest):
        """Calls without an id get a generated one."""
        chunks = [_chunk(tool_calls=[_call_delta(0, None, "add", "{}")]), _chunk(finish_reason="tool_calls")]
        with patch("litellm.acompletion", AsyncMock(return_value=_aiter(chunks))):
            events = await _collect(provider, request_)

        start = events[0]
        assert isinstance(start, ToolCallStart)
        assert start.id.startswith("call_")
        assert events[1] == ToolCallDelta(start.id, "{}")

    async def test_unknown_finish_reason_is_error(self, provider: LiteLLMProvider, request_: LLMRequest):
        """Unclassifiable finish reasons end the stream with an error."""
        with patch("litellm.acompletion", AsyncMock(return_value=_aiter([_chunk(finish_reason="content_filter")]))):
            events = await _collect(provider, request_)

        done = events[-1]
        assert done.response.finish_reason is FinishReason.ERROR
        assert done.response.error == "Model stopped with finish reason 'content_filter'"


class TestErrorTranslation:
    """Tests for LiteLLM exception mapping."""

    async def test_rate_limit(self, provider: LiteLLMProvider, request_: LLMRequest):
        """Rate limits carry the retry-after hint."""
        error = litellm.RateLimitError(
            message="slow down",
            llm_provider="openai",
            model="gpt-4o-mini",
            response=httpx.Response(
                429, headers={"retry-after": "7"}, request=httpx.Request("POST", "http://proxy:4000")
            ),
        )
        with patch("litellm.acompletion", AsyncMock(side_effect=error)):
            with pytest.raises(RateLimitedError) as exc_info:
                await provider.complete(request_)

        assert exc_info.value.retry_after == 7.0
        assert exc_info.value.__cause__ is error

    async def test_authentication(self, provider: LiteLLMProvider, request_: LLMRequest):
        """Authentication failures are mapped."""
        error = litellm.AuthenticationError(message="bad key", llm_provider="openai", model="gpt-4o-mini")
        with patch("litellm.acompletion", AsyncMock(side_effect=error)):
            with pytest.raises(AuthenticationFailedError, match="Authentication failed"):
                await _collect(provider, request_)

    async def test_connection_error(self, provider: LiteLLMProvider, request_: LLMRequest):
        """Other API errors become ProviderError."""
        error = litellm.APIConnectionError(message="refused", llm_provider="openai", model="gpt-4o-mini")
        with patch("litellm.acompletion", AsyncMock(side_effect=error)):
            with pytest.raises(ProviderError, match="refused"):
                await provider.complete(request_)
