"""Model backend adapter using LiteLLM.

Translates ``LLMRequest`` into OpenAI-style chat completion calls and
normalizes the (streamed) responses into the runner's stream vocabulary.
"""

import logging
import uuid
from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from typing import Any

import litellm

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
    LLMResponse,
    LLMStreamEvent,
    StreamDone,
    TextChunk,
    ToolCallDelta,
    ToolCallStart,
    ToolCallStop,
    UsageUpdate,
)
from agent_runtime.agent.messages import Message, Role, TokenUsage, ToolCall
from agent_runtime.agent.metrics import record_agent_tokens
from agent_runtime.agent.tools import ToolDefinition

logger = logging.getLogger(__name__)

_API_ERRORS = (
    litellm.APIError,
    litellm.APIConnectionError,
    litellm.BadRequestError,
    litellm.NotFoundError,
    litellm.ServiceUnavailableError,
    litellm.InternalServerError,
    litellm.Timeout,
)


def _retry_after(exc: Exception) -> float | None:
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None) or {}
    value = headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


@contextmanager
def _translate_errors() -> Iterator[None]:
    """Map LiteLLM exceptions onto the runner's provider errors."""
    try:
        yield
    except litellm.RateLimitError as e:
        raise RateLimitedError(_retry_after(e)) from e
    except litellm.AuthenticationError as e:
        raise AuthenticationFailedError() from e
    except _API_ERRORS as e:
        raise ProviderError(str(e)) from e


def to_openai_message(message: Message) -> dict[str, Any]:
    """Convert a transcript message to an OpenAI chat message dict."""
    if message.role is Role.TOOL:
        payload: dict[str, Any] = {
            "role": "tool",
            "tool_call_id": message.tool_call_id,
            "content": message.content,
        }
        if message.name:
            payload["name"] = message.name
        return payload
    if message.role is Role.ASSISTANT and message.tool_calls:
        return {
            "role": "assistant",
            "content": message.content or None,
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments or "{}"},
                }
                for call in message.tool_calls
            ],
        }
    return {"role": str(message.role), "content": message.content}


def to_openai_tool(definition: ToolDefinition) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": definition.name,
            "description": definition.description,
            "parameters": definition.input_schema,
        },
    }


def _usage(raw: Any) -> TokenUsage | None:
    if not raw:
        return None
    return TokenUsage(
        input_tokens=getattr(raw, "prompt_tokens", 0) or 0,
        output_tokens=getattr(raw, "completion_tokens", 0) or 0,
    )


def _finish(raw: str | None) -> tuple[FinishReason, str | None]:
    reason = FinishReason.parse(raw)
    error = f"Model stopped with finish reason '{raw}'" if reason is FinishReason.ERROR else None
    return reason, error


class LiteLLMProvider:
    """Model backend backed by ``litellm.acompletion``.

    Works with any model LiteLLM can route to, directly or through a LiteLLM
    proxy (``base_url``).
    """

    def __init__(self, config: LlmConfig) -> None:
        self._config = config

    def __repr__(self) -> str:
        return f"LiteLLMProvider(model={self._config.model!r}, base_url={self._config.base_url!r})"

    @property
    def default_model(self) -> str:
        return self._config.model

    def _completion_kwargs(self, request: LLMRequest) -> dict[str, Any]:
        config = self._config
        kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": [to_openai_message(message) for message in request.messages],
        }
        if request.tools:
            kwargs["tools"] = [to_openai_tool(tool) for tool in request.tools]

        temperature = request.temperature if request.temperature is not None else config.temperature
        if temperature is not None:
            kwargs["temperature"] = temperature
        max_tokens = request.max_tokens if request.max_tokens is not None else config.max_tokens
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if request.top_p is not None:
            kwargs["top_p"] = request.top_p
        if request.stop_sequences:
            kwargs["stop"] = list(request.stop_sequences)

        if config.api_key:
            kwargs["api_key"] = config.api_key
        if config.base_url:
            kwargs["api_base"] = config.base_url
        return kwargs

    async def complete(self, request: LLMRequest) -> LLMResponse:
        """Send a non-streaming completion request.

        Raises:
            ProviderError: On backend failures (or a subclass for rate limits,
                authentication failures and unusable responses)
        """
        with _translate_errors():
            response = await litellm.acompletion(**self._completion_kwargs(request))

        if not response.choices:
            raise InvalidResponseError("response contained no choices")
        choice = response.choices[0]
        message = choice.message
        tool_calls = [
            ToolCall(id=call.id, name=call.function.name, arguments=call.function.arguments or "")
            for call in message.tool_calls or []
        ]
        usage = _usage(getattr(response, "usage", None))
        if usage is not None:
            record_agent_tokens(request.model, usage.input_tokens, usage.output_tokens)

        finish_reason, error = _finish(choice.finish_reason)
        return LLMResponse(
            content=message.content,
            tool_calls=tool_calls or None,
            finish_reason=finish_reason,
            usage=usage,
            error=error,
        )

    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamEvent]:
        """Send a streaming completion request and yield normalized events.

        OpenAI-style streams identify tool calls by index; the call id and
        name only arrive on the first chunk for an index. Every started call
        is stopped once the stream ends, followed by ``StreamDone``.
        """
        ids_by_index: dict[int, str] = {}
        finish_raw: str | None = None
        usage: TokenUsage | None = None

        with _translate_errors():
            response = await litellm.acompletion(
                **self._completion_kwargs(request),
                stream=True,
                stream_options={"include_usage": True},
            )
            async for chunk in response:
                chunk_usage = _usage(getattr(chunk, "usage", None))
                if chunk_usage is not None:
                    usage = chunk_usage
                if not chunk.choices:
                    continue

                choice = chunk.choices[0]
                if choice.finish_reason:
                    finish_raw = choice.finish_reason
                delta = choice.delta
                if delta is None:
                    continue
                if delta.content:
                    yield TextChunk(delta.content)
                for call in getattr(delta, "tool_calls", None) or []:
                    index = call.index or 0
                    function = call.function
                    if index not in ids_by_index:
                        ids_by_index[index] = call.id or f"call_{uuid.uuid4().hex[:24]}"
                        yield ToolCallStart(ids_by_index[index], (function and function.name) or "")
                    if function is not None and function.arguments:
                        yield ToolCallDelta(ids_by_index[index], function.arguments)

        for call_id in ids_by_index.values():
            yield ToolCallStop(call_id)
        if usage is not None:
            record_agent_tokens(request.model, usage.input_tokens, usage.output_tokens)
            yield UsageUpdate(output_tokens=usage.output_tokens, input_tokens=usage.input_tokens)

        finish_reason, error = _finish(finish_raw)
        logger.debug("Stream finished: %s (%d tool calls)", finish_reason, len(ids_by_index))
        yield StreamDone(
            LLMResponse(finish_reason=finish_reason, usage=usage, error=error),
        )
