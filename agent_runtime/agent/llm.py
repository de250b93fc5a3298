"""Model backend request, response and normalized stream types.

Provider adapters translate vendor wire formats into these types. The runner
only ever sees an ``LLMRequest`` going out and a sequence of ``LLMStreamEvent``
coming back.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar, Self

from agent_runtime.agent.messages import Message, TokenUsage, ToolCall
from agent_runtime.agent.tools import ToolDefinition


class FinishReason(StrEnum):
    """Why the model stopped generating."""

    STOP = "stop"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"
    ERROR = "error"

    @classmethod
    def parse(cls, raw: str | None) -> Self:
        """Map a vendor stop reason onto a FinishReason.

        Unknown values map to ERROR, mirroring how the backend contract treats
        anything it cannot classify.
        """
        if raw is None:
            return cls.STOP
        return _FINISH_REASON_ALIASES.get(raw.lower(), cls.ERROR)


_FINISH_REASON_ALIASES: dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "end_turn": FinishReason.STOP,
    "tool_use": FinishReason.TOOL_USE,
    "tool_calls": FinishReason.TOOL_USE,
    "function_call": FinishReason.TOOL_USE,
    "max_tokens": FinishReason.MAX_TOKENS,
    "length": FinishReason.MAX_TOKENS,
    "stop_sequence": FinishReason.STOP_SEQUENCE,
    "error": FinishReason.ERROR,
}


@dataclass(frozen=True)
class LLMRequest:
    """A request to a model backend.

    Attributes:
        model: Model identifier
        messages: Conversation transcript, system message first
        tools: Tool definitions the model may call, None when there are none
        max_tokens: Optional output token cap
        temperature: Optional sampling temperature
        top_p: Optional nucleus sampling parameter
        stop_sequences: Optional stop sequences
    """

    model: str
    messages: list[Message]
    tools: list[ToolDefinition] | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    stop_sequences: list[str] | None = None


@dataclass(frozen=True)
class LLMResponse:
    """A complete (or end-of-stream) response from a model backend.

    Attributes:
        content: Final text content, if any
        tool_calls: Authoritative tool-call list, if the backend provides one
        finish_reason: Why generation stopped
        usage: Token usage, if reported
        error: Error message when finish_reason is ERROR
    """

    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    finish_reason: FinishReason = FinishReason.STOP
    usage: TokenUsage | None = None
    error: str | None = None


class LLMStreamEvent:
    """Base class for normalized stream events emitted by provider adapters."""

    kind: ClassVar[str] = "event"


@dataclass(frozen=True)
class TextChunk(LLMStreamEvent):
    kind: ClassVar[str] = "text_delta"

    text: str


@dataclass(frozen=True)
class ToolCallStart(LLMStreamEvent):
    kind: ClassVar[str] = "tool_call_start"

    id: str
    name: str


@dataclass(frozen=True)
class ToolCallDelta(LLMStreamEvent):
    kind: ClassVar[str] = "tool_call_delta"

    id: str
    fragment: str


@dataclass(frozen=True)
class ToolCallStop(LLMStreamEvent):
    kind: ClassVar[str] = "tool_call_stop"

    id: str


@dataclass(frozen=True)
class UsageUpdate(LLMStreamEvent):
    """Incremental usage: input tokens are reported once, output tokens add up."""

    kind: ClassVar[str] = "usage_update"

    output_tokens: int = 0
    input_tokens: int | None = None


@dataclass(frozen=True)
class StreamDone(LLMStreamEvent):
    kind: ClassVar[str] = "done"

    response: LLMResponse


class BaseLLMProvider(ABC):
    """Convenience base for providers without native streaming.

    Subclasses implement ``complete``; ``stream`` replays the complete response
    as a single text chunk followed by ``StreamDone``.
    """

    @property
    @abstractmethod
    def default_model(self) -> str: ...

    @abstractmethod
    async def complete(self, request: LLMRequest) -> LLMResponse: ...

    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamEvent]:
        response = await self.complete(request)
        if response.content:
            yield TextChunk(response.content)
        yield StreamDone(response)
