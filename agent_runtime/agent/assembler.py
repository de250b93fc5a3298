"""Assemble one model turn from normalized stream events.

Text chunks are forwarded immediately; tool-call argument fragments are
buffered per call id (streams may interleave several calls) and materialized
into ``ToolCall`` objects when the turn ends.
"""

import logging
from collections.abc import AsyncIterable
from dataclasses import dataclass, field

from agent_runtime.agent.errors import InvalidResponseError
from agent_runtime.agent.events import TextDelta
from agent_runtime.agent.llm import (
    FinishReason,
    LLMStreamEvent,
    StreamDone,
    TextChunk,
    ToolCallDelta,
    ToolCallStart,
    ToolCallStop,
    UsageUpdate,
)
from agent_runtime.agent.messages import TokenUsage, ToolCall

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssembledTurn:
    """Outcome of one model round-trip.

    Attributes:
        text: Full response text, None when the model produced none
        tool_calls: Tool calls in the order they were started
        usage: Token usage, None when the backend reported none
        finish_reason: Why the model stopped
        error: Backend error message when finish_reason is ERROR
    """

    text: str | None
    tool_calls: list[ToolCall]
    usage: TokenUsage | None = None
    finish_reason: FinishReason = FinishReason.STOP
    error: str | None = None


@dataclass
class _ToolCallBuffer:
    id: str
    name: str
    fragments: list[str] = field(default_factory=list)
    closed: bool = False

    def to_tool_call(self) -> ToolCall:
        return ToolCall(id=self.id, name=self.name, arguments="".join(self.fragments))


class TurnAssembler:
    """Stateful reducer over a single turn's stream events.

    Args:
        strict: Raise InvalidResponseError for a delta whose call id was never
            started, instead of dropping it with a warning
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict
        self._text: list[str] = []
        # dicts keep insertion order, i.e. start order
        self._buffers: dict[str, _ToolCallBuffer] = {}
        self._input_tokens: int | None = None
        self._output_tokens = 0
        self._usage_seen = False
        self._done: StreamDone | None = None

    def feed(self, event: LLMStreamEvent) -> TextDelta | None:
        """Consume one event; returns a TextDelta to forward for text chunks."""
        match event:
            case TextChunk(text=text):
                if not text:
                    return None
                self._text.append(text)
                return TextDelta(text)
            case ToolCallStart(id=call_id, name=name):
                if call_id in self._buffers:
                    logger.debug("Ignoring duplicate start for tool call %s", call_id)
                    return None
                self._buffers[call_id] = _ToolCallBuffer(id=call_id, name=name)
            case ToolCallDelta(id=call_id, fragment=fragment):
                self._append_fragment(call_id, fragment)
            case ToolCallStop(id=call_id):
                buffer = self._buffers.get(call_id)
                if buffer is None:
                    logger.debug("Ignoring stop for unknown tool call %s", call_id)
                else:
                    buffer.closed = True
            case UsageUpdate(output_tokens=output_tokens, input_tokens=input_tokens):
                self._usage_seen = True
                if input_tokens is not None and self._input_tokens is None:
                    self._input_tokens = input_tokens
                self._output_tokens += output_tokens
            case StreamDone():
                self._done = event
            case _:
                logger.warning("Ignoring unknown stream event %r", event)
        return None

    def _append_fragment(self, call_id: str, fragment: str) -> None:
        buffer = self._buffers.get(call_id)
        if buffer is None:
            if self.strict:
                raise InvalidResponseError(f"Argument fragment for unknown tool call '{call_id}'")
            logger.warning("Dropping argument fragment for unknown tool call %s", call_id)
            return
        if buffer.closed:
            logger.debug("Ignoring fragment for closed tool call %s", call_id)
            return
        buffer.fragments.append(fragment)

    def finish(self) -> AssembledTurn:
        """Materialize the turn. Buffers never stopped are finalized as-is."""
        text = "".join(self._text)
        tool_calls = [buffer.to_tool_call() for buffer in self._buffers.values()]
        usage = (
            TokenUsage(input_tokens=self._input_tokens or 0, output_tokens=self._output_tokens)
            if self._usage_seen
            else None
        )
        finish_reason = FinishReason.STOP
        error = None

        if self._done is not None:
            response = self._done.response
            if response.tool_calls:
                tool_calls = list(response.tool_calls)
            if response.usage is not None:
                usage = response.usage
            if not text and response.content:
                text = response.content
            finish_reason = response.finish_reason
            error = response.error

        return AssembledTurn(
            text=text or None,
            tool_calls=tool_calls,
            usage=usage,
            finish_reason=finish_reason,
            error=error,
        )


async def assemble_turn(events: AsyncIterable[LLMStreamEvent], strict: bool = False) -> AssembledTurn:
    """Drain a stream and return the assembled turn, discarding text deltas."""
    assembler = TurnAssembler(strict=strict)
    async for event in events:
        assembler.feed(event)
    return assembler.finish()
