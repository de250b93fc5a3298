"""Shared test fixtures.

This module provides:
- A scripted model backend stub that replays canned stream turns
- Builders for common stream turns (text answers, tool calls)
- Small tool and agent fixtures
- Session-wide structlog configuration
"""

import json
from collections.abc import AsyncIterator, Callable, Sequence

import pytest

from agent_runtime.agent.agent import Agent
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
)
from agent_runtime.agent.messages import TokenUsage
from agent_runtime.agent.schema import SchemaType, object_schema, property_schema
from agent_runtime.agent.tools import FunctionTool
from agent_runtime.observability import configure_logging

type Turn = Sequence[LLMStreamEvent]


@pytest.fixture(autouse=True, scope="session")
def structured_logging():
    """Route structlog through stdlib logging so log lines never reach stdout."""
    configure_logging("DEBUG")


class ScriptedProvider:
    """Model backend stub replaying one scripted turn per request.

    Every request is recorded. With ``repeat_last`` the final turn is replayed
    for any further request; otherwise an extra request fails the run.
    """

    def __init__(self, *turns: Turn, repeat_last: bool = False, default_model: str = "stub-model"):
        self.turns = list(turns)
        self.repeat_last = repeat_last
        self.requests: list[LLMRequest] = []
        self._default_model = default_model

    @property
    def default_model(self) -> str:
        return self._default_model

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def complete(self, request: LLMRequest) -> LLMResponse:
        raise NotImplementedError("ScriptedProvider only streams")

    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamEvent]:
        self.requests.append(request)
        index = len(self.requests) - 1
        if index >= len(self.turns):
            if not self.repeat_last:
                raise AssertionError(f"Unexpected model request #{index + 1}")
            index = len(self.turns) - 1
        for event in self.turns[index]:
            yield event


@pytest.fixture
def text_turn() -> Callable[..., list[LLMStreamEvent]]:
    """Build a turn streaming text chunks and ending with a stop."""

    def build(*chunks: str, usage: TokenUsage | None = None) -> list[LLMStreamEvent]:
        events: list[LLMStreamEvent] = [TextChunk(chunk) for chunk in chunks]
        events.append(StreamDone(LLMResponse(finish_reason=FinishReason.STOP, usage=usage)))
        return events

    return build


@pytest.fixture
def tool_turn() -> Callable[..., list[LLMStreamEvent]]:
    """Build a turn issuing tool calls given as ``(id, name, arguments)`` tuples."""

    def build(*calls: tuple[str, str, str], usage: TokenUsage | None = None) -> list[LLMStreamEvent]:
        events: list[LLMStreamEvent] = []
        for call_id, name, arguments in calls:
            events.append(ToolCallStart(call_id, name))
            events.append(ToolCallDelta(call_id, arguments))
            events.append(ToolCallStop(call_id))
        events.append(StreamDone(LLMResponse(finish_reason=FinishReason.TOOL_USE, usage=usage)))
        return events

    return build


@pytest.fixture
def scripted_provider() -> Callable[..., ScriptedProvider]:
    """Factory for ScriptedProvider instances."""

    def build(*turns: Turn, repeat_last: bool = False) -> ScriptedProvider:
        return ScriptedProvider(*turns, repeat_last=repeat_last)

    return build


@pytest.fixture
def add_tool() -> FunctionTool:
    """Tool adding two integers ``a`` and ``b``."""

    def add(arguments: str, context) -> str:
        values = json.loads(arguments)
        return str(values["a"] + values["b"])

    return FunctionTool(
        name="add",
        description="Add two integers",
        input_schema=object_schema(
            {
                "a": property_schema(SchemaType.INTEGER),
                "b": property_schema(SchemaType.INTEGER),
            },
            required=["a", "b"],
        ),
        handler=add,
    )


@pytest.fixture
def failing_tool() -> FunctionTool:
    """Tool that always raises."""

    def explode(arguments: str, context) -> str:
        raise RuntimeError("boom")

    return FunctionTool(
        name="explode",
        description="Always fails",
        input_schema=object_schema({}),
        handler=explode,
    )


@pytest.fixture
def assistant_agent() -> Agent:
    return Agent(name="Assistant", instructions="You are a helpful assistant.")
