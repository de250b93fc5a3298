"""Framework-agnostic message and result types.

These types are used across the runner, the provider adapters and the tool
sources, and define the common vocabulary for agent execution.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Self


class Role(StrEnum):
    """Role of a message in the conversation transcript."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model.

    Attributes:
        id: Opaque identifier correlating streamed deltas and the eventual result
        name: Name of the tool (or handoff) being invoked
        arguments: Raw JSON-encoded arguments string
    """

    id: str
    name: str
    arguments: str = ""

    def parse_arguments(self) -> dict[str, Any]:
        """Decode the arguments string into a dict.

        An empty string decodes to an empty dict.

        Raises:
            ValueError: If the arguments are not valid JSON or not a JSON object
        """
        if not self.arguments.strip():
            return {}
        parsed = json.loads(self.arguments)
        if not isinstance(parsed, dict):
            raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
        return parsed


@dataclass(frozen=True)
class ToolResult:
    """Result of dispatching a single tool call.

    Attributes:
        call_id: ID of the tool call this result answers
        name: Tool name
        content: Tool output, or the failure description when is_error is set
        is_error: Whether the tool could not be found or failed
    """

    call_id: str
    name: str
    content: str
    is_error: bool = False

    @classmethod
    def success(cls, call_id: str, name: str, content: str) -> Self:
        return cls(call_id=call_id, name=name, content=content)

    @classmethod
    def failure(cls, call_id: str, name: str, message: str) -> Self:
        return cls(call_id=call_id, name=name, content=message, is_error=True)

    @property
    def message_content(self) -> str:
        """Content used for the tool message fed back to the model."""
        if self.is_error:
            return f"Error: {self.content}"
        return self.content


def _new_message_id() -> str:
    return uuid.uuid4().hex


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Message:
    """A single message in the conversation transcript.

    Attributes:
        role: Message role
        content: Message text content
        tool_calls: Tool calls requested by the model (assistant messages only)
        tool_call_id: ID of the tool call this message answers (tool messages only)
        name: Tool name (tool messages only)
        id: Unique message identity
        timestamp: Creation time (UTC)
    """

    role: Role
    content: str
    tool_calls: tuple[ToolCall, ...] | None = None
    tool_call_id: str | None = None
    name: str | None = None
    id: str = field(default_factory=_new_message_id)
    timestamp: datetime = field(default_factory=_utc_now)

    @classmethod
    def system(cls, content: str) -> Self:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Self:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: list[ToolCall] | None = None) -> Self:
        return cls(
            role=Role.ASSISTANT,
            content=content,
            tool_calls=tuple(tool_calls) if tool_calls else None,
        )

    @classmethod
    def tool(cls, call_id: str, content: str, name: str | None = None) -> Self:
        return cls(role=Role.TOOL, content=content, tool_call_id=call_id, name=name)


@dataclass(frozen=True)
class TokenUsage:
    """Token consumption reported by the model backend."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


@dataclass(frozen=True)
class RunResult:
    """Result of a completed run.

    Attributes:
        output: Final assistant response text (after output guardrails)
        messages: Full conversation transcript
        final_agent: Name of the agent that produced the final output
        tool_call_count: Number of tool calls the model issued, handoffs included
        turn_count: Number of model round-trips
        token_usage: Cumulative token usage, None if the backend never reported any
    """

    output: str
    messages: list[Message]
    final_agent: str
    tool_call_count: int
    turn_count: int
    token_usage: TokenUsage | None = None
