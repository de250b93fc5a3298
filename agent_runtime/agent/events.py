"""Events emitted by a run, in order, to the stream consumer.

Every run ends with exactly one terminal event: ``RunCompleted`` or
``RunFailed``.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from agent_runtime.agent.messages import RunResult

if TYPE_CHECKING:
    from agent_runtime.agent.guardrails import GuardrailResult


class AgentEvent:
    """Base class for run events."""

    event_type: ClassVar[str] = "event"

    @property
    def is_terminal(self) -> bool:
        return False


@dataclass(frozen=True)
class AgentStarted(AgentEvent):
    """An agent became active (run start or after a handoff)."""

    event_type: ClassVar[str] = "agent_started"

    agent_name: str


@dataclass(frozen=True)
class TextDelta(AgentEvent):
    event_type: ClassVar[str] = "text_delta"

    text: str


@dataclass(frozen=True)
class ToolCallStarted(AgentEvent):
    event_type: ClassVar[str] = "tool_call_started"

    call_id: str
    name: str
    arguments: str


@dataclass(frozen=True)
class ToolCallCompleted(AgentEvent):
    event_type: ClassVar[str] = "tool_call_completed"

    call_id: str
    name: str
    result: str
    is_error: bool = False


@dataclass(frozen=True)
class HandedOff(AgentEvent):
    event_type: ClassVar[str] = "handoff"

    from_agent: str
    to_agent: str
    reason: str


@dataclass(frozen=True)
class GuardrailTriggered(AgentEvent):
    """A guardrail was evaluated; emitted for passes too."""

    event_type: ClassVar[str] = "guardrail_triggered"

    guardrail: str
    result: "GuardrailResult"


@dataclass(frozen=True)
class TurnCompleted(AgentEvent):
    event_type: ClassVar[str] = "turn_completed"

    turn: int


@dataclass(frozen=True)
class RunCompleted(AgentEvent):
    event_type: ClassVar[str] = "completed"

    result: RunResult

    @property
    def is_terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class RunFailed(AgentEvent):
    event_type: ClassVar[str] = "error"

    error: Exception

    @property
    def is_terminal(self) -> bool:
        return True
