"""Agent execution core.

This module provides the building blocks for running agents:
- Agent, handoff, tool and guardrail definitions
- The Runner state machine and its event stream
- Streaming turn assembly and tool dispatch
- Run handles and the cancellation registry
- Model backend contract and message types
"""

from agent_runtime.agent.agent import Agent, Handoff
from agent_runtime.agent.assembler import AssembledTurn, TurnAssembler, assemble_turn
from agent_runtime.agent.config import LlmConfig, MCPConfig, RunConfig
from agent_runtime.agent.context import RunContext
from agent_runtime.agent.errors import (
    AgentError,
    AuthenticationFailedError,
    HandoffCycleError,
    InputBlockedError,
    InvalidConfigurationError,
    InvalidResponseError,
    InvalidToolArgumentsError,
    MaxTurnsExceededError,
    OutputBlockedError,
    ProviderError,
    RateLimitedError,
    RunCancelledError,
    ToolExecutionError,
    ToolNotFoundError,
)
from agent_runtime.agent.events import (
    AgentEvent,
    AgentStarted,
    GuardrailTriggered,
    HandedOff,
    RunCompleted,
    RunFailed,
    TextDelta,
    ToolCallCompleted,
    ToolCallStarted,
    TurnCompleted,
)
from agent_runtime.agent.guardrails import (
    BlockPatternGuardrail,
    FunctionGuardrail,
    GuardrailBlocked,
    GuardrailModified,
    GuardrailPassed,
    GuardrailResult,
    MaxLengthGuardrail,
    apply_chain,
    evaluate_guardrails,
)
from agent_runtime.agent.handoffs import HandoffTracker, find_handoff, parse_handoff_reason
from agent_runtime.agent.llm import (
    BaseLLMProvider,
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
from agent_runtime.agent.messages import Message, Role, RunResult, TokenUsage, ToolCall, ToolResult
from agent_runtime.agent.protocol import Guardrail, LLMProvider, Tool
from agent_runtime.agent.registry import RunHandle, RunRegistry
from agent_runtime.agent.runner import Runner, RunStream
from agent_runtime.agent.tools import FunctionTool, ToolDefinition, dispatch_tool

__all__ = [
    # Core
    "Agent",
    "Handoff",
    "Runner",
    "RunStream",
    "RunContext",
    # Configuration
    "LlmConfig",
    "MCPConfig",
    "RunConfig",
    # Protocols
    "Guardrail",
    "LLMProvider",
    "Tool",
    # Tools
    "FunctionTool",
    "ToolDefinition",
    "dispatch_tool",
    # Guardrails
    "BlockPatternGuardrail",
    "FunctionGuardrail",
    "GuardrailBlocked",
    "GuardrailModified",
    "GuardrailPassed",
    "GuardrailResult",
    "MaxLengthGuardrail",
    "apply_chain",
    "evaluate_guardrails",
    # Handoffs
    "HandoffTracker",
    "find_handoff",
    "parse_handoff_reason",
    # Assembly
    "AssembledTurn",
    "TurnAssembler",
    "assemble_turn",
    # Cancellation
    "RunHandle",
    "RunRegistry",
    # Messages
    "Message",
    "Role",
    "RunResult",
    "TokenUsage",
    "ToolCall",
    "ToolResult",
    # Model backend
    "BaseLLMProvider",
    "FinishReason",
    "LLMRequest",
    "LLMResponse",
    "LLMStreamEvent",
    "StreamDone",
    "TextChunk",
    "ToolCallDelta",
    "ToolCallStart",
    "ToolCallStop",
    "UsageUpdate",
    # Events
    "AgentEvent",
    "AgentStarted",
    "GuardrailTriggered",
    "HandedOff",
    "RunCompleted",
    "RunFailed",
    "TextDelta",
    "ToolCallCompleted",
    "ToolCallStarted",
    "TurnCompleted",
    # Errors
    "AgentError",
    "AuthenticationFailedError",
    "HandoffCycleError",
    "InputBlockedError",
    "InvalidConfigurationError",
    "InvalidResponseError",
    "InvalidToolArgumentsError",
    "MaxTurnsExceededError",
    "OutputBlockedError",
    "ProviderError",
    "RateLimitedError",
    "RunCancelledError",
    "ToolExecutionError",
    "ToolNotFoundError",
]
