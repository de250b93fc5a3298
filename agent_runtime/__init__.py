"""agent-runtime - Agent execution runner with streaming, tools, handoffs and guardrails."""

from .agent import Agent, FunctionTool, Handoff, Runner, RunResult
from .settings import Settings

__all__ = [
    "Agent",
    "FunctionTool",
    "Handoff",
    "RunResult",
    "Runner",
    "Settings",
]
