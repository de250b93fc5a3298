"""Protocol definitions for the runner's pluggable collaborators.

Tools, guardrails and model backends are open-ended sets of user-supplied
implementations; the runner only depends on the contracts below.
"""

from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from agent_runtime.agent.context import RunContext

if TYPE_CHECKING:
    from agent_runtime.agent.guardrails import GuardrailResult
    from agent_runtime.agent.llm import LLMRequest, LLMResponse, LLMStreamEvent


@runtime_checkable
class Tool(Protocol):
    """Protocol for a tool the model can call."""

    @property
    def name(self) -> str:
        """Unique name the model uses to invoke the tool."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description shown to the model."""
        ...

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema describing the tool arguments."""
        ...

    async def execute(self, arguments: str, context: RunContext) -> str:
        """Execute the tool.

        Args:
            arguments: Raw JSON-encoded arguments produced by the model
            context: Read-only run context

        Returns:
            Tool output fed back to the model
        """
        ...


@runtime_checkable
class Guardrail(Protocol):
    """Protocol for an input or output validator."""

    @property
    def name(self) -> str:
        """Name used in events and errors."""
        ...

    async def validate(self, text: str, context: RunContext) -> "GuardrailResult":
        """Validate text and return a pass/modify/block result.

        Raising (as opposed to returning a block) is treated as a run failure.
        """
        ...


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for a model backend adapter."""

    @property
    def default_model(self) -> str:
        """Model used when the active agent does not override it."""
        ...

    async def complete(self, request: "LLMRequest") -> "LLMResponse":
        """Send a request and wait for the complete response."""
        ...

    def stream(self, request: "LLMRequest") -> AsyncGenerator["LLMStreamEvent", None]:
        """Send a request and yield normalized stream events.

        Implementations are async generators. The final event must be a
        ``StreamDone``.
        """
        ...
