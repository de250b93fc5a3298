"""Exception hierarchy for agent runs.

Guardrail blocks, handoff cycles, the turn bound, cancellation and provider
failures are run-fatal. Tool lookup and tool execution errors are recovered
locally into error ToolResults and only exist here so tool sources can raise
them with a clear message.
"""


class AgentError(Exception):
    """Base exception for all agent runtime errors."""


class InputBlockedError(AgentError):
    """Raised when an input guardrail blocks the user input."""

    def __init__(self, guardrail: str, reason: str):
        self.guardrail = guardrail
        self.reason = reason
        super().__init__(f"Input blocked by {guardrail}: {reason}")


class OutputBlockedError(AgentError):
    """Raised when an output guardrail blocks the final answer."""

    def __init__(self, guardrail: str, reason: str):
        self.guardrail = guardrail
        self.reason = reason
        super().__init__(f"Output blocked by {guardrail}: {reason}")


class MaxTurnsExceededError(AgentError):
    """Raised when a run reaches its turn bound without a final answer."""

    def __init__(self, max_turns: int):
        self.max_turns = max_turns
        super().__init__(f"Agent exceeded maximum turns ({max_turns})")


class RunCancelledError(AgentError):
    """Raised when a run observes a cancellation request."""

    def __init__(self, run_id: str | None = None):
        self.run_id = run_id
        run_info = f" [run: {run_id}]" if run_id else ""
        super().__init__(f"Agent execution was cancelled{run_info}")


class ToolNotFoundError(AgentError):
    """Raised when the model requests a tool the active agent does not have."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool not found: {name}")


class ToolExecutionError(AgentError):
    """Raised by tool sources when a tool fails."""

    def __init__(self, tool: str, reason: str):
        self.tool = tool
        self.reason = reason
        super().__init__(f"Tool '{tool}' failed: {reason}")


class InvalidToolArgumentsError(AgentError):
    """Raised when tool arguments cannot be decoded or validated."""

    def __init__(self, tool: str, reason: str):
        self.tool = tool
        self.reason = reason
        super().__init__(f"Invalid arguments for tool '{tool}': {reason}")


class HandoffCycleError(AgentError):
    """Raised when a handoff targets an agent already visited in this run."""

    def __init__(self, agents: list[str]):
        self.agents = list(agents)
        super().__init__(f"Cyclic handoff detected: {' -> '.join(self.agents)}")


class ProviderError(AgentError):
    """Raised when the model backend fails."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Provider error: {message}")


class RateLimitedError(ProviderError):
    """Raised when the model backend rejects a request for rate limiting."""

    def __init__(self, retry_after: float | None = None):
        self.retry_after = retry_after
        detail = "Rate limited"
        if retry_after is not None:
            detail += f". Retry after {retry_after} seconds"
        super().__init__(detail)


class AuthenticationFailedError(ProviderError):
    """Raised when the model backend rejects the credentials."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class InvalidResponseError(ProviderError):
    """Raised when the model backend returns something that cannot be interpreted."""

    def __init__(self, message: str):
        super().__init__(f"Invalid response: {message}")


class InvalidConfigurationError(AgentError):
    """Raised when an agent or runner is misconfigured."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Invalid configuration: {message}")
