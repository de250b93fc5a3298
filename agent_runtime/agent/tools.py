"""Tool definitions, closure-backed tools and tool dispatch."""

import inspect
import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from time import monotonic
from typing import Any, Self

from opentelemetry import trace
from pydantic import BaseModel, ValidationError

from agent_runtime.agent.context import RunContext
from agent_runtime.agent.errors import InvalidToolArgumentsError, ToolExecutionError, ToolNotFoundError
from agent_runtime.agent.messages import ToolCall, ToolResult
from agent_runtime.agent.metrics import ToolMetricsLabels, record_tool_call
from agent_runtime.agent.protocol import Tool

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

type ToolHandler = Callable[[str, RunContext], Awaitable[Any] | Any]


@dataclass(frozen=True)
class ToolDefinition:
    """Wire description of a callable tool sent to the model backend."""

    name: str
    description: str
    input_schema: dict[str, Any]

    @classmethod
    def from_tool(cls, tool: Tool) -> Self:
        return cls(name=tool.name, description=tool.description, input_schema=tool.input_schema)


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, default=str)


class FunctionTool:
    """A tool backed by a plain (sync or async) function.

    The handler receives the raw JSON arguments string and the run context.
    Non-string return values are JSON encoded.
    """

    def __init__(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        handler: ToolHandler,
    ) -> None:
        self.name = name
        self.description = description
        self.input_schema = input_schema
        self._handler = handler

    def __repr__(self) -> str:
        return f"FunctionTool(name={self.name!r})"

    @classmethod
    def from_model[M: BaseModel](
        cls,
        name: str,
        description: str,
        args_model: type[M],
        handler: Callable[[M, RunContext], Awaitable[Any] | Any],
    ) -> Self:
        """Create a tool whose arguments are validated by a pydantic model.

        The input schema is derived from the model; the handler receives a
        validated model instance instead of the raw JSON string.

        Args:
            name: Tool name
            description: Tool description
            args_model: Pydantic model describing the arguments
            handler: Function called with the validated arguments and context

        Returns:
            Configured FunctionTool
        """

        async def invoke(arguments: str, context: RunContext) -> Any:
            try:
                args = args_model.model_validate_json(arguments or "{}")
            except ValidationError as e:
                raise InvalidToolArgumentsError(name, str(e)) from e
            result = handler(args, context)
            if inspect.isawaitable(result):
                result = await result
            return result

        return cls(name, description, args_model.model_json_schema(), invoke)

    async def execute(self, arguments: str, context: RunContext) -> str:
        result = self._handler(arguments, context)
        if inspect.isawaitable(result):
            result = await result
        return _to_text(result)


def find_tool(tools: Sequence[Tool], name: str) -> Tool | None:
    """Return the first tool with the given name, if any."""
    return next((tool for tool in tools if tool.name == name), None)


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _execution_error(name: str, exc: Exception) -> ToolExecutionError:
    if isinstance(exc, ToolExecutionError):
        return exc
    return ToolExecutionError(name, _describe(exc))


async def dispatch_tool(
    call: ToolCall,
    tools: Sequence[Tool],
    context: RunContext,
    *,
    agent_name: str = "",
) -> ToolResult:
    """Resolve a tool call by name and execute it.

    Never raises for tool problems: an unknown tool or a failing tool yields an
    error-flagged ToolResult so the model can see the failure and adapt.

    Args:
        call: Tool call assembled from the model's response
        tools: Tools available to the active agent
        context: Read-only run context
        agent_name: Active agent name (metrics label)

    Returns:
        ToolResult for the call
    """
    labels = ToolMetricsLabels(agent_name, call.name)
    tool = find_tool(tools, call.name)
    if tool is None:
        logger.warning("Model requested unknown tool '%s'", call.name)
        record_tool_call(labels, duration=0.0, error=True)
        return ToolResult.failure(call.id, call.name, str(ToolNotFoundError(call.name)))

    start_time = monotonic()
    with tracer.start_as_current_span(f"tool {call.name}") as span:
        span.set_attribute("tool.call_id", call.id)
        try:
            output = await tool.execute(call.arguments, context)
        except Exception as e:
            error = _execution_error(call.name, e)
            span.record_exception(e)
            record_tool_call(labels, duration=monotonic() - start_time, error=True)
            logger.warning("%s", error)
            return ToolResult.failure(call.id, call.name, f"Tool execution failed: {error.reason}")

    record_tool_call(labels, duration=monotonic() - start_time)
    return ToolResult.success(call.id, call.name, _to_text(output))
