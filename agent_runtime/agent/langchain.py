"""Adapter exposing LangChain tools as runner tools.

Any ``langchain_core`` ``BaseTool`` (``StructuredTool``, ``@tool``-decorated
functions, community toolkits) can be handed to an agent.

Usage:
    from langchain_core.tools import tool

    @tool
    def add(a: int, b: int) -> int:
        \"\"\"Add two integers.\"\"\"
        return a + b

    agent = Agent(name="Calc", instructions="...", tools=(LangChainTool(add),))
"""

import json
from typing import Any

from langchain_core.tools import BaseTool, ToolException

from agent_runtime.agent.context import RunContext
from agent_runtime.agent.errors import InvalidToolArgumentsError, ToolExecutionError


class LangChainTool:
    """Wrap a LangChain ``BaseTool`` so it satisfies the Tool contract."""

    def __init__(self, tool: BaseTool) -> None:
        self._tool = tool

    def __repr__(self) -> str:
        return f"LangChainTool(name={self.name!r})"

    @property
    def name(self) -> str:
        return self._tool.name

    @property
    def description(self) -> str:
        return self._tool.description

    @property
    def input_schema(self) -> dict[str, Any]:
        schema = self._tool.get_input_schema().model_json_schema()
        schema.setdefault("type", "object")
        schema.setdefault("properties", {})
        return schema

    async def execute(self, arguments: str, context: RunContext) -> str:
        try:
            parsed = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as e:
            raise InvalidToolArgumentsError(self.name, str(e)) from e
        if not isinstance(parsed, dict):
            raise InvalidToolArgumentsError(self.name, "arguments must be a JSON object")

        try:
            result = await self._tool.ainvoke(parsed)
        except ToolException as e:
            raise ToolExecutionError(self.name, str(e)) from e
        if isinstance(result, str):
            return result
        return json.dumps(result, default=str)
