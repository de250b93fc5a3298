"""MCP tool source.

Exposes the tools of a Model Context Protocol server (streamable HTTP) as
runner tools.

Usage:
    source = MCPToolSource.from_config(MCPConfig("http://localhost:8000/mcp", tool_prefix="docs"))
    tools = await source.tools()
    agent = agent.with_tools(*tools)
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, Self

import httpx
from mcp.client.session import ClientSession
from mcp.client.streamable_http import streamable_http_client
from mcp.types import Tool as MCPToolDefinition
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from agent_runtime.agent.config import MCPConfig
from agent_runtime.agent.context import RunContext
from agent_runtime.agent.errors import InvalidToolArgumentsError, ToolExecutionError
from agent_runtime.constants import USER_AGENT

logger = logging.getLogger(__name__)


class MCPClientError(Exception):
    """MCP client error."""


class MCPToolError(MCPClientError, ToolExecutionError):
    """The MCP server ran the tool and flagged the result as an error. Never retried."""


# Transient transport failures only; tool-reported errors are final.
_retry_transient = retry(
    wait=wait_fixed(2),
    stop=(stop_after_attempt(3) | stop_after_delay(10)),
    retry=retry_if_not_exception_type(MCPToolError),
    reraise=True,
)


class MCPClient:
    """Streamable HTTP client for one MCP server, opening a session per call."""

    def __init__(
        self,
        server_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 60.0,
        sse_read_timeout: float = 300.0,
        read_timeout: float = 120.0,
    ) -> None:
        self.server_url = server_url
        self._base_headers = (headers or {}) | {"user-agent": USER_AGENT}
        self.timeout = timeout
        self.sse_read_timeout = sse_read_timeout
        self.read_timeout = timedelta(seconds=read_timeout)

    def __repr__(self) -> str:
        # Headers may carry credentials
        headers_repr = "<obfuscated>" if self._base_headers else "None"
        return (
            f"MCPClient(server_url={self.server_url!r}, "
            f"headers={headers_repr}, "
            f"timeout={self.timeout}, "
            f"sse_read_timeout={self.sse_read_timeout}, "
            f"read_timeout={self.read_timeout})"
        )

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[ClientSession]:
        http_client = httpx.AsyncClient(
            headers=self._base_headers,
            timeout=httpx.Timeout(
                connect=self.timeout,
                read=self.sse_read_timeout,
                write=self.timeout,
                pool=self.timeout,
            ),
        )
        async with http_client:
            async with streamable_http_client(
                url=self.server_url,
                http_client=http_client,
            ) as (read_stream, write_stream, _):
                async with ClientSession(
                    read_stream,
                    write_stream,
                    read_timeout_seconds=self.read_timeout,
                ) as session:
                    await session.initialize()
                    yield session

    @_retry_transient
    async def list_tools(self) -> list[MCPToolDefinition]:
        try:
            async with self._session() as session:
                response = await session.list_tools()
                return response.tools
        except Exception as e:
            raise MCPClientError(f"Failed to list tools: {e}") from e

    @_retry_transient
    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        """Invoke a tool by its server-side name.

        Returns:
            The decoded result: one item, a list for several, None when empty

        Raises:
            MCPToolError: The server flagged the result as an error
            MCPClientError: The call could not be completed after retries
        """
        try:
            async with self._session() as session:
                result = await session.call_tool(name, arguments)
        except Exception as e:
            raise MCPClientError(f"Failed to call tool '{name}': {e}") from e
        if getattr(result, "isError", None) is True:
            raise MCPToolError(name, _as_text(self._parse_result(result)))
        return self._parse_result(result)

    def _parse_result(self, result: Any) -> Any:
        if not result.content:
            return None
        if len(result.content) == 1:
            return self._parse_content(result.content[0])
        return [self._parse_content(item) for item in result.content]

    def _parse_content(self, content: Any) -> Any:
        # JSON when it decodes, raw text otherwise
        text = getattr(content, "text", None) or str(content)
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text


def _as_text(value: Any) -> str:
    if value is None:
        return "No result"
    if isinstance(value, str):
        return value
    return json.dumps(value)


class MCPTool:
    """A single MCP server tool satisfying the runner's Tool contract."""

    def __init__(
        self,
        client: MCPClient,
        name: str,
        remote_name: str,
        description: str,
        input_schema: dict[str, Any],
    ) -> None:
        self.name = name
        self.remote_name = remote_name
        self.description = description
        self.input_schema = input_schema
        self._client = client

    def __repr__(self) -> str:
        return f"MCPTool(name={self.name!r}, server_url={self._client.server_url!r})"

    async def execute(self, arguments: str, context: RunContext) -> str:
        try:
            parsed = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as e:
            raise InvalidToolArgumentsError(self.name, str(e)) from e
        if not isinstance(parsed, dict):
            raise InvalidToolArgumentsError(self.name, "arguments must be a JSON object")

        # Always call MCP with the original tool name
        return _as_text(await self._client.call_tool(self.remote_name, parsed))


class MCPToolSource:
    """Discovers the tools of one MCP server and wraps them as runner tools."""

    def __init__(self, client: MCPClient, tool_prefix: str | None = None) -> None:
        """Initialize with an MCP client.

        Args:
            client: Configured MCPClient for tool discovery and execution
            tool_prefix: Optional prefix to add after 'mcp_' for collision avoidance
                         between multiple MCP servers. Final format: mcp_<prefix>_<name>
        """
        self.client = client
        self.tool_prefix = tool_prefix

    @classmethod
    def from_config(cls, config: MCPConfig) -> Self:
        client = MCPClient(
            server_url=config.server_url,
            headers=config.headers,
            timeout=config.timeout,
            sse_read_timeout=config.sse_read_timeout,
            read_timeout=config.read_timeout,
        )
        return cls(client, config.tool_prefix)

    def prefixed_name(self, name: str) -> str:
        """Apply mcp_ prefix and optional tool prefix to tool name.

        Returns:
            Prefixed name: mcp_<name> or mcp_<tool_prefix>_<name>
        """
        if self.tool_prefix:
            return f"mcp_{self.tool_prefix}_{name}"
        return f"mcp_{name}"

    async def list_tools(self) -> list[MCPToolDefinition]:
        return await self.client.list_tools()

    async def tools(self) -> list[MCPTool]:
        """Fetch the server's tools and wrap them as runner tools."""
        definitions = await self.list_tools()
        logger.debug("Discovered %d tools on %s", len(definitions), self.client.server_url)
        return [self._to_tool(definition) for definition in definitions]

    def _to_tool(self, definition: MCPToolDefinition) -> MCPTool:
        return MCPTool(
            client=self.client,
            name=self.prefixed_name(definition.name),
            remote_name=definition.name,
            description=definition.description or f"MCP tool: {definition.name}",
            input_schema=definition.inputSchema or {"type": "object", "properties": {}},
        )

    @classmethod
    async def fetch_all(cls, configs: Sequence[MCPConfig]) -> list[MCPTool]:
        """Fetch tools from multiple MCP servers concurrently.

        Raises:
            ExceptionGroup: If any MCP server fails to respond
            ValueError: If tool name collision is detected across MCP servers
        """
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(cls.from_config(config).tools()) for config in configs]

        tools: list[MCPTool] = []
        seen: dict[str, str] = {}  # tool_name -> server_url
        for config, task in zip(configs, tasks):
            for tool in task.result():
                if tool.name in seen:
                    raise ValueError(
                        f"Tool name collision: '{tool.name}' from {config.server_url} "
                        f"conflicts with {seen[tool.name]}. "
                        f"Set tool_prefix on one or both MCPConfigs."
                    )
                seen[tool.name] = config.server_url
                tools.append(tool)
        return tools
