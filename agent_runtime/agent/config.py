"""Configuration dataclasses for runner components.

This module provides immutable configuration objects for the model backend,
MCP servers, and run behavior.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LlmConfig:
    """Configuration for the LiteLLM model backend.

    Attributes:
        model: Default model identifier (e.g., "anthropic/claude-sonnet-4-5")
        api_key: API key for the provider or LiteLLM proxy
        base_url: Base URL for the API (e.g., LiteLLM proxy URL)
        temperature: Default sampling temperature, None leaves the backend default
        max_tokens: Default output token cap, None leaves the backend default
    """

    model: str
    api_key: str | None = None
    base_url: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None


@dataclass(frozen=True)
class RunConfig:
    """Per-runner run behavior.

    Attributes:
        max_turns: Maximum model round-trips per run
        max_tokens: Output token cap sent with every request
        temperature: Sampling temperature sent with every request
        top_p: Nucleus sampling parameter sent with every request
        stop_sequences: Stop sequences sent with every request
    """

    max_turns: int = 10
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    stop_sequences: tuple[str, ...] | None = None


@dataclass(frozen=True)
class MCPConfig:
    """Configuration for MCP (Model Context Protocol) clients.

    Attributes:
        server_url: URL of the MCP server endpoint
        tool_prefix: Optional prefix for tool names to avoid collisions with multiple MCP servers.
                     All MCP tools get 'mcp_' prefix; this adds: mcp_<tool_prefix>_<name>
        headers: Optional HTTP headers to include in requests
        timeout: Connection timeout in seconds (default: 60.0)
        sse_read_timeout: SSE stream read timeout in seconds (default: 300.0)
        read_timeout: General read timeout in seconds (default: 120.0)
    """

    server_url: str
    tool_prefix: str | None = None
    headers: dict[str, str] | None = None
    timeout: float = 60.0
    sse_read_timeout: float = 300.0
    read_timeout: float = 120.0
