"""Application settings and configuration.

This module provides Pydantic settings classes for runtime configuration,
loaded from environment variables with support for nested configuration.

Example:
    AGENT_RUNTIME_LLM__MODEL=anthropic/claude-sonnet-4-5
    AGENT_RUNTIME_RUNNER__MAX_TURNS=5
    AGENT_RUNTIME_MCP_SERVERS='[{"url":"http://localhost:8080/mcp","prefix":"docs"}]'
"""

import logging

import pydantic_settings
from pydantic import BaseModel, Field, field_validator

from agent_runtime.agent.config import LlmConfig, MCPConfig, RunConfig


class LlmSettings(BaseModel):
    model: str = Field("gpt-4o-mini")
    api_key: str | None = None
    api_base: str | None = None
    temperature: float | None = Field(None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(None, ge=1)


class RunnerSettings(BaseModel):
    max_turns: int = Field(10, ge=1)
    top_p: float | None = Field(None, gt=0.0, le=1.0)
    stop_sequences: list[str] = []


class LoggingSettings(BaseModel):
    level: str = Field("INFO")
    json_output: bool = Field(False)

    @field_validator("level")
    @classmethod
    def _validate_level(cls, v):
        v_upper = v.upper()
        if v_upper not in logging._nameToLevel:
            raise ValueError(f'invalid value "{v}"')
        return v_upper


class MCPServerSettings(BaseModel):
    """Configuration for a single MCP server.

    Attributes:
        url: URL of the MCP server endpoint
        prefix: Optional prefix for tool names to avoid collisions
        timeout: Connection timeout in seconds
        sse_read_timeout: SSE stream read timeout in seconds
        read_timeout: General read timeout in seconds
    """

    url: str
    prefix: str | None = None
    timeout: float = 60.0
    sse_read_timeout: float = 300.0
    read_timeout: float = 120.0


class Settings(pydantic_settings.BaseSettings):
    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix="AGENT_RUNTIME_",
        env_nested_delimiter="__",
    )

    llm: LlmSettings = LlmSettings()
    runner: RunnerSettings = RunnerSettings()
    logging: LoggingSettings = LoggingSettings()

    # MCP servers whose tools are offered to agents
    mcp_servers: list[MCPServerSettings] = []

    def llm_config(self) -> LlmConfig:
        return LlmConfig(
            model=self.llm.model,
            api_key=self.llm.api_key,
            base_url=self.llm.api_base,
            temperature=self.llm.temperature,
            max_tokens=self.llm.max_tokens,
        )

    def run_config(self) -> RunConfig:
        return RunConfig(
            max_turns=self.runner.max_turns,
            max_tokens=self.llm.max_tokens,
            temperature=self.llm.temperature,
            top_p=self.runner.top_p,
            stop_sequences=tuple(self.runner.stop_sequences) or None,
        )

    def mcp_configs(self) -> list[MCPConfig]:
        return [
            MCPConfig(
                server_url=server.url,
                tool_prefix=server.prefix,
                timeout=server.timeout,
                sse_read_timeout=server.sse_read_timeout,
                read_timeout=server.read_timeout,
            )
            for server in self.mcp_servers
        ]
