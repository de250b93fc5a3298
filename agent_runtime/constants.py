"""Service constants."""

SERVICE_NAME = "agent-runtime"
SERVICE_VERSION = "0.1.0"

# Sent with outbound HTTP requests (MCP servers)
USER_AGENT = f"{SERVICE_NAME}/client.{SERVICE_VERSION}"
