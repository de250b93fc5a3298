"""Observability infrastructure module.

Structured logging setup. Run metrics live in ``agent_runtime.agent.metrics``.
"""

from agent_runtime.observability.logging import (
    bind_run,
    configure_logging,
    get_logger,
)

__all__ = [
    "bind_run",
    "configure_logging",
    "get_logger",
]
