"""Logging setup for the agent runtime.

Records from structlog loggers (the runner) and from plain ``logging`` loggers
(tool dispatch, MCP, the LiteLLM adapter) share one stderr handler and one
renderer. Stdout is left to the streamed model answer.

Run identifiers travel through ``structlog.contextvars``: ``bind_run`` attaches
``run_id`` to every record logged from the current task, whichever library
emitted it.
"""

import logging
import sys
from typing import TextIO

import structlog

# Client libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "LiteLLM", "mcp.client.streamable_http")


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def configure_logging(log_level: str, json_output: bool = True, stream: TextIO | None = None) -> None:
    """Route structlog and stdlib logging to a single handler.

    Args:
        log_level: Logging level name (INFO, DEBUG, ...)
        json_output: One JSON object per line when True, colored console lines otherwise
        stream: Destination, stderr by default
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if json_output:
        # JSON has no traceback layout of its own
        renderers: list[structlog.types.Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=stream is None)]

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_run(run_id: str) -> None:
    """Tag every later record of the current task with ``run_id``."""
    structlog.contextvars.bind_contextvars(run_id=run_id)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
