"""Prometheus metrics for agent runs.

Counters and histograms are registered on the default registry at import
time; expose them with ``prometheus_client.generate_latest`` or
``start_http_server`` from the host application.
"""

from typing import NamedTuple

import prometheus_client

BUCKETS = (
    # log spaced with 1 sig-fig rounding, 3 per decade
    0.001,  # 1 ms
    0.002,
    0.005,
    0.01,
    0.02,
    0.05,
    0.1,
    0.2,
    0.5,
    1,
    2,
    5,
    10,
    20,
    50,
    100,
    float("inf"),
)


class RunMetricsLabels(NamedTuple):
    agent: str
    outcome: str


class ToolMetricsLabels(NamedTuple):
    agent: str
    tool: str


runs_counter = prometheus_client.Counter(
    "agent_runs",
    "Agent runs by starting agent and outcome",
    labelnames=RunMetricsLabels._fields,
)
run_histogram = prometheus_client.Histogram(
    "agent_run_duration_seconds",
    "Agent run duration (seconds)",
    labelnames=RunMetricsLabels._fields,
    buckets=BUCKETS,
)
turns_counter = prometheus_client.Counter(
    "agent_turns",
    "Model round-trips by active agent",
    labelnames=("agent",),
)
tool_calls_counter = prometheus_client.Counter(
    "agent_tool_calls",
    "Tool calls by agent, tool and error flag",
    labelnames=(*ToolMetricsLabels._fields, "error"),
)
tool_histogram = prometheus_client.Histogram(
    "agent_tool_call_duration_seconds",
    "Tool call duration (seconds)",
    labelnames=ToolMetricsLabels._fields,
    buckets=BUCKETS,
)
tokens_counter = prometheus_client.Counter(
    "agent_tokens",
    "Tokens consumed by model and direction",
    labelnames=("model", "direction"),
)


def record_run(labels: RunMetricsLabels, duration: float) -> None:
    """Record a finished run (completed, failed or cancelled)."""
    runs_counter.labels(*labels).inc()
    run_histogram.labels(*labels).observe(duration)


def record_turn(agent: str) -> None:
    turns_counter.labels(agent).inc()


def record_tool_call(labels: ToolMetricsLabels, duration: float, error: bool = False) -> None:
    """Record a dispatched tool call.

    Args:
        labels: Agent and tool labels
        duration: Execution time in seconds
        error: Whether the call produced an error result
    """
    tool_calls_counter.labels(*labels, str(error).lower()).inc()
    tool_histogram.labels(*labels).observe(duration)


def record_agent_tokens(model: str, input_tokens: int, output_tokens: int) -> None:
    """Record token usage reported by the model backend."""
    if input_tokens:
        tokens_counter.labels(model, "input").inc(input_tokens)
    if output_tokens:
        tokens_counter.labels(model, "output").inc(output_tokens)
