"""Integration test fixtures.

This module provides:
- Agents used across run loop scenarios (calculator, triage/billing/support)
- A helper draining a run stream into a list of events

Runs are driven end to end through Runner with the scripted model backend
from the root conftest.
"""

from collections.abc import Awaitable, Callable

import pytest

from agent_runtime.agent.agent import Agent, Handoff
from agent_runtime.agent.events import AgentEvent
from agent_runtime.agent.runner import RunStream
from agent_runtime.agent.tools import FunctionTool


@pytest.fixture
def collect() -> Callable[[RunStream], Awaitable[list[AgentEvent]]]:
    """Drain a RunStream and return every event it produced."""

    async def drain(stream: RunStream) -> list[AgentEvent]:
        return [event async for event in stream]

    return drain


@pytest.fixture
def calc_agent(add_tool: FunctionTool) -> Agent:
    return Agent(
        name="Calc",
        instructions="You are a calculator. Use the add tool.",
        tools=(add_tool,),
    )


@pytest.fixture
def support_agent() -> Agent:
    return Agent(name="Support", instructions="You handle technical support.")


@pytest.fixture
def billing_agent(support_agent: Agent) -> Agent:
    return Agent(
        name="Billing",
        instructions="You handle billing questions.",
        handoffs=(Handoff(support_agent, "Technical issues"),),
    )


@pytest.fixture
def triage_agent(billing_agent: Agent) -> Agent:
    return Agent(
        name="Triage",
        instructions="Route the user to the right specialist.",
        handoffs=(Handoff(billing_agent, "Billing questions"),),
    )
