"""Agent and handoff definitions."""

from dataclasses import dataclass, replace
from typing import Self

from agent_runtime.agent.protocol import Guardrail, Tool
from agent_runtime.agent.schema import SchemaType, object_schema, property_schema
from agent_runtime.agent.tools import ToolDefinition


def default_handoff_name(agent_name: str) -> str:
    """Tool name used for a handoff when none is given.

    ``"Billing Agent"`` becomes ``"handoff_to_billing_agent"``.
    """
    return f"handoff_to_{agent_name.lower().replace(' ', '_')}"


@dataclass(frozen=True)
class Agent:
    """An immutable agent definition.

    Attributes:
        name: Unique agent name, used in events and handoff history
        instructions: System prompt
        model: Model override; the provider's default model is used when None
        tools: Tools the agent may call
        handoffs: Agents this agent may transfer control to
        input_guardrails: Guardrails applied to the user input (starting agent only)
        output_guardrails: Guardrails applied to the final answer (final agent only)
    """

    name: str
    instructions: str
    model: str | None = None
    tools: tuple[Tool, ...] = ()
    handoffs: tuple["Handoff", ...] = ()
    input_guardrails: tuple[Guardrail, ...] = ()
    output_guardrails: tuple[Guardrail, ...] = ()

    def __post_init__(self) -> None:
        for attr in ("tools", "handoffs", "input_guardrails", "output_guardrails"):
            value = getattr(self, attr)
            if not isinstance(value, tuple):
                object.__setattr__(self, attr, tuple(value))

    def using(self, model: str) -> Self:
        """Return a copy of this agent pinned to ``model``."""
        return replace(self, model=model)

    def with_tools(self, *tools: Tool) -> Self:
        """Return a copy with ``tools`` appended."""
        return replace(self, tools=(*self.tools, *tools))

    def with_handoffs(self, *handoffs: "Handoff") -> Self:
        """Return a copy with ``handoffs`` appended."""
        return replace(self, handoffs=(*self.handoffs, *handoffs))

    def tool_definitions(self) -> list[ToolDefinition]:
        """Definitions advertised to the model: tools first, then handoffs."""
        return [ToolDefinition.from_tool(tool) for tool in self.tools] + [
            handoff.tool_definition() for handoff in self.handoffs
        ]


@dataclass(frozen=True)
class Handoff:
    """Declares that control may be transferred to ``target``.

    The handoff is advertised to the model as a pseudo-tool that takes a single
    ``reason`` argument.
    """

    target: Agent
    description: str
    name: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", default_handoff_name(self.target.name))

    def tool_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=f"Hand off to {self.target.name}: {self.description}",
            input_schema=object_schema(
                {"reason": property_schema(SchemaType.STRING, "Reason for the handoff")},
                required=["reason"],
            ),
        )
