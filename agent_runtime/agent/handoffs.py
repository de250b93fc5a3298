"""Handoff detection and cycle protection."""

import json
import logging

from agent_runtime.agent.agent import Agent, Handoff
from agent_runtime.agent.errors import HandoffCycleError

logger = logging.getLogger(__name__)

DEFAULT_HANDOFF_REASON = "Handoff requested"


def find_handoff(agent: Agent, name: str) -> Handoff | None:
    """Return the handoff of ``agent`` advertised under ``name``, if any.

    Handoffs are checked before tools, so a handoff shadows a same-named tool.
    """
    return next((handoff for handoff in agent.handoffs if handoff.name == name), None)


def parse_handoff_reason(arguments: str) -> str:
    """Extract the ``reason`` argument of a handoff call.

    Best effort: malformed JSON, a non-object or a missing/non-string reason
    all fall back to the default reason.
    """
    try:
        parsed = json.loads(arguments) if arguments.strip() else {}
    except ValueError:
        logger.debug("Could not decode handoff arguments: %r", arguments)
        return DEFAULT_HANDOFF_REASON
    if isinstance(parsed, dict):
        reason = parsed.get("reason")
        if isinstance(reason, str) and reason:
            return reason
    return DEFAULT_HANDOFF_REASON


class HandoffTracker:
    """Ordered record of the agents that have been active in a run.

    An agent may be active at most once per run; transferring back to an agent
    already in the history is a cycle.
    """

    def __init__(self, initial_agent: str) -> None:
        self._history = [initial_agent]

    @property
    def history(self) -> list[str]:
        return list(self._history)

    @property
    def current(self) -> str:
        return self._history[-1]

    def visit(self, target: str) -> None:
        """Record a transfer to ``target``.

        Raises:
            HandoffCycleError: If ``target`` is already in the history; the
                error's agent list is the history followed by ``target``
        """
        if target in self._history:
            raise HandoffCycleError([*self._history, target])
        self._history.append(target)
