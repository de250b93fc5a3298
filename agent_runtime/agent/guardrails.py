"""Input/output guardrails and chain evaluation.

A guardrail inspects text and either passes it, rewrites it, or blocks it.
Guardrails run in declaration order; each one sees the text produced by the
previous one, and evaluation stops at the first block.
"""

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass

from opentelemetry import trace

from agent_runtime.agent.context import RunContext
from agent_runtime.agent.protocol import Guardrail

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class GuardrailResult:
    """Base class for guardrail outcomes."""

    @property
    def can_proceed(self) -> bool:
        return True

    def content(self, original: str) -> str | None:
        """Text to continue with, or None when blocked."""
        return original


@dataclass(frozen=True)
class GuardrailPassed(GuardrailResult):
    pass


@dataclass(frozen=True)
class GuardrailModified(GuardrailResult):
    new_content: str
    reason: str

    def content(self, original: str) -> str | None:
        return self.new_content


@dataclass(frozen=True)
class GuardrailBlocked(GuardrailResult):
    reason: str

    @property
    def can_proceed(self) -> bool:
        return False

    def content(self, original: str) -> str | None:
        return None


type GuardrailValidator = Callable[[str, RunContext], Awaitable[GuardrailResult] | GuardrailResult]


class FunctionGuardrail:
    """A guardrail backed by a plain (sync or async) function."""

    def __init__(self, name: str, validator: GuardrailValidator) -> None:
        self.name = name
        self._validator = validator

    def __repr__(self) -> str:
        return f"FunctionGuardrail(name={self.name!r})"

    async def validate(self, text: str, context: RunContext) -> GuardrailResult:
        result = self._validator(text, context)
        if inspect.isawaitable(result):
            result = await result
        return result


class MaxLengthGuardrail:
    """Limit content length, either truncating or blocking over-long text."""

    def __init__(self, max_length: int, truncate: bool = False) -> None:
        if max_length < 0:
            raise ValueError("max_length must be non-negative")
        self.max_length = max_length
        self.truncate = truncate

    @property
    def name(self) -> str:
        return f"MaxLength({self.max_length})"

    async def validate(self, text: str, context: RunContext) -> GuardrailResult:
        if len(text) <= self.max_length:
            return GuardrailPassed()
        if self.truncate:
            return GuardrailModified(
                new_content=text[: self.max_length],
                reason=f"Content truncated to {self.max_length} characters",
            )
        return GuardrailBlocked(f"Content exceeds maximum length of {self.max_length} characters")


class BlockPatternGuardrail:
    """Block content containing any of the given substrings."""

    def __init__(
        self,
        patterns: Iterable[str],
        name: str = "BlockPattern",
        case_sensitive: bool = False,
    ) -> None:
        self.name = name
        self.case_sensitive = case_sensitive
        self.patterns = tuple(patterns)

    async def validate(self, text: str, context: RunContext) -> GuardrailResult:
        haystack = text if self.case_sensitive else text.lower()
        for pattern in self.patterns:
            needle = pattern if self.case_sensitive else pattern.lower()
            if needle and needle in haystack:
                return GuardrailBlocked("Content contains blocked pattern")
        return GuardrailPassed()


async def evaluate_guardrails(
    text: str,
    guardrails: Sequence[Guardrail],
    context: RunContext,
) -> AsyncIterator[tuple[Guardrail, GuardrailResult, str]]:
    """Run guardrails in order, yielding each outcome as it is produced.

    Yields:
        ``(guardrail, result, current_text)`` where ``current_text`` is the text
        after applying ``result`` (unchanged for a block). Nothing is yielded
        after a block.

    Exceptions raised by a guardrail propagate unchanged.
    """
    current = text
    for guardrail in guardrails:
        with tracer.start_as_current_span(f"guardrail {guardrail.name}") as span:
            result = await guardrail.validate(current, context)
            span.set_attribute("guardrail.outcome", type(result).__name__)
        if isinstance(result, GuardrailBlocked):
            logger.debug("Guardrail %s blocked content: %s", guardrail.name, result.reason)
            yield guardrail, result, current
            return
        current = result.content(current) or ""
        yield guardrail, result, current


async def apply_chain(
    text: str,
    guardrails: Sequence[Guardrail],
    context: RunContext,
) -> GuardrailResult:
    """Collapse a guardrail chain into one effective result.

    Returns:
        The first ``GuardrailBlocked``; otherwise ``GuardrailModified`` with the
        final text and the modification reasons joined by ``"; "``, or
        ``GuardrailPassed`` when no guardrail changed anything.
    """
    reasons: list[str] = []
    current = text
    async for _, result, current in evaluate_guardrails(text, guardrails, context):
        match result:
            case GuardrailBlocked():
                return result
            case GuardrailModified(reason=reason):
                reasons.append(reason)
    if reasons:
        return GuardrailModified(new_content=current, reason="; ".join(reasons))
    return GuardrailPassed()
