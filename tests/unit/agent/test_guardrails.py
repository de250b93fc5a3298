"""Unit tests for guardrails and guardrail chain evaluation."""

import pytest

from agent_runtime.agent.context import RunContext
from agent_runtime.agent.guardrails import (
    BlockPatternGuardrail,
    FunctionGuardrail,
    GuardrailBlocked,
    GuardrailModified,
    GuardrailPassed,
    MaxLengthGuardrail,
    apply_chain,
    evaluate_guardrails,
)
from agent_runtime.agent.protocol import Guardrail


@pytest.fixture
def context() -> RunContext:
    return RunContext()


class TestGuardrailResult:
    """Tests for the result variants."""

    def test_passed(self):
        """Passed keeps the original content."""
        result = GuardrailPassed()
        assert result.can_proceed is True
        assert result.content("text") == "text"

    def test_modified(self):
        """Modified substitutes its new content."""
        result = GuardrailModified(new_content="new", reason="rewritten")
        assert result.can_proceed is True
        assert result.content("old") == "new"

    def test_blocked(self):
        """Blocked has no content to continue with."""
        result = GuardrailBlocked("nope")
        assert result.can_proceed is False
        assert result.content("text") is None


class TestMaxLengthGuardrail:
    """Tests for MaxLengthGuardrail."""

    def test_name(self):
        """Name includes the limit."""
        assert MaxLengthGuardrail(10).name == "MaxLength(10)"

    async def test_within_limit_passes(self, context: RunContext):
        """Text at exactly the limit passes."""
        result = await MaxLengthGuardrail(5).validate("12345", context)
        assert result == GuardrailPassed()

    async def test_truncates(self, context: RunContext):
        """Over-long text is truncated to exactly the limit."""
        result = await MaxLengthGuardrail(10, truncate=True).validate(
            "This is a very long message", context
        )
        assert isinstance(result, GuardrailModified)
        assert result.new_content == "This is a "
        assert len(result.new_content) == 10
        assert "10" in result.reason

    async def test_blocks_without_truncate(self, context: RunContext):
        """Over-long text is blocked when truncation is off."""
        result = await MaxLengthGuardrail(3).validate("abcd", context)
        assert result == GuardrailBlocked("Content exceeds maximum length of 3 characters")

    def test_negative_limit_rejected(self):
        """A negative limit is a configuration error."""
        with pytest.raises(ValueError):
            MaxLengthGuardrail(-1)

    def test_satisfies_protocol(self):
        """Built-in guardrails satisfy the Guardrail protocol."""
        assert isinstance(MaxLengthGuardrail(1), Guardrail)


class TestBlockPatternGuardrail:
    """Tests for BlockPatternGuardrail."""

    async def test_blocks_matching_input(self, context: RunContext):
        """Input containing a pattern is blocked."""
        guardrail = BlockPatternGuardrail(["password"])
        result = await guardrail.validate("My password is 123", context)
        assert result == GuardrailBlocked("Content contains blocked pattern")

    async def test_case_insensitive_by_default(self, context: RunContext):
        """Matching ignores case by default."""
        result = await BlockPatternGuardrail(["secret"]).validate("TOP SECRET", context)
        assert isinstance(result, GuardrailBlocked)

    async def test_case_sensitive(self, context: RunContext):
        """Case-sensitive matching can be requested."""
        guardrail = BlockPatternGuardrail(["secret"], case_sensitive=True)
        assert await guardrail.validate("TOP SECRET", context) == GuardrailPassed()

    async def test_passes_clean_input(self, context: RunContext):
        """Input without patterns passes."""
        assert await BlockPatternGuardrail(["x"]).validate("hello", context) == GuardrailPassed()

    def test_default_name(self):
        """Default name is BlockPattern."""
        assert BlockPatternGuardrail([]).name == "BlockPattern"


class TestFunctionGuardrail:
    """Tests for FunctionGuardrail."""

    async def test_sync_validator(self, context: RunContext):
        """Plain functions are supported."""
        guardrail = FunctionGuardrail("upper", lambda text, ctx: GuardrailModified(text.upper(), "upper"))
        result = await guardrail.validate("hi", context)
        assert result == GuardrailModified("HI", "upper")

    async def test_async_validator_receives_context(self):
        """Async functions are awaited and see the run context."""

        async def check(text: str, ctx: RunContext):
            if ctx.get("tenant") == "blocked":
                return GuardrailBlocked("tenant blocked")
            return GuardrailPassed()

        guardrail = FunctionGuardrail("tenant", check)
        result = await guardrail.validate("hi", RunContext(tenant="blocked"))
        assert result == GuardrailBlocked("tenant blocked")


def _prefix(tag: str) -> FunctionGuardrail:
    return FunctionGuardrail(tag, lambda text, ctx: GuardrailModified(f"{tag}:{text}", f"added {tag}"))


class TestEvaluateGuardrails:
    """Tests for evaluate_guardrails."""

    async def test_runs_in_declaration_order(self, context: RunContext):
        """Each guardrail sees the previous guardrail's output."""
        outcomes = [o async for o in evaluate_guardrails("x", [_prefix("a"), _prefix("b")], context)]
        assert [text for _, _, text in outcomes] == ["a:x", "b:a:x"]

    async def test_stops_at_block(self, context: RunContext):
        """Nothing after a block is evaluated."""
        calls: list[str] = []

        def record(text: str, ctx: RunContext):
            calls.append(text)
            return GuardrailPassed()

        chain = [BlockPatternGuardrail(["x"]), FunctionGuardrail("after", record)]
        outcomes = [o async for o in evaluate_guardrails("x", chain, context)]

        assert len(outcomes) == 1
        assert isinstance(outcomes[0][1], GuardrailBlocked)
        assert calls == []

    async def test_exception_propagates(self, context: RunContext):
        """A raising guardrail is not converted into a block."""

        def broken(text: str, ctx: RunContext):
            raise RuntimeError("moderation service down")

        with pytest.raises(RuntimeError, match="moderation service down"):
            [o async for o in evaluate_guardrails("x", [FunctionGuardrail("broken", broken)], context)]


class TestApplyChain:
    """Tests for apply_chain."""

    async def test_empty_chain_passes(self, context: RunContext):
        """No guardrails means pass."""
        assert await apply_chain("text", [], context) == GuardrailPassed()

    async def test_all_passing_is_identity(self, context: RunContext):
        """A chain of passes leaves the input unchanged."""
        chain = [BlockPatternGuardrail(["x"]), MaxLengthGuardrail(100)]
        assert await apply_chain("hello", chain, context) == GuardrailPassed()

    async def test_modifications_compose(self, context: RunContext):
        """Modifications chain and their reasons are joined."""
        result = await apply_chain("x", [_prefix("a"), _prefix("b")], context)
        assert result == GuardrailModified("b:a:x", "added a; added b")

    async def test_first_block_wins(self, context: RunContext):
        """The first block is returned as-is."""
        chain = [_prefix("a"), MaxLengthGuardrail(2), BlockPatternGuardrail(["a"])]
        result = await apply_chain("x", chain, context)
        assert result == GuardrailBlocked("Content exceeds maximum length of 2 characters")
