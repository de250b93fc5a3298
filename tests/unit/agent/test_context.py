"""Unit tests for RunContext."""

import pytest

from agent_runtime.agent.context import RunContext


class TestRunContext:
    """Tests for RunContext."""

    def test_empty(self):
        """A context can be empty."""
        assert len(RunContext()) == 0

    def test_values_and_kwargs_merge(self):
        """Keyword values override mapping values."""
        context = RunContext({"user": "alice", "tenant": "a"}, tenant="b")
        assert dict(context) == {"user": "alice", "tenant": "b"}

    def test_read_only(self):
        """Contexts cannot be mutated."""
        context = RunContext(user="alice")
        with pytest.raises(TypeError):
            context["user"] = "mallory"  # type: ignore[index]

    def test_source_mapping_is_copied(self):
        """Later changes to the source mapping are not visible."""
        source = {"user": "alice"}
        context = RunContext(source)
        source["user"] = "mallory"
        assert context["user"] == "alice"

    def test_repr_hides_values(self):
        """repr lists keys only."""
        assert repr(RunContext(token="secret")) == "RunContext(keys=['token'])"
