"""Read-only context handed to tools and guardrails."""

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any


class RunContext(Mapping[str, Any]):
    """Opaque, read-only key/value bag supplied by the caller for one run.

    Tools and guardrails receive the same instance for the whole run. Values
    themselves are not copied, so shared mutable objects (a database handle,
    a cache) remain the caller's responsibility.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        self._values = MappingProxyType({**(values or {}), **kwargs})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"RunContext(keys={sorted(self._values)!r})"
