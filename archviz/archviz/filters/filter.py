"""Named filters and the groups that own them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterator

from ..errors import ConfigurationError, FilterNotFoundError


@dataclass
class FilterPrecondition:
    """Mutable switch deciding whether a filter restricts anything."""

    filter_is_enabled: bool = True


class Filter:
    """A single named predicate.

    The result is ``None`` while the filter is disabled (no restriction),
    otherwise the frozenset of items that pass. Filters are mutated in
    place and never replaced, so references held by other components stay
    valid.
    """

    def __init__(
        self,
        group_name: str,
        name: str,
        compute: Callable[[], frozenset[Any]],
        enabled: bool = True,
    ):
        self.group_name = group_name
        self.name = name
        self.precondition = FilterPrecondition(filter_is_enabled=enabled)
        self.result: frozenset[Any] | None = None
        self.revision = 0  # bumped on every recompute
        self._compute = compute
        self._dependent_keys: dict[str, None] = {}  # ordered set

    @property
    def key(self) -> str:
        return f"{self.group_name}.{self.name}"

    @property
    def dependent_keys(self) -> list[str]:
        return list(self._dependent_keys)

    def add_dependent_filter_key(self, key: str) -> None:
        """Declare that recomputing this filter requires recomputing `key`."""
        self._dependent_keys.setdefault(key, None)

    def recompute(self) -> frozenset[Any] | None:
        if self.precondition.filter_is_enabled:
            self.result = frozenset(self._compute())
        else:
            self.result = None
        self.revision += 1
        return self.result

    def passes(self, item: Any) -> bool:
        return self.result is None or item in self.result

    def __repr__(self) -> str:
        state = "on" if self.precondition.filter_is_enabled else "off"
        return f"Filter({self.key!r}, {state})"


class FilterGroup:
    """Ordered namespace of filters owned by one component."""

    def __init__(self, name: str):
        if not name or "." in name:
            raise ConfigurationError(f"Invalid filter group name: {name!r}")
        self.name = name
        self._filters: dict[str, Filter] = {}

    def add_filter(
        self,
        name: str,
        compute: Callable[[], frozenset[Any]],
        enabled: bool = True,
    ) -> Filter:
        if name in self._filters:
            raise ConfigurationError(f"Filter '{self.name}.{name}' registered twice")
        f = Filter(self.name, name, compute, enabled=enabled)
        self._filters[name] = f
        return f

    def get_filter(self, name: str) -> Filter:
        try:
            return self._filters[name]
        except KeyError:
            raise FilterNotFoundError(name, scope=f"group '{self.name}'") from None

    @property
    def filters(self) -> list[Filter]:
        return list(self._filters.values())

    def __iter__(self) -> Iterator[Filter]:
        return iter(list(self._filters.values()))

    def __len__(self) -> int:
        return len(self._filters)
