"""Global filter registry with cascading recomputation.

The collection flattens every FilterGroup into one index keyed by
``"<group>.<filter>"``. Filters declare dependent keys; recomputing a filter
recomputes each of its dependents afterwards, depth-first in declaration
order.

The collection holds references to filters owned by their groups. It must
not outlive the components that created those groups.
"""

from __future__ import annotations

import logging
from typing import Iterator

from ..errors import ConfigurationError, FilterCycleError, FilterNotFoundError
from .filter import Filter, FilterGroup

logger = logging.getLogger(__name__)


class FilterCollection:
    """Flattened, fixed-shape view over a sequence of filter groups."""

    def __init__(self, groups: list[FilterGroup]):
        self._groups = tuple(groups)
        self._index: dict[str, Filter] = {}
        for group in self._groups:
            for f in group:
                self._index[f.key] = f

    @property
    def groups(self) -> tuple[FilterGroup, ...]:
        return self._groups

    def keys(self) -> list[str]:
        return list(self._index)

    def __contains__(self, key: str) -> bool:
        return key in self._index

    def __iter__(self) -> Iterator[Filter]:
        return iter(list(self._index.values()))

    def get_filter(self, key: str) -> Filter:
        try:
            return self._index[key]
        except KeyError:
            raise FilterNotFoundError(key) from None

    def dependency_edges(self) -> list[tuple[str, str]]:
        """All declared (filter, dependent) key pairs in declaration order."""
        return [(f.key, dep) for f in self._index.values() for dep in f.dependent_keys]

    def validate(self) -> None:
        """Check that every dependent key exists and no cycle is declared.

        Raises:
            FilterNotFoundError: a dependent key names an unknown filter
            FilterCycleError: the dependent-key graph has a cycle
        """
        for src, dst in self.dependency_edges():
            if dst not in self._index:
                raise FilterNotFoundError(dst, scope=f"collection (dependent of '{src}')")

        done: set[str] = set()

        def visit(key: str, path: list[str]) -> None:
            if key in path:
                raise FilterCycleError(path[path.index(key):] + [key])
            if key in done:
                return
            path.append(key)
            for dep in self._index[key].dependent_keys:
                visit(dep, path)
            path.pop()
            done.add(key)

        for key in self._index:
            visit(key, [])

    def update_filter(self, key: str) -> list[str]:
        """Recompute `key` and, transitively, every dependent filter.

        Traversal is depth-first in declaration order. A filter reachable
        through several paths is recomputed once per path. The current path
        is tracked so a cycle fails fast instead of looping.

        Returns:
            Keys in the order they were recomputed
        """
        visited: list[str] = []
        root = self.get_filter(key)
        root.recompute()
        visited.append(key)

        path = [key]
        stack: list[Iterator[str]] = [iter(root.dependent_keys)]
        while stack:
            dep = next(stack[-1], None)
            if dep is None:
                stack.pop()
                path.pop()
                continue
            if dep in path:
                raise FilterCycleError(path[path.index(dep):] + [dep])
            f = self.get_filter(dep)
            f.recompute()
            visited.append(dep)
            path.append(dep)
            stack.append(iter(f.dependent_keys))

        logger.debug("Updated filter %s -> %s", key, ", ".join(visited[1:]) or "(no dependents)")
        return visited


class FilterCollectionBuilder:
    """Accumulates filter groups, then freezes them into a collection."""

    def __init__(self) -> None:
        self._groups: list[FilterGroup] = []

    def add_filter_group(self, group: FilterGroup) -> "FilterCollectionBuilder":
        if any(g.name == group.name for g in self._groups):
            raise ConfigurationError(f"Filter group '{group.name}' added twice")
        self._groups.append(group)
        return self

    def build(self) -> FilterCollection:
        return FilterCollection(self._groups)


def build_filter_collection() -> FilterCollectionBuilder:
    return FilterCollectionBuilder()
