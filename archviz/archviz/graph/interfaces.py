"""Collaborator contracts between the node tree, dependency set and view.

Each component receives its collaborator once, during graph construction,
and never re-binds it afterwards.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

from .models import LayoutSnapshot, VisibleDependency

if TYPE_CHECKING:
    from .nodes import Node


@runtime_checkable
class DependencySource(Protocol):
    """What the node tree asks of the dependency set."""

    def get_all_dependencies(self) -> list[VisibleDependency]: ...

    def get_visible_violations_node_filter(self) -> Callable[["Node"], bool]: ...

    def get_dependencies_directly_within_node(self, node: "Node") -> list[VisibleDependency]: ...

    def get_dependencies_of_node(self, node: "Node") -> list[VisibleDependency]: ...

    def get_dependencies_of_leaves_within_node(self, node: "Node") -> list: ...


@runtime_checkable
class FoldListener(Protocol):
    """Told whenever a node folds or unfolds."""

    def on_fold_changed(self, node: "Node") -> None: ...


@runtime_checkable
class LayoutView(Protocol):
    """Rendering side: receives the result of every relayout pass."""

    def render(self, snapshot: LayoutSnapshot) -> None: ...


class NullView:
    """View that keeps the last snapshot and renders nothing."""

    def __init__(self) -> None:
        self.snapshot: LayoutSnapshot | None = None
        self.render_count = 0

    def render(self, snapshot: LayoutSnapshot) -> None:
        self.snapshot = snapshot
        self.render_count += 1
