"""Dependency set, violation visibility and the ``dependencies`` filter group."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping

from ..filters import FilterGroup
from .models import Dependency, ViolationsGroup, VisibleDependency
from .nodes import Node, NodeTree

logger = logging.getLogger(__name__)

INNER_CLASSES_KEY = "inner_classes"


class _FoldListener:
    def __init__(self, dependencies: "Dependencies"):
        self._dependencies = dependencies

    def on_fold_changed(self, node: Node) -> None:
        self._dependencies._fold_revision += 1


class Dependencies:
    """All dependencies of the graph and the subset currently shown.

    Filters, in order: ``type``, ``nodeTypeAndName``, ``violations`` and
    ``visibleNodes``. A dependency is shown when it passes all four; it is
    then drawn between the visible nodes that contain its endpoints.
    """

    def __init__(self, dependencies: Iterable[Dependency], node_tree: NodeTree):
        self._node_tree = node_tree
        self._all: list[Dependency] = list(dependencies)
        self.dependency_types: list[str] = sorted({d.type for d in self._all})

        self._descriptions = {d.description for d in self._all}
        self._visible_groups: dict[str, ViolationsGroup] = {}
        self._violating: set[str] = set()

        self._type_config: dict[str, bool] = {t: True for t in self.dependency_types}
        self._show_inner_class_dependencies = True

        self.filter_group = FilterGroup("dependencies")
        self._type = self.filter_group.add_filter("type", self._compute_type, enabled=False)
        self._node_type_and_name = self.filter_group.add_filter(
            "nodeTypeAndName", self._compute_node_type_and_name
        )
        self._violations = self.filter_group.add_filter(
            "violations", self._compute_violations, enabled=False
        )
        self._visible_nodes = self.filter_group.add_filter("visibleNodes", self._compute_visible_nodes)

        self._fold_revision = 0
        self._violations_revision = 0
        self._visible: list[VisibleDependency] = []
        self._visible_state: tuple | None = None

    @classmethod
    def from_json(cls, entries: Iterable[dict], node_tree: NodeTree) -> "Dependencies":
        deps = []
        for entry in entries:
            try:
                origin = node_tree.get_by_full_name(str(entry["originClass"]))
                target = node_tree.get_by_full_name(str(entry["targetClass"]))
                dep_type = str(entry["type"])
            except KeyError as e:
                raise ValueError(f"Dependency refers to unknown node or lacks a field: {e}") from e
            except TypeError as e:
                raise ValueError(f"Malformed dependency entry: {entry!r}") from e
            deps.append(Dependency(origin, target, dep_type, str(entry.get("description", ""))))
        return cls(deps, node_tree)

    def create_listener(self) -> _FoldListener:
        return _FoldListener(self)

    # -- filter preconditions -----------------------------------------

    def change_type_filter(self, config: Mapping[str, bool]) -> None:
        """Show or hide dependency types.

        `config` maps dependency types to visibility; the ``inner_classes``
        key controls dependencies between a class and its inner classes.
        Types not mentioned keep their current setting. An unknown key
        raises ValueError and leaves the configuration untouched.
        """
        unknown = [k for k in config if k != INNER_CLASSES_KEY and k not in self._type_config]
        if unknown:
            raise ValueError(f"Unknown dependency type(s): {', '.join(map(repr, unknown))}")
        for key, shown in config.items():
            if key == INNER_CLASSES_KEY:
                self._show_inner_class_dependencies = bool(shown)
            else:
                self._type_config[key] = bool(shown)
        self._type.precondition.filter_is_enabled = (
            not all(self._type_config.values()) or not self._show_inner_class_dependencies
        )

    @property
    def type_config(self) -> dict[str, bool]:
        config = dict(self._type_config)
        config[INNER_CLASSES_KEY] = self._show_inner_class_dependencies
        return config

    def show_violations(self, group: ViolationsGroup) -> None:
        group.is_visible = True
        self._visible_groups[group.rule] = group
        unmatched = [v for v in group.violations if v not in self._descriptions]
        if unmatched:
            logger.warning(
                "%d violation(s) of rule '%s' match no dependency", len(unmatched), group.rule
            )
        self._refresh_violating()

    def hide_violations(self, group: ViolationsGroup) -> None:
        group.is_visible = False
        self._visible_groups.pop(group.rule, None)
        self._refresh_violating()

    def _refresh_violating(self) -> None:
        self._violating = {v for g in self._visible_groups.values() for v in g.violations}
        self._violations_revision += 1

    def is_visible_violation(self, dependency: Dependency) -> bool:
        return dependency.description in self._violating

    # -- filter computations -------------------------------------------

    def _compute_type(self) -> frozenset[Dependency]:
        return frozenset(
            d
            for d in self._all
            if self._type_config.get(d.type, True)
            and (self._show_inner_class_dependencies or not d.is_between_class_and_inner_class)
        )

    def _compute_node_type_and_name(self) -> frozenset[Dependency]:
        tree = self._node_tree
        return frozenset(
            d for d in self._all if tree.passes_type_and_name(d.origin) and tree.passes_type_and_name(d.target)
        )

    def _compute_violations(self) -> frozenset[Dependency]:
        return frozenset(d for d in self._all if self.is_visible_violation(d))

    def _compute_visible_nodes(self) -> frozenset[Dependency]:
        tree = self._node_tree
        return frozenset(
            d
            for d in self._all
            if tree.passes_combined_filter(d.origin) and tree.passes_combined_filter(d.target)
        )

    def passing(self) -> list[Dependency]:
        filters = self.filter_group.filters
        return [d for d in self._all if all(f.passes(d) for f in filters)]

    def _visible_violation_dependencies(self) -> list[Dependency]:
        return [
            d
            for d in self._all
            if self.is_visible_violation(d)
            and self._type.passes(d)
            and self._node_type_and_name.passes(d)
            and self._violations.passes(d)
        ]

    # -- visible dependencies ------------------------------------------

    def recreate_visible(self) -> list[VisibleDependency]:
        """Lift every passing dependency onto the visible nodes containing it."""
        merged: dict[tuple[Node, Node], VisibleDependency] = {}
        for d in self.passing():
            origin, target = _lift(d.origin), _lift(d.target)
            if origin is target:
                continue
            visible = merged.get((origin, target))
            if visible is None:
                visible = merged[(origin, target)] = VisibleDependency(origin, target)
            if d.type not in visible.types:
                visible.types.append(d.type)
            visible.descriptions.append(d.description)
            visible.is_violation = visible.is_violation or self.is_visible_violation(d)

        self._visible = list(merged.values())
        self._visible_state = self._current_state()
        logger.debug("Recreated %d visible dependencies", len(self._visible))
        return list(self._visible)

    def _current_state(self) -> tuple:
        return (
            tuple(f.revision for f in self.filter_group),
            self._fold_revision,
            self._violations_revision,
        )

    def _ensure_visible(self) -> list[VisibleDependency]:
        if self._visible_state != self._current_state():
            self.recreate_visible()
        return self._visible

    def get_all_dependencies(self) -> list[VisibleDependency]:
        return list(self._ensure_visible())

    def get_dependencies_of_node(self, node: Node) -> list[VisibleDependency]:
        return [v for v in self._ensure_visible() if v.origin is node or v.target is node]

    def get_dependencies_directly_within_node(self, node: Node) -> list[VisibleDependency]:
        return [v for v in self._ensure_visible() if v.origin.parent is node and v.target.parent is node]

    def get_dependencies_of_leaves_within_node(self, node: Node) -> list[Dependency]:
        def within(n: Node) -> bool:
            return n is node or node.is_predecessor_of(n)

        return [d for d in self.passing() if within(d.origin) or within(d.target)]

    # -- violations ----------------------------------------------------

    def get_visible_violations_node_filter(self) -> Callable[[Node], bool]:
        involved: set[Node] = set()
        for d in self._visible_violation_dependencies():
            for endpoint in (d.origin, d.target):
                involved.add(endpoint)
                involved.update(endpoint.predecessors())
        return lambda node: node in involved

    def get_nodes_involved_in_visible_violations(self) -> set[Node]:
        return {n for d in self._visible_violation_dependencies() for n in (d.origin, d.target)}

    def get_nodes_containing_violations(self) -> set[Node]:
        return {
            n.parent for n in self.get_nodes_involved_in_visible_violations() if n.parent is not None
        }


def _lift(node: Node) -> Node:
    """The highest folded ancestor of `node`, or `node` itself."""
    lifted = node
    for p in node.predecessors():
        if p.is_folded:
            lifted = p
    return lifted
