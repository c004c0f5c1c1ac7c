"""Hierarchical node tree with folding and the ``nodes`` filter group."""

from __future__ import annotations

import fnmatch
import logging
from typing import Any, Callable, Iterable, Iterator

from ..config import VisualizationStyles
from ..errors import ConfigurationError
from ..filters import FilterGroup
from .interfaces import DependencySource, FoldListener, LayoutView, NullView
from .models import NODE_TYPES, LayoutSnapshot

logger = logging.getLogger(__name__)


class Node:
    """A package, class or interface in the tree."""

    def __init__(self, full_name: str, name: str, type: str, parent: "Node | None" = None):
        if type not in NODE_TYPES:
            raise ValueError(f"Unknown node type '{type}' for {full_name}")
        self.full_name = full_name
        self.name = name
        self.type = type
        self.parent = parent
        self.children: list[Node] = []
        self._folded = False
        self._tree: NodeTree | None = None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def is_package(self) -> bool:
        return self.type == "package"

    @property
    def is_folded(self) -> bool:
        return self._folded

    @property
    def depth(self) -> int:
        return sum(1 for _ in self.predecessors())

    def add_child(self, child: "Node") -> "Node":
        child.parent = self
        self.children.append(child)
        return child

    def predecessors(self) -> Iterator["Node"]:
        """Ancestors from the parent up to the root."""
        cur = self.parent
        while cur is not None:
            yield cur
            cur = cur.parent

    def call_on_every_predecessor_then_self(self, fn: Callable[["Node"], Any]) -> None:
        for p in reversed(list(self.predecessors())):
            fn(p)
        fn(self)

    def self_and_descendants(self) -> Iterator["Node"]:
        yield self
        for child in self.children:
            yield from child.self_and_descendants()

    def is_predecessor_of(self, other: "Node") -> bool:
        return any(p is self for p in other.predecessors())

    def _set_folded(self, folded: bool) -> bool:
        if self.is_root or self.is_leaf or self._folded == folded:
            return False
        self._folded = folded
        return True

    def fold(self) -> bool:
        changed = self._set_folded(True)
        if changed and self._tree is not None:
            self._tree._fold_changed(self)
        return changed

    def unfold(self) -> bool:
        changed = self._set_folded(False)
        if changed and self._tree is not None:
            self._tree._fold_changed(self)
        return changed

    def toggle_fold(self) -> bool:
        return self.unfold() if self._folded else self.fold()

    def __repr__(self) -> str:
        return f"Node({self.full_name!r}, {self.type})"


def _matches(term: str, node: Node) -> bool:
    return fnmatch.fnmatchcase(node.full_name, f"*{term}*")


def parse_name_filter(filter_string: str) -> tuple[list[str], list[str]]:
    """Split a name filter into include and exclude terms.

    Terms are separated by ``|``; a leading ``~`` excludes; ``*`` is a
    wildcard. Everything else is matched as a substring of the full name.
    """
    includes: list[str] = []
    excludes: list[str] = []
    for raw in filter_string.split("|"):
        term = raw.strip()
        if term.startswith("~"):
            term = term[1:].strip()
            if term:
                excludes.append(term)
        elif term:
            includes.append(term)
    return includes, excludes


class NodeTree:
    """Owns the node hierarchy, its fold state and the ``nodes`` filters.

    Filters, in order: ``type``, ``name``, ``typeAndName``,
    ``visibleViolations`` and ``combinedFilter``. The last one decides which
    nodes may be shown; folding decides which of those are reachable.
    """

    def __init__(
        self,
        root: Node,
        view: LayoutView | None = None,
        styles: VisualizationStyles | None = None,
        on_name_filter_string_changed: Callable[[str], None] | None = None,
    ):
        self.root = root
        self.view = view if view is not None else NullView()
        self.styles = styles if styles is not None else VisualizationStyles()
        self._on_name_filter_string_changed = on_name_filter_string_changed
        self._dependencies: DependencySource | None = None
        self._listeners: list[FoldListener] = []

        self._by_full_name: dict[str, Node] = {}
        for node in root.self_and_descendants():
            if node.full_name in self._by_full_name:
                raise ValueError(f"Duplicate node '{node.full_name}'")
            self._by_full_name[node.full_name] = node
            node._tree = self

        self._show_interfaces = True
        self._show_classes = True
        self._name_filter_string = ""
        self._layout_stale = True
        self.layout_count = 0
        self.last_snapshot: LayoutSnapshot | None = None

        self.filter_group = FilterGroup("nodes")
        self._type = self.filter_group.add_filter("type", self._compute_type, enabled=False)
        self._name = self.filter_group.add_filter("name", self._compute_name, enabled=False)
        self._type_and_name = self.filter_group.add_filter("typeAndName", self._compute_type_and_name)
        self._visible_violations = self.filter_group.add_filter(
            "visibleViolations", self._compute_visible_violations, enabled=False
        )
        self._combined = self.filter_group.add_filter("combinedFilter", self._compute_combined)

        self._type.add_dependent_filter_key("nodes.typeAndName")
        self._name.add_dependent_filter_key("nodes.typeAndName")
        self._type_and_name.add_dependent_filter_key("nodes.combinedFilter")
        self._visible_violations.add_dependent_filter_key("nodes.combinedFilter")

    # -- collaborators -------------------------------------------------

    def attach_dependencies(self, dependencies: DependencySource) -> None:
        if self._dependencies is not None:
            raise ConfigurationError("Dependencies already attached to node tree")
        self._dependencies = dependencies

    def add_listener(self, listener: FoldListener) -> None:
        self._listeners.append(listener)

    def _require_dependencies(self) -> DependencySource:
        if self._dependencies is None:
            raise ConfigurationError("Node tree used before dependencies were attached")
        return self._dependencies

    # -- lookup --------------------------------------------------------

    def get_by_full_name(self, full_name: str) -> Node:
        return self._by_full_name[full_name]

    def __contains__(self, full_name: str) -> bool:
        return full_name in self._by_full_name

    def all_nodes(self) -> list[Node]:
        return list(self._by_full_name.values())

    # -- filter preconditions -----------------------------------------

    @property
    def name_filter_string(self) -> str:
        return self._name_filter_string

    @name_filter_string.setter
    def name_filter_string(self, value: str) -> None:
        self._name_filter_string = value or ""
        self._name.precondition.filter_is_enabled = bool(self._name_filter_string.strip())

    def change_type_filter(self, show_interfaces: bool, show_classes: bool) -> None:
        self._show_interfaces = show_interfaces
        self._show_classes = show_classes
        self._type.precondition.filter_is_enabled = not (show_interfaces and show_classes)

    def exclude_from_name_filter(self, node: Node) -> str:
        """Append an exclusion for `node` and report the new filter string."""
        current = self._name_filter_string.strip()
        term = f"~{node.full_name}"
        self.name_filter_string = f"{current}|{term}" if current else term
        if self._on_name_filter_string_changed is not None:
            self._on_name_filter_string_changed(self._name_filter_string)
        return self._name_filter_string

    # -- filter computations -------------------------------------------

    def _compute_type(self) -> frozenset[Node]:
        shown = {"interface": self._show_interfaces, "class": self._show_classes}
        passing: set[Node] = set()

        def visit(node: Node, enclosing_ok: bool) -> bool:
            if node.is_package:
                hits = [visit(c, True) for c in node.children]
                ok = node.is_root or any(hits)
            else:
                ok = enclosing_ok and shown[node.type]
                for c in node.children:
                    visit(c, ok)
            if ok:
                passing.add(node)
            return ok

        visit(self.root, True)
        return frozenset(passing)

    def _compute_name(self) -> frozenset[Node]:
        includes, excludes = parse_name_filter(self._name_filter_string)
        passing: set[Node] = set()

        def visit(node: Node, ancestor_excluded: bool) -> bool:
            excluded = ancestor_excluded or any(_matches(t, node) for t in excludes)
            hits = [visit(c, excluded) for c in node.children]
            own = not includes or any(_matches(t, node) for t in includes)
            ok = node.is_root or (not excluded and (own or any(hits)))
            if ok:
                passing.add(node)
            return ok

        visit(self.root, False)
        return frozenset(passing)

    def _closed(self, predicate: Callable[[Node], bool]) -> frozenset[Node]:
        """Nodes satisfying `predicate` whose ancestors all satisfy it too."""
        passing: set[Node] = set()
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.is_root or predicate(node):
                passing.add(node)
                stack.extend(node.children)
        return frozenset(passing)

    def _compute_type_and_name(self) -> frozenset[Node]:
        return self._closed(lambda n: self._type.passes(n) and self._name.passes(n))

    def _compute_visible_violations(self) -> frozenset[Node]:
        involved = self._require_dependencies().get_visible_violations_node_filter()
        return frozenset(n for n in self._by_full_name.values() if n.is_root or involved(n))

    def _compute_combined(self) -> frozenset[Node]:
        return self._closed(
            lambda n: self._type_and_name.passes(n) and self._visible_violations.passes(n)
        )

    def passes_type_and_name(self, node: Node) -> bool:
        return self._type_and_name.passes(node)

    def passes_combined_filter(self, node: Node) -> bool:
        return self._combined.passes(node)

    # -- visibility and folding ----------------------------------------

    def is_visible(self, node: Node) -> bool:
        if not self._combined.passes(node):
            return False
        return all(not p.is_folded and self._combined.passes(p) for p in node.predecessors())

    def visible_nodes(self) -> list[Node]:
        """Visible nodes in depth-first tree order."""
        result: list[Node] = []

        def visit(node: Node) -> None:
            if not self._combined.passes(node):
                return
            result.append(node)
            if not node.is_folded:
                for c in node.children:
                    visit(c)

        visit(self.root)
        return result

    def _fold_changed(self, node: Node) -> None:
        self._layout_stale = True
        for listener in self._listeners:
            listener.on_fold_changed(node)

    def fold_all_nodes(self) -> None:
        changed = [n for n in self._by_full_name.values() if n._set_folded(True)]
        if changed:
            self._fold_changed(self.root)

    def unfold_all_nodes(self) -> None:
        changed = [n for n in self._by_full_name.values() if n._set_folded(False)]
        if changed:
            self._fold_changed(self.root)

    def fold_nodes_with_minimum_depth_that_have_not_descendants(self, nodes: Iterable[Node]) -> None:
        """Fold the shallowest nodes whose subtree contains none of `nodes`."""
        keep: set[Node] = set()
        for n in nodes:
            keep.add(n)
            keep.update(n.predecessors())

        changed = False
        stack = list(self.root.children)
        while stack:
            node = stack.pop()
            if node in keep:
                stack.extend(node.children)
            elif node._set_folded(True):
                changed = True
        if changed:
            self._fold_changed(self.root)

    # -- relayout ------------------------------------------------------

    def schedule_action(self, action: Callable[[], Any]) -> Any:
        """Run `action` now and mark the layout as needing a pass."""
        result = action()
        self._layout_stale = True
        return result

    def relayout_completely(self) -> bool:
        """Run a layout pass if anything changed since the last one."""
        if not self._layout_stale:
            logger.debug("Layout is current, skipping relayout")
            return False
        self._run_layout()
        return True

    def enforce_complete_relayout(self) -> None:
        self._run_layout()

    def _run_layout(self) -> None:
        visible = self.visible_nodes()
        deps = self._dependencies.get_all_dependencies() if self._dependencies is not None else []
        snapshot = LayoutSnapshot(
            nodes=tuple(n.full_name for n in visible),
            folded=tuple(n.full_name for n in visible if n.is_folded),
            dependencies=tuple(deps),
            node_font_size=self.styles.get_node_font_size(),
            circle_padding=self.styles.get_circle_padding(),
        )
        self._layout_stale = False
        self.layout_count += 1
        self.last_snapshot = snapshot
        logger.debug(
            "Layout pass %d: %d nodes, %d dependencies",
            self.layout_count,
            len(snapshot.nodes),
            len(snapshot.dependencies),
        )
        self.view.render(snapshot)

    # -- dependency queries --------------------------------------------

    def get_dependencies_of_node(self, node: Node) -> list:
        return self._require_dependencies().get_dependencies_of_node(node)

    def get_dependencies_directly_within_node(self, node: Node) -> list:
        return self._require_dependencies().get_dependencies_directly_within_node(node)

    def get_dependencies_of_leaves_within_node(self, node: Node) -> list:
        return self._require_dependencies().get_dependencies_of_leaves_within_node(node)


def build_node(data: dict, parent: Node | None = None) -> Node:
    """Build a node subtree from its JSON form."""
    try:
        full_name = str(data["fullName"])
        name = str(data.get("name") or full_name.rsplit(".", 1)[-1])
        node_type = str(data.get("type", "package"))
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed node entry: {data!r}") from e

    node = Node(full_name, name, node_type)
    if parent is not None:
        parent.add_child(node)
    children = data.get("children") or []
    if not isinstance(children, list):
        raise ValueError(f"'children' of {full_name} must be a list")
    for child in children:
        build_node(child, node)
    return node
