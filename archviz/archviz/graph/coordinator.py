"""Wires the node tree and dependency set together and drives relayout."""

from __future__ import annotations

import logging
from typing import Mapping

from ..config import Settings
from ..filters import FilterCollection, build_filter_collection
from ..relayout import ManualScheduler, RelayoutCoalescer, Scheduler
from .dependencies import Dependencies
from .interfaces import LayoutView
from .loader import VisualizationData
from .menu import Menu, ViolationMenu
from .models import ViolationsGroup
from .nodes import NodeTree, build_node

logger = logging.getLogger(__name__)


class GraphCoordinator:
    """Owns the filter collection and turns UI actions into filter updates.

    Every filter action mutates one precondition, recomputes one filter key
    (and everything depending on it) synchronously, then asks the coalescer
    for a complete relayout. Only the relayout is deferred.

    If no scheduler is given a ManualScheduler is used; its owner fires
    pending relayouts with ``run_due()``.
    """

    def __init__(
        self,
        data: VisualizationData,
        view: LayoutView | None = None,
        scheduler: Scheduler | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or Settings()
        self.styles = self.settings.styles
        self.scheduler = scheduler if scheduler is not None else ManualScheduler()
        self._coalescer = RelayoutCoalescer(self.scheduler, delay=self.settings.debounce_seconds)
        self._menu: Menu | None = None
        self._violations = list(data.violations)

        self.node_tree = NodeTree(
            build_node(data.root),
            view=view,
            styles=self.styles,
            on_name_filter_string_changed=self._on_node_filter_string_changed,
        )
        self.dependencies = Dependencies.from_json(data.dependencies, self.node_tree)

        self.node_tree.attach_dependencies(self.dependencies)
        self.node_tree.add_listener(self.dependencies.create_listener())

        self.filter_collection = self._create_filters()

        self.node_tree.fold_all_nodes()
        self.dependencies.recreate_visible()
        self.node_tree.relayout_completely()

        logger.info(
            "Graph ready: %d nodes, %d dependency types, %d violation groups",
            len(self.node_tree.all_nodes()),
            len(self.dependencies.dependency_types),
            len(self._violations),
        )

    def _create_filters(self) -> FilterCollection:
        collection = (
            build_filter_collection()
            .add_filter_group(self.node_tree.filter_group)
            .add_filter_group(self.dependencies.filter_group)
            .build()
        )

        nodes = self.node_tree.filter_group
        deps = self.dependencies.filter_group
        nodes.get_filter("typeAndName").add_dependent_filter_key("dependencies.nodeTypeAndName")
        nodes.get_filter("combinedFilter").add_dependent_filter_key("dependencies.visibleNodes")
        deps.get_filter("type").add_dependent_filter_key("nodes.visibleViolations")
        deps.get_filter("nodeTypeAndName").add_dependent_filter_key("nodes.visibleViolations")
        deps.get_filter("violations").add_dependent_filter_key("nodes.visibleViolations")

        collection.validate()
        return collection

    @property
    def violations(self) -> list[ViolationsGroup]:
        return list(self._violations)

    @property
    def relayout_pending(self) -> bool:
        return self._coalescer.is_pending

    def _update_filter_and_relayout(self, filter_key: str) -> None:
        self.node_tree.schedule_action(lambda: self.filter_collection.update_filter(filter_key))
        self._coalescer.schedule_relayout(self.node_tree.enforce_complete_relayout)

    # -- filter actions ------------------------------------------------

    def filter_nodes_by_name(self, filter_string: str) -> None:
        self.node_tree.name_filter_string = filter_string
        self._update_filter_and_relayout("nodes.name")

    def filter_nodes_by_type(self, show_interfaces: bool, show_classes: bool) -> None:
        self.node_tree.change_type_filter(show_interfaces, show_classes)
        self._update_filter_and_relayout("nodes.type")

    def filter_dependencies_by_type(self, config: Mapping[str, bool]) -> None:
        self.dependencies.change_type_filter(config)
        self._update_filter_and_relayout("dependencies.type")

    def set_hide_nodes_without_violations(self, hide: bool) -> None:
        f = self.filter_collection.get_filter("nodes.visibleViolations")
        f.precondition.filter_is_enabled = hide
        self._update_filter_and_relayout("nodes.visibleViolations")

    def set_hide_dependencies_without_violations(self, hide: bool) -> None:
        f = self.filter_collection.get_filter("dependencies.violations")
        f.precondition.filter_is_enabled = hide
        self._update_filter_and_relayout("dependencies.violations")

    def show_violations(self, group: ViolationsGroup) -> None:
        self.dependencies.show_violations(group)
        self._update_filter_and_relayout("dependencies.violations")

    def hide_violations(self, group: ViolationsGroup) -> None:
        self.dependencies.hide_violations(group)
        self._update_filter_and_relayout("dependencies.violations")

    def _on_node_filter_string_changed(self, filter_string: str) -> None:
        if self._menu is not None:
            self._menu.change_node_name_filter(filter_string)
        self._update_filter_and_relayout("nodes.name")

    # -- direct actions (not debounced) --------------------------------

    def unfold_nodes_to_show_all_violations(self) -> None:
        for node in self.dependencies.get_nodes_containing_violations():
            node.call_on_every_predecessor_then_self(lambda n: n.unfold())
        self.dependencies.recreate_visible()
        self.node_tree.relayout_completely()

    def fold_nodes_without_violations(self) -> None:
        self.node_tree.fold_nodes_with_minimum_depth_that_have_not_descendants(
            self.dependencies.get_nodes_involved_in_visible_violations()
        )
        self.dependencies.recreate_visible()
        self.node_tree.relayout_completely()

    def change_settings(self, node_font_size: int, circle_padding: int) -> None:
        self.styles.set_node_font_size(node_font_size)
        self.styles.set_circle_padding(circle_padding)
        self.node_tree.enforce_complete_relayout()

    # -- menus ---------------------------------------------------------

    def attach_to_menu(self, menu: Menu) -> None:
        self._menu = menu
        (
            menu.initialize_settings(self.styles.get_node_font_size(), self.styles.get_circle_padding())
            .on_settings_changed(self.change_settings)
            .on_node_type_filter_changed(self.filter_nodes_by_type)
            .initialize_dependency_filter(self.dependencies.dependency_types)
            .on_dependency_filter_changed(self.filter_dependencies_by_type)
            .on_node_name_filter_changed(self.filter_nodes_by_name)
        )

    def attach_to_violation_menu(self, menu: ViolationMenu) -> None:
        menu.initialize(self._violations, self.show_violations, self.hide_violations)
        menu.on_hide_all_dependencies_changed(self.set_hide_dependencies_without_violations)
        menu.on_hide_nodes_without_violations_changed(self.set_hide_nodes_without_violations)
        menu.on_click_unfold_nodes_to_show_all_violations(self.unfold_nodes_to_show_all_violations)
        menu.on_click_fold_nodes_to_hide_nodes_without_violations(self.fold_nodes_without_violations)


def create_graph(
    data: VisualizationData,
    view: LayoutView | None = None,
    scheduler: Scheduler | None = None,
    settings: Settings | None = None,
) -> GraphCoordinator:
    return GraphCoordinator(data, view=view, scheduler=scheduler, settings=settings)
