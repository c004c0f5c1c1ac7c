"""Tests for the graph coordinator: filter wiring, relayout and menus."""

from __future__ import annotations

import pytest

from archviz.config import Settings
from archviz.graph import CallbackMenu, GraphCoordinator, Menu, ViolationMenu, create_graph
from archviz.relayout import ManualScheduler

CORE_RULE = "core should not depend on web"
UTIL_RULE = "web should not use util"


def _visible(graph: GraphCoordinator) -> list[str]:
    return [n.full_name for n in graph.node_tree.visible_nodes()]


def test_construction_folds_everything_and_lays_out_once(graph, view):
    assert graph.node_tree.layout_count == 1
    assert view.render_count == 1
    assert view.snapshot.nodes == (
        "com.example",
        "com.example.core",
        "com.example.web",
        "com.example.util",
    )
    assert view.snapshot.folded == ("com.example.core", "com.example.web", "com.example.util")
    assert len(view.snapshot.dependencies) == 3
    assert not graph.relayout_pending


def test_cross_component_filter_edges_are_declared(graph):
    edges = graph.filter_collection.dependency_edges()

    for edge in [
        ("nodes.typeAndName", "dependencies.nodeTypeAndName"),
        ("nodes.combinedFilter", "dependencies.visibleNodes"),
        ("dependencies.type", "nodes.visibleViolations"),
        ("dependencies.nodeTypeAndName", "nodes.visibleViolations"),
        ("dependencies.violations", "nodes.visibleViolations"),
        ("nodes.type", "nodes.typeAndName"),
        ("nodes.name", "nodes.typeAndName"),
        ("nodes.typeAndName", "nodes.combinedFilter"),
        ("nodes.visibleViolations", "nodes.combinedFilter"),
    ]:
        assert edge in edges


def test_name_filter_cascade_order(graph):
    visited = graph.filter_collection.update_filter("nodes.name")

    assert visited == [
        "nodes.name",
        "nodes.typeAndName",
        "nodes.combinedFilter",
        "dependencies.visibleNodes",
        "dependencies.nodeTypeAndName",
        "nodes.visibleViolations",
        "nodes.combinedFilter",
        "dependencies.visibleNodes",
    ]


def test_filter_applies_synchronously_relayout_is_deferred(graph, view, scheduler):
    graph.filter_nodes_by_name("Controller")

    assert _visible(graph) == ["com.example", "com.example.web"]
    assert graph.dependencies.get_all_dependencies() == []
    assert graph.relayout_pending
    assert view.render_count == 1

    scheduler.run_due()

    assert not graph.relayout_pending
    assert view.render_count == 2
    assert view.snapshot.nodes == ("com.example", "com.example.web")
    assert view.snapshot.dependencies == ()


def test_burst_of_filter_changes_relayouts_once(graph, view, scheduler):
    graph.filter_nodes_by_name("c")
    graph.filter_nodes_by_name("co")
    graph.filter_nodes_by_type(show_interfaces=False, show_classes=True)
    graph.filter_nodes_by_name("core")

    assert scheduler.pending() == 1
    scheduler.run_due()

    assert view.render_count == 2
    assert view.snapshot.nodes == ("com.example", "com.example.core")


def test_debounce_delay_comes_from_settings(visualization_data, view):
    scheduler = ManualScheduler()
    graph = GraphCoordinator(
        visualization_data, view=view, scheduler=scheduler, settings=Settings(debounce_seconds=0.5)
    )

    graph.filter_nodes_by_name("web")
    scheduler.advance(0.25)
    graph.filter_nodes_by_name("util")
    scheduler.advance(0.25)
    assert view.render_count == 1

    scheduler.advance(0.25)
    assert view.render_count == 2
    assert view.snapshot.nodes == ("com.example", "com.example.util")


def test_hide_nodes_without_violations_round_trip(graph):
    graph.node_tree.unfold_all_nodes()
    graph.show_violations(graph.violations[0])
    graph.filter_nodes_by_name("core|web")
    before = _visible(graph)
    assert "com.example.util" not in before

    graph.set_hide_nodes_without_violations(True)
    assert _visible(graph) == [
        "com.example",
        "com.example.core",
        "com.example.core.Service",
        "com.example.web",
        "com.example.web.Api",
    ]

    graph.set_hide_nodes_without_violations(False)
    assert _visible(graph) == before


def test_hide_nodes_without_violations_with_nothing_shown(graph):
    before = _visible(graph)

    graph.set_hide_nodes_without_violations(True)
    assert _visible(graph) == ["com.example"]

    graph.set_hide_nodes_without_violations(False)
    assert _visible(graph) == before


def test_hide_nodes_without_violations_keeps_violation_paths(graph):
    graph.node_tree.unfold_all_nodes()
    graph.show_violations(graph.violations[0])
    graph.set_hide_nodes_without_violations(True)

    assert _visible(graph) == [
        "com.example",
        "com.example.core",
        "com.example.core.Service",
        "com.example.web",
        "com.example.web.Api",
    ]


def test_dependency_type_filter_updates_visible_violation_nodes(graph):
    graph.node_tree.unfold_all_nodes()
    graph.show_violations(graph.violations[0])
    graph.set_hide_nodes_without_violations(True)

    graph.filter_dependencies_by_type({"METHOD_CALL": False})

    # the only violation is a method call
    assert _visible(graph) == ["com.example"]


def test_unfold_then_fold_around_violations(graph):
    tree = graph.node_tree
    graph.show_violations(graph.violations[0])

    graph.unfold_nodes_to_show_all_violations()

    assert not tree.get_by_full_name("com.example.core").is_folded
    assert not tree.get_by_full_name("com.example.web").is_folded
    assert tree.get_by_full_name("com.example.util").is_folded
    violations = [d for d in graph.dependencies.get_all_dependencies() if d.is_violation]
    assert [(d.origin.name, d.target.name) for d in violations] == [("Service", "Api")]

    tree.unfold_all_nodes()
    graph.fold_nodes_without_violations()

    assert not tree.get_by_full_name("com.example.core").is_folded
    assert not tree.get_by_full_name("com.example.web").is_folded
    assert tree.get_by_full_name("com.example.util").is_folded
    assert tree.last_snapshot.folded == ("com.example.util",)


def test_unfold_then_fold_keeps_violation_containers_unfolded(graph):
    for group in graph.violations:
        graph.show_violations(group)

    graph.unfold_nodes_to_show_all_violations()
    graph.fold_nodes_without_violations()

    containing = graph.dependencies.get_nodes_containing_violations()
    assert {n.full_name for n in containing} == {"com.example.core", "com.example.web", "com.example.util"}
    assert not any(n.is_folded for n in containing)


def test_direct_actions_relayout_immediately(graph, view, scheduler):
    graph.show_violations(graph.violations[1])
    scheduler.run_due()
    before = view.render_count

    graph.unfold_nodes_to_show_all_violations()

    assert view.render_count == before + 1
    assert not graph.relayout_pending


def test_type_filter_hides_interfaces(graph):
    graph.node_tree.unfold_all_nodes()
    graph.filter_nodes_by_type(show_interfaces=False, show_classes=True)

    visible = _visible(graph)
    assert "com.example.web.Api" not in visible
    assert "com.example.core.Repository" not in visible
    # Controller -> Api is gone with Api
    names = [(d.origin.name, d.target.name) for d in graph.dependencies.get_all_dependencies()]
    assert ("Controller", "Api") not in names
    assert ("Controller", "Service") in names


def test_unknown_dependency_type_raises(graph):
    with pytest.raises(ValueError):
        graph.filter_dependencies_by_type({"NOT_A_TYPE": False})


def test_menu_drives_graph(graph, view, scheduler):
    menu = CallbackMenu()
    assert isinstance(menu, Menu)
    assert isinstance(menu, ViolationMenu)

    graph.attach_to_menu(menu)
    graph.attach_to_violation_menu(menu)

    assert menu.node_font_size == 10
    assert menu.circle_padding == 1
    assert menu.dependency_types == ["FIELD_ACCESS", "IMPLEMENTS", "METHOD_CALL"]
    assert [g.rule for g in menu.violation_groups] == [CORE_RULE, UTIL_RULE]

    menu.set_node_name_filter("util")
    menu.set_dependency_filter({"IMPLEMENTS": False})
    scheduler.run_due()
    assert view.snapshot.nodes == ("com.example", "com.example.util")

    menu.show_violation_group(UTIL_RULE)
    assert menu.get_violation_group(UTIL_RULE).is_visible
    menu.hide_violation_group(UTIL_RULE)
    assert not menu.get_violation_group(UTIL_RULE).is_visible

    with pytest.raises(KeyError):
        menu.show_violation_group("no such rule")


def test_menu_settings_change_relayouts(graph, view):
    menu = CallbackMenu()
    graph.attach_to_menu(menu)

    menu.change_settings(14, 3)

    assert view.render_count == 2
    assert view.snapshot.node_font_size == 14
    assert view.snapshot.circle_padding == 3


def test_menu_violation_buttons(graph):
    menu = CallbackMenu()
    graph.attach_to_violation_menu(menu)

    menu.show_violation_group(CORE_RULE)
    menu.set_hide_all_dependencies_without_violations(True)
    menu.click_unfold_nodes_to_show_all_violations()

    deps = graph.dependencies.get_all_dependencies()
    assert [(d.origin.name, d.target.name) for d in deps] == [("Service", "Api")]

    menu.set_hide_nodes_without_violations(True)
    menu.click_fold_nodes_to_hide_nodes_without_violations()
    assert "com.example.util" not in _visible(graph)


def test_unattached_menu_actions_fail():
    menu = CallbackMenu()

    with pytest.raises(RuntimeError):
        menu.set_node_name_filter("x")


def test_excluding_a_node_updates_menu_and_filters(graph, scheduler):
    menu = CallbackMenu()
    graph.attach_to_menu(menu)
    menu.set_node_name_filter("example")

    graph.node_tree.exclude_from_name_filter(graph.node_tree.get_by_full_name("com.example.util"))

    assert menu.node_name_filter == "example|~com.example.util"
    assert "com.example.util" not in _visible(graph)
    assert graph.relayout_pending
    scheduler.run_due()
    assert not graph.relayout_pending


def test_create_graph(visualization_data):
    graph = create_graph(visualization_data)

    assert isinstance(graph.scheduler, ManualScheduler)
    assert graph.node_tree.layout_count == 1
