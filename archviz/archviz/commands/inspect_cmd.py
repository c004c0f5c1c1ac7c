"""Inspect command - apply filters to a graph and print what stays visible."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import Settings
from ..graph import CallbackMenu, GraphCoordinator, NullView, load_visualization_data
from ..graph.dependencies import INNER_CLASSES_KEY
from ..relayout import ManualScheduler


@dataclass
class FilterOptions:
    """Filter choices as a user would make them in the menus."""

    name: str | None = None
    hide_interfaces: bool = False
    hide_classes: bool = False
    hidden_dependency_types: tuple[str, ...] = ()
    hide_inner_class_dependencies: bool = False
    show_violations: tuple[str, ...] = ()
    all_violations: bool = False
    hide_nodes_without_violations: bool = False
    hide_dependencies_without_violations: bool = False
    exclude: tuple[str, ...] = ()
    unfold_all: bool = False
    unfold_violations: bool = False
    fold_clean: bool = False


@dataclass
class Session:
    graph: GraphCoordinator
    menu: CallbackMenu
    view: NullView
    scheduler: ManualScheduler


def open_session(
    graph_path: Path,
    violations_path: Path | None,
    settings: Settings,
) -> Session:
    """Load the documents and attach a scripted menu to a fresh graph."""
    data = load_visualization_data(graph_path, violations_path)
    view = NullView()
    scheduler = ManualScheduler()
    graph = GraphCoordinator(data, view=view, scheduler=scheduler, settings=settings)
    menu = CallbackMenu()
    graph.attach_to_menu(menu)
    graph.attach_to_violation_menu(menu)
    return Session(graph=graph, menu=menu, view=view, scheduler=scheduler)


def apply_filter_options(session: Session, options: FilterOptions) -> None:
    """Drive the menus with `options`, then settle the pending relayout."""
    menu = session.menu
    graph = session.graph

    if options.unfold_all:
        graph.node_tree.unfold_all_nodes()

    if options.name:
        menu.set_node_name_filter(options.name)
    if options.hide_interfaces or options.hide_classes:
        menu.set_node_type_filter(
            show_interfaces=not options.hide_interfaces, show_classes=not options.hide_classes
        )

    config = {t: False for t in options.hidden_dependency_types}
    if options.hide_inner_class_dependencies:
        config[INNER_CLASSES_KEY] = False
    if config:
        unknown = [t for t in options.hidden_dependency_types if t not in menu.dependency_types]
        if unknown:
            raise ValueError(
                f"Unknown dependency type(s): {', '.join(unknown)}. "
                f"Available: {', '.join(menu.dependency_types) or '(none)'}"
            )
        menu.set_dependency_filter(config)

    rules = [g.rule for g in menu.violation_groups] if options.all_violations else list(options.show_violations)
    for rule in rules:
        try:
            menu.show_violation_group(rule)
        except KeyError:
            raise ValueError(f"Unknown violation rule: {rule}") from None

    if options.hide_dependencies_without_violations:
        menu.set_hide_all_dependencies_without_violations(True)
    if options.hide_nodes_without_violations:
        menu.set_hide_nodes_without_violations(True)

    for full_name in options.exclude:
        if full_name not in graph.node_tree:
            raise ValueError(f"Unknown node: {full_name}")
        graph.node_tree.exclude_from_name_filter(graph.node_tree.get_by_full_name(full_name))

    session.scheduler.advance(graph.settings.debounce_seconds)

    if options.unfold_violations:
        menu.click_unfold_nodes_to_show_all_violations()
    if options.fold_clean:
        menu.click_fold_nodes_to_hide_nodes_without_violations()

    # Node-level exclusions or unfold_all may leave the last pass behind.
    graph.node_tree.relayout_completely()


def build_payload(session: Session, node_name: str | None = None) -> dict:
    graph = session.graph
    tree = graph.node_tree
    visible = tree.visible_nodes()

    payload: dict = {
        "title": f"Visible graph ({len(visible)} nodes)",
        "name_filter": tree.name_filter_string,
        "nodes": [
            {
                "fullName": n.full_name,
                "type": n.type,
                "depth": n.depth,
                "folded": n.is_folded,
            }
            for n in visible
        ],
        "dependencies": [d.to_dict() for d in graph.dependencies.get_all_dependencies()],
        "filters": {
            f.key: f.precondition.filter_is_enabled for f in graph.filter_collection
        },
        "violations": {g.rule: g.is_visible for g in graph.violations},
        "layout_passes": tree.layout_count,
    }

    if node_name is not None:
        if node_name not in tree:
            raise ValueError(f"Unknown node: {node_name}")
        node = tree.get_by_full_name(node_name)
        payload["node"] = {
            "fullName": node.full_name,
            "visible": tree.is_visible(node),
            "dependencies": [d.to_dict() for d in tree.get_dependencies_of_node(node)],
            "within": [d.to_dict() for d in tree.get_dependencies_directly_within_node(node)],
            "leaf_dependencies": len(tree.get_dependencies_of_leaves_within_node(node)),
        }
    return payload


def render(payload: dict, fmt: str) -> str:
    if fmt == "json":
        return json.dumps(payload, indent=2, sort_keys=True) + "\n"
    if fmt == "dot":
        return _to_dot(payload)
    return _to_markdown(payload)


def run_inspect(
    graph_path: Path,
    violations_path: Path | None,
    settings: Settings,
    options: FilterOptions,
    *,
    fmt: str = "rich",
    out: Path | None = None,
    node_name: str | None = None,
) -> int:
    """Load a graph, apply the filter options and print the visible graph."""
    console = Console(stderr=True)

    session = open_session(graph_path, violations_path, settings)
    apply_filter_options(session, options)
    payload = build_payload(session, node_name)

    if fmt == "rich":
        if out:
            rich_console = Console(record=True)
            print_rich(payload, console=rich_console)
            out.write_text(rich_console.export_text(), encoding="utf-8")
            console.print(f"Wrote inspection to {out}", style="green")
        else:
            print_rich(payload, console=Console())
        return 0

    text = render(payload, fmt)
    if out:
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote inspection to {out}", style="green")
    else:
        print(text, end="" if text.endswith("\n") else "\n")
    return 0


def print_rich(payload: dict, *, console: Console) -> None:
    console.print(f"[bold]{payload['title']}[/bold]")
    if payload["name_filter"]:
        console.print(f"Name filter: {payload['name_filter']}", style="dim")
    console.print()

    t = Table(title="Nodes", show_header=True, header_style="bold")
    t.add_column("Node", style="cyan", no_wrap=True)
    t.add_column("Type")
    t.add_column("Folded", justify="center")
    for n in payload["nodes"]:
        t.add_row("  " * n["depth"] + n["fullName"], n["type"], "+" if n["folded"] else "")
    console.print(t)
    console.print()

    t = Table(title="Dependencies", show_header=True, header_style="bold")
    t.add_column("Origin", style="cyan")
    t.add_column("Target", style="cyan")
    t.add_column("Types")
    t.add_column("Violation", justify="center")
    for d in payload["dependencies"]:
        t.add_row(
            d["origin"],
            d["target"],
            ", ".join(d["types"]),
            "[red]x[/red]" if d["violation"] else "",
        )
    console.print(t)

    node = payload.get("node")
    if node:
        console.print()
        state = "visible" if node["visible"] else "hidden"
        console.print(f"[bold]{node['fullName']}[/bold] ({state})")
        for d in node["dependencies"]:
            console.print(f"  {d['origin']} -> {d['target']}  [dim]{', '.join(d['types'])}[/dim]")
        console.print(f"  {node['leaf_dependencies']} dependencies between leaves within", style="dim")


def _to_markdown(payload: dict) -> str:
    lines: list[str] = []
    lines.append(f"## {payload['title']}")
    lines.append("")
    if payload["name_filter"]:
        lines.append(f"- Name filter: `{payload['name_filter']}`")
    lines.append(f"- Dependencies: {len(payload['dependencies'])}")
    lines.append("")

    lines.append("### Nodes")
    lines.append("")
    for n in payload["nodes"]:
        marker = " (folded)" if n["folded"] else ""
        lines.append(f"{'  ' * n['depth']}- `{n['fullName']}` {n['type']}{marker}")
    lines.append("")

    lines.append("### Dependencies")
    lines.append("")
    lines.append("| Origin | Target | Types | Violation |")
    lines.append("|---|---|---|:---:|")
    for d in payload["dependencies"]:
        flag = "x" if d["violation"] else ""
        lines.append(f"| `{d['origin']}` | `{d['target']}` | {', '.join(d['types'])} | {flag} |")
    lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def _to_dot(payload: dict) -> str:
    def esc(s: str) -> str:
        return s.replace("\\", "\\\\").replace('"', '\\"')

    lines = [
        "digraph archviz {",
        f'  label="{esc(payload["title"])}";',
        "  labelloc=t;",
        "  node [shape=box];",
    ]
    for n in payload["nodes"]:
        shape = "folder" if n["folded"] else ("ellipse" if n["type"] == "interface" else "box")
        lines.append(f'  "{esc(n["fullName"])}" [shape="{shape}"];')
    for d in payload["dependencies"]:
        attrs = f'label="{esc(", ".join(d["types"]))}"'
        if d["violation"]:
            attrs += ', color="red"'
        lines.append(f'  "{esc(d["origin"])}" -> "{esc(d["target"])}" [{attrs}];')
    lines.append("}")
    return "\n".join(lines) + "\n"
