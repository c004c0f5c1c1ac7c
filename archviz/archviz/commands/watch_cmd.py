"""Watch command - re-inspect the graph whenever its documents change."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console

from ..config import Settings
from ..watcher import RELOAD_DEBOUNCE_SECONDS, run_watch_loop
from .inspect_cmd import FilterOptions, apply_filter_options, build_payload, open_session


def run_watch(
    graph_path: Path,
    violations_path: Path | None,
    settings: Settings,
    options: FilterOptions,
) -> int:
    """
    Watch the graph and violations documents and print a summary per reload.

    This is a blocking command that runs until interrupted (Ctrl+C).
    """
    console = Console(stderr=True)

    paths = {graph_path}
    if violations_path:
        paths.add(violations_path)

    console.print(f"[bold]Watching[/bold] {', '.join(str(p) for p in sorted(paths))}")
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    def reload() -> None:
        session = open_session(graph_path, violations_path, settings)
        apply_filter_options(session, options)
        payload = build_payload(session)
        violating = sum(1 for d in payload["dependencies"] if d["violation"])
        timestamp = datetime.now().strftime("%H:%M:%S")
        console.print(
            f"[dim]{timestamp}[/dim] {len(payload['nodes'])} nodes, "
            f"{len(payload['dependencies'])} dependencies, "
            f"[red]{violating}[/red] with violations"
        )

    reloads = run_watch_loop(
        paths,
        reload,
        debounce_seconds=max(settings.debounce_seconds, RELOAD_DEBOUNCE_SECONDS),
    )
    console.print()
    console.print(f"[bold]Stopped.[/bold] Reloaded {reloads} times.")
    return 0
