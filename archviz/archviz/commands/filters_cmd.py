"""Filters command - show the filter registry and its dependent keys."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import Settings
from .inspect_cmd import open_session


def run_filters(
    graph_path: Path,
    violations_path: Path | None,
    settings: Settings,
    *,
    output_json: bool = False,
) -> int:
    """List every filter key with its state and declared dependents."""
    session = open_session(graph_path, violations_path, settings)
    collection = session.graph.filter_collection

    rows = [
        {
            "key": f.key,
            "enabled": f.precondition.filter_is_enabled,
            "dependents": f.dependent_keys,
        }
        for f in collection
    ]

    if output_json:
        print(json.dumps({"filters": rows}, indent=2))
        return 0

    console = Console()
    table = Table(title="Filters", show_header=True, header_style="bold")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Enabled", justify="center")
    table.add_column("Recomputes")
    for r in rows:
        table.add_row(r["key"], "yes" if r["enabled"] else "-", ", ".join(r["dependents"]))
    console.print(table)
    return 0
