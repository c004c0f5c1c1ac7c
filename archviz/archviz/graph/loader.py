"""Read graph and violation documents."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .models import ViolationsGroup


@dataclass
class VisualizationData:
    root: dict[str, Any]
    dependencies: list[dict[str, Any]] = field(default_factory=list)
    violations: list[ViolationsGroup] = field(default_factory=list)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path}: invalid JSON ({e})") from e


def parse_graph(data: Any) -> tuple[dict[str, Any], list[dict[str, Any]]]:
    if not isinstance(data, dict) or not isinstance(data.get("root"), dict):
        raise ValueError("Graph document needs a 'root' object")
    dependencies = data.get("dependencies", [])
    if not isinstance(dependencies, list) or not all(isinstance(d, dict) for d in dependencies):
        raise ValueError("'dependencies' must be a list of objects")
    return data["root"], dependencies


def parse_violations(data: Any) -> list[ViolationsGroup]:
    if not isinstance(data, list):
        raise ValueError("Violations document must be a list of rule groups")
    groups: list[ViolationsGroup] = []
    seen: set[str] = set()
    for raw in data:
        if not isinstance(raw, dict):
            raise ValueError(f"Malformed violations group: {raw!r}")
        rule = str(raw.get("rule", "")).strip()
        if not rule:
            raise ValueError("Violations group without 'rule'")
        if rule in seen:
            raise ValueError(f"Duplicate violations group '{rule}'")
        seen.add(rule)
        violations = raw.get("violations", [])
        if not isinstance(violations, list):
            raise ValueError(f"'violations' of rule '{rule}' must be a list")
        groups.append(ViolationsGroup(rule=rule, violations=[str(v) for v in violations]))
    return groups


def load_visualization_data(graph_path: Path, violations_path: Path | None = None) -> VisualizationData:
    """Load the graph document and, optionally, the violations document."""
    root, dependencies = parse_graph(_read_json(graph_path))
    violations = parse_violations(_read_json(violations_path)) if violations_path else []
    return VisualizationData(root=root, dependencies=dependencies, violations=violations)
