"""Pytest configuration and fixtures."""

import json
from pathlib import Path

import pytest

from archviz.graph import GraphCoordinator, NullView, VisualizationData
from archviz.graph.loader import parse_violations
from archviz.relayout import ManualScheduler

CORE_RULE = "core should not depend on web"
UTIL_RULE = "web should not use util"


def _cls(full_name: str, type: str = "class", children: list | None = None) -> dict:
    return {
        "fullName": full_name,
        "name": full_name.rsplit(".", 1)[-1],
        "type": type,
        "children": children or [],
    }


GRAPH_DOCUMENT = {
    "root": {
        "fullName": "com.example",
        "name": "example",
        "type": "package",
        "children": [
            {
                "fullName": "com.example.core",
                "name": "core",
                "type": "package",
                "children": [
                    _cls(
                        "com.example.core.Service",
                        children=[_cls("com.example.core.Service$Helper")],
                    ),
                    _cls("com.example.core.Repository", type="interface"),
                ],
            },
            {
                "fullName": "com.example.web",
                "name": "web",
                "type": "package",
                "children": [
                    _cls("com.example.web.Controller"),
                    _cls("com.example.web.Api", type="interface"),
                ],
            },
            {
                "fullName": "com.example.util",
                "name": "util",
                "type": "package",
                "children": [_cls("com.example.util.Strings")],
            },
        ],
    },
    "dependencies": [
        {
            "type": "METHOD_CALL",
            "originClass": "com.example.web.Controller",
            "targetClass": "com.example.core.Service",
            "description": "Controller calls Service",
        },
        {
            "type": "FIELD_ACCESS",
            "originClass": "com.example.core.Service",
            "targetClass": "com.example.core.Repository",
            "description": "Service accesses Repository",
        },
        {
            "type": "METHOD_CALL",
            "originClass": "com.example.core.Service",
            "targetClass": "com.example.web.Api",
            "description": "Service calls Api",
        },
        {
            "type": "METHOD_CALL",
            "originClass": "com.example.core.Service$Helper",
            "targetClass": "com.example.core.Service",
            "description": "Helper calls Service",
        },
        {
            "type": "METHOD_CALL",
            "originClass": "com.example.web.Controller",
            "targetClass": "com.example.util.Strings",
            "description": "Controller uses Strings",
        },
        {
            "type": "IMPLEMENTS",
            "originClass": "com.example.web.Controller",
            "targetClass": "com.example.web.Api",
            "description": "Controller implements Api",
        },
    ],
}

VIOLATIONS_DOCUMENT = [
    {"rule": CORE_RULE, "violations": ["Service calls Api"]},
    {"rule": UTIL_RULE, "violations": ["Controller uses Strings"]},
]


@pytest.fixture
def visualization_data() -> VisualizationData:
    """Fresh copy of the sample graph for each test."""
    doc = json.loads(json.dumps(GRAPH_DOCUMENT))
    return VisualizationData(
        root=doc["root"],
        dependencies=doc["dependencies"],
        violations=parse_violations(json.loads(json.dumps(VIOLATIONS_DOCUMENT))),
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def view() -> NullView:
    return NullView()


@pytest.fixture
def graph(visualization_data: VisualizationData, view: NullView, scheduler: ManualScheduler) -> GraphCoordinator:
    """Coordinator over the sample graph with a virtual-clock scheduler."""
    return GraphCoordinator(visualization_data, view=view, scheduler=scheduler)


@pytest.fixture
def graph_files(tmp_path: Path) -> tuple[Path, Path]:
    """Sample graph and violations documents written to disk."""
    graph_path = tmp_path / "graph.json"
    violations_path = tmp_path / "violations.json"
    graph_path.write_text(json.dumps(GRAPH_DOCUMENT), encoding="utf-8")
    violations_path.write_text(json.dumps(VIOLATIONS_DOCUMENT), encoding="utf-8")
    return graph_path, violations_path
