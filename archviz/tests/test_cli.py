"""Tests for the inspect, filters and CLI entry points."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from archviz.cli import cli
from archviz.commands.filters_cmd import run_filters
from archviz.commands.inspect_cmd import (
    FilterOptions,
    apply_filter_options,
    build_payload,
    open_session,
    run_inspect,
)
from archviz.config import Settings


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "archviz.toml"
    path.write_text("[styles]\nnode_font_size = 12\n", encoding="utf-8")
    return path


def test_inspect_json_default_view(graph_files, capsys) -> None:
    graph_path, violations_path = graph_files

    exit_code = run_inspect(graph_path, violations_path, Settings(), FilterOptions(), fmt="json")

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert [n["fullName"] for n in payload["nodes"]] == [
        "com.example",
        "com.example.core",
        "com.example.web",
        "com.example.util",
    ]
    assert len(payload["dependencies"]) == 3
    assert payload["violations"] == {
        "core should not depend on web": False,
        "web should not use util": False,
    }


def test_inspect_unfold_violations(graph_files, capsys) -> None:
    graph_path, violations_path = graph_files
    options = FilterOptions(all_violations=True, unfold_violations=True)

    run_inspect(graph_path, violations_path, Settings(), options, fmt="json")

    payload = json.loads(capsys.readouterr().out)
    violating = sorted((d["origin"], d["target"]) for d in payload["dependencies"] if d["violation"])
    assert violating == [
        ("com.example.core.Service", "com.example.web.Api"),
        ("com.example.web.Controller", "com.example.util.Strings"),
    ]
    assert len(payload["dependencies"]) == 5


def test_inspect_name_filter_and_exclusion(graph_files) -> None:
    graph_path, violations_path = graph_files
    session = open_session(graph_path, violations_path, Settings())

    apply_filter_options(
        session,
        FilterOptions(name="example", exclude=("com.example.util",), unfold_all=True, hide_interfaces=True),
    )
    payload = build_payload(session, node_name="com.example.core")

    names = [n["fullName"] for n in payload["nodes"]]
    assert "com.example.util" not in names
    assert "com.example.web.Api" not in names
    assert payload["name_filter"] == "example|~com.example.util"
    assert payload["filters"]["nodes.name"] is True
    assert payload["node"]["visible"] is True
    assert payload["node"]["leaf_dependencies"] == 2
    assert not session.graph.relayout_pending


def test_inspect_rejects_unknown_inputs(graph_files) -> None:
    graph_path, violations_path = graph_files

    with pytest.raises(ValueError, match="Unknown dependency type"):
        run_inspect(
            graph_path, violations_path, Settings(), FilterOptions(hidden_dependency_types=("NOPE",)), fmt="json"
        )
    with pytest.raises(ValueError, match="Unknown violation rule"):
        run_inspect(graph_path, violations_path, Settings(), FilterOptions(show_violations=("nope",)), fmt="json")
    with pytest.raises(ValueError, match="Unknown node"):
        run_inspect(graph_path, violations_path, Settings(), FilterOptions(), fmt="json", node_name="x.Y")


def test_inspect_markdown_and_dot(graph_files, tmp_path: Path) -> None:
    graph_path, violations_path = graph_files
    options = FilterOptions(show_violations=("core should not depend on web",))
    md_path = tmp_path / "out.md"
    dot_path = tmp_path / "out.dot"

    run_inspect(graph_path, violations_path, Settings(), options, fmt="md", out=md_path)
    run_inspect(graph_path, violations_path, Settings(), options, fmt="dot", out=dot_path)

    md = md_path.read_text(encoding="utf-8")
    assert md.startswith("## Visible graph (4 nodes)")
    assert "| `com.example.core` | `com.example.web` | METHOD_CALL | x |" in md

    dot = dot_path.read_text(encoding="utf-8")
    assert dot.startswith("digraph archviz {")
    assert '"com.example.core" -> "com.example.web" [label="METHOD_CALL", color="red"];' in dot


def test_filters_json(graph_files, capsys) -> None:
    graph_path, violations_path = graph_files

    assert run_filters(graph_path, violations_path, Settings(), output_json=True) == 0

    rows = {r["key"]: r for r in json.loads(capsys.readouterr().out)["filters"]}
    assert len(rows) == 9
    assert rows["nodes.typeAndName"]["dependents"] == ["nodes.combinedFilter", "dependencies.nodeTypeAndName"]
    assert rows["nodes.name"]["enabled"] is False
    assert rows["dependencies.visibleNodes"]["dependents"] == []


def test_cli_inspect_json(graph_files, config_path: Path) -> None:
    graph_path, violations_path = graph_files

    result = CliRunner().invoke(
        cli,
        [
            "--config",
            str(config_path),
            "inspect",
            str(graph_path),
            "--violations",
            str(violations_path),
            "--format",
            "json",
            "--hide-dependency-type",
            "METHOD_CALL",
            "--unfold-all",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    types = {t for d in payload["dependencies"] for t in d["types"]}
    assert types == {"FIELD_ACCESS", "IMPLEMENTS"}


def test_cli_filters_rich(graph_files, config_path: Path) -> None:
    graph_path, _ = graph_files

    result = CliRunner().invoke(cli, ["--config", str(config_path), "filters", str(graph_path)])

    assert result.exit_code == 0, result.output
    assert "nodes.combinedFilter" in result.output


def test_cli_bad_input_exits_with_error(graph_files, config_path: Path, tmp_path: Path) -> None:
    graph_path, _ = graph_files
    broken = tmp_path / "broken.json"
    broken.write_text("[", encoding="utf-8")

    result = CliRunner().invoke(
        cli, ["--config", str(config_path), "inspect", str(graph_path), "--hide-dependency-type", "NOPE"]
    )
    assert result.exit_code == 1
    assert "Unknown dependency type" in result.output

    result = CliRunner().invoke(cli, ["--config", str(config_path), "filters", str(broken)])
    assert result.exit_code == 1


def test_cli_invalid_config(graph_files, tmp_path: Path) -> None:
    graph_path, _ = graph_files
    bad = tmp_path / "bad.toml"
    bad.write_text("[styles]\nnode_font_size = 0\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--config", str(bad), "filters", str(graph_path)])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
