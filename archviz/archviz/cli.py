"""CLI entrypoint for archviz."""

import logging
import sys
from pathlib import Path
from typing import Callable

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import resolve_settings


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(__version__, prog_name="archviz")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to archviz.toml (defaults to the nearest one above the working directory)",
)
@click.option("--verbose", is_flag=True, help="Log filter propagation and relayout passes")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """archviz - Filter and fold architecture dependency graphs.

    Load a graph document (and optionally a violations document), apply
    filters the way the interactive menus would, and inspect the result.
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["settings"] = resolve_settings(config_path)
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}")


_graph_argument = click.argument(
    "graph_path", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
_violations_option = click.option(
    "--violations",
    "violations_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Violations document (rule groups of dependency descriptions)",
)


def _filter_options(f: Callable) -> Callable:
    options = [
        click.option("--name", type=str, default=None, help="Node name filter, e.g. 'core|~core.internal'"),
        click.option("--hide-interfaces", is_flag=True, help="Hide interfaces"),
        click.option("--hide-classes", is_flag=True, help="Hide classes"),
        click.option(
            "--hide-dependency-type",
            "hidden_dependency_types",
            multiple=True,
            metavar="TYPE",
            help="Hide dependencies of this type (repeatable)",
        ),
        click.option(
            "--hide-inner-class-dependencies",
            is_flag=True,
            help="Hide dependencies between a class and its inner classes",
        ),
        click.option(
            "--show-violations",
            "show_violations",
            multiple=True,
            metavar="RULE",
            help="Show violations of this rule (repeatable)",
        ),
        click.option("--all-violations", is_flag=True, help="Show violations of every rule"),
        click.option("--hide-nodes-without-violations", is_flag=True, help="Hide nodes not involved in shown violations"),
        click.option(
            "--hide-dependencies-without-violations",
            is_flag=True,
            help="Hide dependencies that are not shown violations",
        ),
        click.option(
            "--exclude",
            multiple=True,
            metavar="FULL_NAME",
            help="Exclude a node from the name filter (repeatable)",
        ),
        click.option("--unfold-all", is_flag=True, help="Start with every node unfolded"),
        click.option("--unfold-violations", is_flag=True, help="Unfold nodes to show all shown violations"),
        click.option("--fold-clean", is_flag=True, help="Fold nodes that contain no shown violations"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _build_filter_options(kwargs: dict):
    from .commands.inspect_cmd import FilterOptions

    return FilterOptions(
        name=kwargs["name"],
        hide_interfaces=kwargs["hide_interfaces"],
        hide_classes=kwargs["hide_classes"],
        hidden_dependency_types=tuple(kwargs["hidden_dependency_types"]),
        hide_inner_class_dependencies=kwargs["hide_inner_class_dependencies"],
        show_violations=tuple(kwargs["show_violations"]),
        all_violations=kwargs["all_violations"],
        hide_nodes_without_violations=kwargs["hide_nodes_without_violations"],
        hide_dependencies_without_violations=kwargs["hide_dependencies_without_violations"],
        exclude=tuple(kwargs["exclude"]),
        unfold_all=kwargs["unfold_all"],
        unfold_violations=kwargs["unfold_violations"],
        fold_clean=kwargs["fold_clean"],
    )


@cli.command()
@_graph_argument
@_violations_option
@_filter_options
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "md", "json", "dot"]),
    default="rich",
    show_default=True,
    help="Output format",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
@click.option("--node", "node_name", type=str, default=None, metavar="FULL_NAME", help="Also show this node's dependencies")
@click.pass_context
def inspect(
    ctx: click.Context,
    graph_path: Path,
    violations_path: Path | None,
    fmt: str,
    out: Path | None,
    node_name: str | None,
    **filter_kwargs,
) -> None:
    """Apply filters to a graph and show what remains visible."""
    from .commands.inspect_cmd import run_inspect

    try:
        exit_code = run_inspect(
            graph_path,
            violations_path,
            ctx.obj["settings"],
            _build_filter_options(filter_kwargs),
            fmt=fmt,
            out=out,
            node_name=node_name,
        )
    except ValueError as e:
        raise click.ClickException(str(e))
    sys.exit(exit_code)


@cli.command()
@_graph_argument
@_violations_option
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def filters(ctx: click.Context, graph_path: Path, violations_path: Path | None, output_json: bool) -> None:
    """List filters and the filters each one recomputes."""
    from .commands.filters_cmd import run_filters

    try:
        exit_code = run_filters(graph_path, violations_path, ctx.obj["settings"], output_json=output_json)
    except ValueError as e:
        raise click.ClickException(str(e))
    sys.exit(exit_code)


@cli.command()
@_graph_argument
@_violations_option
@_filter_options
@click.pass_context
def watch(ctx: click.Context, graph_path: Path, violations_path: Path | None, **filter_kwargs) -> None:
    """Re-apply filters whenever the graph or violations document changes.

    Bursts of file events (editor save cycles) are coalesced into a single
    reload.
    """
    from .commands.watch_cmd import run_watch

    sys.exit(
        run_watch(
            graph_path,
            violations_path,
            ctx.obj["settings"],
            _build_filter_options(filter_kwargs),
        )
    )


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
