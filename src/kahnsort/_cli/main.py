import logging
from collections import Counter
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from kahnsort._graph import CycleError
from kahnsort._io import GraphDocument, GraphDocumentError, export_order_to_toml, load_graph_document

from .config import ConfigError, KahnsortConfig, get_config

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Kahnsort CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _load_config() -> KahnsortConfig:
    try:
        return get_config()
    except ConfigError as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=2) from e


def _load_document(graph: Path | None, config: KahnsortConfig) -> GraphDocument:
    """Load the graph document named on the command line, or the configured one."""
    if graph is None:
        graph = config.graph
    if graph is None:
        err_console.print("[red]✗ No graph file given and none configured in pyproject.toml[/red]")
        raise typer.Exit(code=2)

    err_console.print(f"[cyan]Loading graph from:[/cyan] {graph}")
    try:
        return load_graph_document(graph)
    except (GraphDocumentError, OSError) as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=2) from e


def _excluded_nodes(exclude: list[str] | None, *, no_exclude: bool, config: KahnsortConfig) -> frozenset[str]:
    """Nodes given with --exclude, else the configured ones unless --no-exclude is set."""
    if exclude:
        return frozenset(exclude)
    if no_exclude:
        return frozenset()
    return frozenset(config.exclude)


def _report_cycle(error: CycleError) -> None:
    err_console.print(f"[red]✗ {escape(str(error))}[/red]")
    err_console.print("[red]  Nodes on or behind a cycle:[/red]")
    for node in error.unresolved:
        err_console.print(f"  [red]•[/red] {escape(str(node))}")
    err_console.print()


@app.command()
def sort(
    graph: Annotated[
        Path | None,
        typer.Argument(help="Path to graph TOML file (defaults to the configured graph)"),
    ] = None,
    *,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to output TOML file"),
    ] = None,
    flip: Annotated[
        bool | None,
        typer.Option(
            "--flip/--no-flip",
            help="Treat edges as incoming instead of outgoing (defaults to the configured value)",
        ),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-x", help="Node to leave out (may be repeated)"),
    ] = None,
    no_exclude: Annotated[
        bool,
        typer.Option("--no-exclude", help="Ignore the configured exclude list"),
    ] = False,
    trace: Annotated[
        bool,
        typer.Option("--trace", help="Log every node as it is emitted"),
    ] = False,
) -> None:
    """Print the nodes of a graph in dependency order."""
    config = _load_config()
    document = _load_document(graph, config)

    flip_edges = config.flip_edges if flip is None else flip
    excluded = _excluded_nodes(exclude, no_exclude=no_exclude, config=config)
    output = output or config.output

    def log_emit(node: str) -> None:
        logger.info(f"Emitted {node}")

    try:
        order = document.sort(
            flip_edges=flip_edges,
            on_emit=log_emit if trace else None,
            exclude=excluded.__contains__ if excluded else None,
        )
    except CycleError as e:
        _report_cycle(e)
        raise typer.Exit(code=1) from e

    for node in order:
        out_console.print(escape(node), highlight=False)

    if output is not None:
        err_console.print(f"[cyan]Exporting order to:[/cyan] {output}")
        output.parent.mkdir(parents=True, exist_ok=True)
        export_order_to_toml(order, output, flip_edges=flip_edges, excluded=excluded)

    err_console.print(f"[green]✓ Sorted {len(order)} nodes[/green]")


@app.command()
def check(
    graph: Annotated[
        Path | None,
        typer.Argument(help="Path to graph TOML file (defaults to the configured graph)"),
    ] = None,
    *,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-x", help="Node to leave out (may be repeated)"),
    ] = None,
    no_exclude: Annotated[
        bool,
        typer.Option("--no-exclude", help="Ignore the configured exclude list"),
    ] = False,
) -> None:
    """Check that a graph is acyclic without printing an order.

    Excluded nodes are left out exactly as `sort` leaves them out.
    """
    config = _load_config()
    document = _load_document(graph, config)
    excluded = _excluded_nodes(exclude, no_exclude=no_exclude, config=config)
    nodes = [node for node in document.node_order() if node not in excluded]
    known = set(nodes)

    in_degree: Counter[str] = Counter()
    for node in nodes:
        in_degree.update(target for target in document.edges.get(node, []) if target in known)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Node", style="bold")
    table.add_column("Out", justify="right", style="yellow")
    table.add_column("In", justify="right", style="green")

    for node in nodes:
        out_degree = sum(1 for target in document.edges.get(node, []) if target in known)
        table.add_row(escape(node), str(out_degree), str(in_degree[node]))

    err_console.print(
        Panel(
            table,
            title="[bold]Graph[/bold]",
            subtitle=f"[dim]{len(nodes)} nodes[/dim]",
            border_style="cyan",
        ),
    )

    try:
        document.sort(exclude=excluded.__contains__ if excluded else None)
    except CycleError as e:
        _report_cycle(e)
        raise typer.Exit(code=1) from e

    err_console.print("[green]✓ Graph is acyclic[/green]")


def main() -> None:
    app()
