"""CLI entry point for portgraph."""

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from portgraph.core.exceptions import SourceLoadError
from portgraph.core.export import decorations_to_dict, result_to_dict
from portgraph.core.graph.base import PortGraph
from portgraph.core.graph.builder import DecoratedGraph
from portgraph.core.models import CellError, Edge
from portgraph.notebook import MergePolicy, Notebook, NotebookConfig, RegistryScope
from portgraph.notebook.dependencies import evaluation_order
from portgraph.sources import DirectoryCellSource, ExampleCellSource
from portgraph.sources.base import CellSource
from portgraph.sources.examples import EXAMPLES, function_body

app = typer.Typer(
    name="portgraph",
    help="Evaluate notebooks of decorated port graphs.",
    no_args_is_help=True,
)
console = Console()

_MAX_RESULT_DISPLAY = 60

PathArg = Annotated[Path, typer.Argument(help="Directory with one cell per file")]
ExamplesOpt = Annotated[
    bool, typer.Option("--examples", "-x", help="Use the built-in examples instead of PATH")
]
JsonOpt = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]
MergeOpt = Annotated[
    MergePolicy,
    typer.Option("--merge-policy", help="How re-evaluated decorations merge into the registry"),
]
ScopeOpt = Annotated[
    RegistryScope, typer.Option("--scope", help="Register decorations per cell or globally")
]
PassesOpt = Annotated[
    int, typer.Option("--passes", "-p", min=1, help="Maximum evaluation passes")
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
) -> None:
    """Evaluate notebooks of decorated port graphs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def load_notebook(
    path: Path,
    examples: bool,
    merge_policy: MergePolicy = MergePolicy.KEEP_EXISTING,
    scope: RegistryScope = RegistryScope.PER_CELL,
) -> Notebook:
    """Load cells from a directory (or the built-in examples) into a notebook."""
    source: CellSource = ExampleCellSource() if examples else DirectoryCellSource(path.resolve())
    config = NotebookConfig(merge_policy=merge_policy, registry_scope=scope)
    try:
        return Notebook.from_source(source, config=config)
    except SourceLoadError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def format_edge(edge: Edge) -> str:
    arrow = "->" if edge.directed else "--"
    return f"{edge.source} {arrow} {edge.target}"


def summarize(result: Any) -> str:
    """One-line rich markup description of a cell result."""
    if isinstance(result, CellError):
        return f"[red]{escape(result.message)}[/]"
    if isinstance(result, DecoratedGraph):
        names = ", ".join(result.decorations) or "none"
        return (
            f"graph: {result.graph.num_nodes} nodes, {result.graph.num_edges} edges "
            f"[dim](decorations: {names})[/]"
        )
    if isinstance(result, PortGraph):
        return f"graph: {result.num_nodes} nodes, {result.num_edges} edges"

    text = repr(result)
    if len(text) > _MAX_RESULT_DISPLAY:
        text = text[: _MAX_RESULT_DISPLAY - 3] + "..."
    return escape(text)


@app.command()
def run(
    path: PathArg = Path("."),
    examples: ExamplesOpt = False,
    passes: PassesOpt = 3,
    merge_policy: MergeOpt = MergePolicy.KEEP_EXISTING,
    scope: ScopeOpt = RegistryScope.PER_CELL,
    output_json: JsonOpt = False,
) -> None:
    """Evaluate every cell and report the results."""
    notebook = load_notebook(path, examples, merge_policy, scope)
    used = notebook.evaluate_until_fresh(passes)
    stale = notebook.stale_cells()

    if output_json:
        result = {
            "passes": used,
            "stale": stale,
            "cells": [
                {
                    "id": cell_id,
                    "dependencies": list(evaluated.dependencies),
                    "result": result_to_dict(evaluated.result),
                }
                for cell_id in notebook.cell_ids()
                if (evaluated := notebook.evaluated(cell_id)) is not None
            ],
        }
        print(json.dumps(result))
        return

    if not len(notebook):
        console.print("No cells found")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Cell", style="cyan")
    table.add_column("Status")
    table.add_column("Result")
    table.add_column("Depends on", style="dim")

    for cell_id in notebook.cell_ids():
        evaluated = notebook.evaluated(cell_id)
        if evaluated is None:
            table.add_row(cell_id, "[dim]pending[/]", "", "")
            continue
        if not evaluated.ok:
            status = "[red]error[/]"
        elif cell_id in stale:
            status = "[yellow]stale[/]"
        else:
            status = "[green]ok[/]"
        table.add_row(
            cell_id, status, summarize(evaluated.result), ", ".join(evaluated.dependencies)
        )

    console.print(table)
    console.print(f"[dim]Passes: {used} | Cells: {len(notebook)} | Stale: {len(stale)}[/]")


@app.command()
def show(
    cell: Annotated[str, typer.Argument(help="Cell id")],
    path: PathArg = Path("."),
    examples: ExamplesOpt = False,
    passes: PassesOpt = 3,
    merge_policy: MergeOpt = MergePolicy.KEEP_EXISTING,
    scope: ScopeOpt = RegistryScope.PER_CELL,
    output_json: JsonOpt = False,
) -> None:
    """Show the graph and decorations a cell evaluates to."""
    notebook = load_notebook(path, examples, merge_policy, scope)
    if cell not in notebook:
        console.print(f"No cell named '[cyan]{cell}[/cyan]'")
        raise typer.Exit(1)

    notebook.evaluate_until_fresh(passes)
    evaluated = notebook.evaluated(cell)
    if evaluated is None:
        console.print(f"Cell '[cyan]{cell}[/cyan]' was not evaluated")
        raise typer.Exit(1)
    decorations = notebook.decorations(cell)

    if output_json:
        result = {
            "id": cell,
            "viewer": evaluated.viewer,
            "dependencies": list(evaluated.dependencies),
            "result": result_to_dict(evaluated.result),
            "decorations": decorations_to_dict(decorations),
        }
        print(json.dumps(result))
        return

    console.print(f"\n[bold cyan]{cell}[/] [dim]({evaluated.viewer})[/]")
    if evaluated.dependencies:
        console.print(f"  [dim]Depends on: {', '.join(evaluated.dependencies)}[/]")

    value = evaluated.result
    if isinstance(value, CellError):
        console.print(f"  [red]Error:[/red] {escape(value.message)}")
        raise typer.Exit(1)

    graph = value.graph if isinstance(value, DecoratedGraph) else value
    if not isinstance(graph, PortGraph):
        console.print(f"  Value: {summarize(value)}")
        return

    console.print(f"  [green]Nodes:[/] {', '.join(graph.nodes()) or '[dim]none[/]'}")
    console.print("  [green]Edges:[/]")
    for edge in graph.edges():
        console.print(f"    [cyan]{edge.id}[/] {format_edge(edge)}")

    if decorations:
        console.print("  [green]Decorations:[/]")
        for name, deco in decorations.items():
            console.print(f"    [bold]{name}[/]")
            for key, entry in deco.entries():
                console.print(f"      {key}: {escape(repr(entry))}")


@app.command()
def deps(
    path: PathArg = Path("."),
    examples: ExamplesOpt = False,
    passes: PassesOpt = 3,
    output_json: JsonOpt = False,
) -> None:
    """Show cell dependencies, evaluation order and stale cells."""
    notebook = load_notebook(path, examples)
    notebook.evaluate_until_fresh(passes)
    state = notebook.state
    order = evaluation_order(state)
    stale = notebook.stale_cells()

    if output_json:
        result = {
            "order": order,
            "stale": stale,
            "dependencies": {
                cell_id: list(evaluated.dependencies) if evaluated else []
                for cell_id, evaluated in state.evaluated_cells.items()
            },
        }
        print(json.dumps(result))
        return

    for cell_id, evaluated in state.evaluated_cells.items():
        dependencies = evaluated.dependencies if evaluated else ()
        suffix = f" [dim]<- {', '.join(dependencies)}[/]" if dependencies else ""
        console.print(f"[cyan]{cell_id}[/]{suffix}")

    if order is None:
        console.print("\n[red]Dependency cycle: no evaluation order[/red]")
    else:
        console.print(f"\nOrder: {' -> '.join(order)}")

    if stale:
        console.print(f"[yellow]Stale: {', '.join(stale)}[/]")


@app.command(name="examples")
def list_examples(
    name: Annotated[str | None, typer.Argument(help="Print the source of this example")] = None,
) -> None:
    """List the built-in examples, or print one's cell source."""
    by_name = {fn.__name__: fn for fn in EXAMPLES}

    if name is None:
        for example in by_name:
            console.print(f"[cyan]{example}[/cyan]")
        return

    fn = by_name.get(name)
    if fn is None:
        console.print(f"No example named '[cyan]{name}[/cyan]'")
        raise typer.Exit(1)
    console.print(Syntax(function_body(fn), "python"))


if __name__ == "__main__":
    app()
