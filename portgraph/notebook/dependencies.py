"""Dependency queries over a notebook's evaluated cells."""

from __future__ import annotations

from portgraph.core.graph.analysis import topological_sort
from portgraph.core.graph.base import PortGraph
from portgraph.notebook.models import NotebookState


def dependency_graph(state: NotebookState) -> PortGraph:
    """Graph with one vertex per cell and an arrow from each dependency to its dependent.

    Dependencies come from each cell's last evaluation; references to cells
    that no longer exist are left out.
    """
    graph = PortGraph(state.cells)
    for cell_id, evaluated in state.evaluated_cells.items():
        if evaluated is None:
            continue
        for dep in evaluated.dependencies:
            if dep in state.cells:
                graph.arrow(dep, cell_id)
    return graph


def evaluation_order(state: NotebookState) -> list[str] | None:
    """Cell ids with every dependency before its dependents, or None on a cycle."""
    return topological_sort(dependency_graph(state))


def dependents(state: NotebookState, cell_id: str) -> list[str]:
    """Cells whose last evaluation referenced ``cell_id``."""
    return [
        other
        for other, evaluated in state.evaluated_cells.items()
        if evaluated is not None and cell_id in evaluated.dependencies
    ]


def stale_cells(state: NotebookState) -> list[str]:
    """Cells whose current result may not reflect current sources.

    A cell is stale when it was never evaluated, when its source changed
    after its evaluation, or when any dependency is missing, stale, or was
    re-evaluated after it.
    """
    memo: dict[str, bool] = {}

    def is_stale(cell_id: str, visiting: frozenset[str]) -> bool:
        if cell_id in memo:
            return memo[cell_id]
        cell = state.cells.get(cell_id)
        evaluated = state.evaluated_cells.get(cell_id)
        if cell is None or evaluated is None or evaluated.last_evaluated < cell.last_updated:
            memo[cell_id] = True
            return True

        stale = False
        for dep in evaluated.dependencies:
            if dep == cell_id or dep in visiting:
                continue
            dep_evaluated = state.evaluated_cells.get(dep)
            if (
                dep_evaluated is None
                or dep_evaluated.last_evaluated > evaluated.last_evaluated
                or is_stale(dep, visiting | {cell_id})
            ):
                stale = True
                break

        memo[cell_id] = stale
        return stale

    return [cell_id for cell_id in state.cells if is_stale(cell_id, frozenset())]
