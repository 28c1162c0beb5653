"""Notebook facade: the single logical mutator of a NotebookState."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from portgraph.core.graph.decoration import Decoration
from portgraph.notebook.dependencies import evaluation_order, stale_cells
from portgraph.notebook.engine import Clock, NotebookEngine
from portgraph.notebook.models import (
    AddCell,
    AddEmptyCell,
    Cell,
    CellSize,
    DecorationBundle,
    DeleteCell,
    EvaluateAll,
    EvaluateCell,
    EvaluatedCell,
    NotebookAction,
    NotebookConfig,
    NotebookState,
    RenameCell,
    UpdateCellSize,
    UpdateCellSource,
    UpdateCellViewer,
    UpdateDecorationValue,
)

if TYPE_CHECKING:
    from portgraph.evaluator.base import Evaluator
    from portgraph.sources.base import CellSource


class Notebook:
    """Holds the current notebook state and applies actions to it.

    Every mutation goes through ``dispatch``, which swaps in the new state
    produced by the engine. States handed out earlier are never modified, so
    callers may keep them as snapshots. Callers on several threads must
    serialize their calls.
    """

    def __init__(
        self,
        cells: list[Cell] | None = None,
        config: NotebookConfig | None = None,
        bindings: Mapping[str, Any] | None = None,
        clock: Clock | None = None,
        evaluator: Evaluator | None = None,
    ) -> None:
        self.engine = NotebookEngine(config, bindings, clock, evaluator)
        self._state = NotebookState()
        for cell in cells or []:
            self.dispatch(AddCell(cell))

    @classmethod
    def from_source(cls, source: CellSource, **kwargs: Any) -> Notebook:
        """Create a notebook seeded with the cells a CellSource loads."""
        return cls(source.load(), **kwargs)

    @property
    def state(self) -> NotebookState:
        return self._state

    def dispatch(self, action: NotebookAction) -> NotebookState:
        self._state = self.engine.reduce(self._state, action)
        return self._state

    # Mutations

    def add_empty_cell(self) -> NotebookState:
        return self.dispatch(AddEmptyCell())

    def add_cell(self, cell: Cell) -> NotebookState:
        return self.dispatch(AddCell(cell))

    def delete_cell(self, cell_id: str) -> NotebookState:
        return self.dispatch(DeleteCell(cell_id))

    def rename_cell(self, cell_id: str, new_cell_id: str) -> NotebookState:
        return self.dispatch(RenameCell(cell_id, new_cell_id))

    def update_source(self, cell_id: str, source: str) -> NotebookState:
        return self.dispatch(UpdateCellSource(cell_id, source))

    def update_size(self, cell_id: str, width: int, height: int) -> NotebookState:
        return self.dispatch(UpdateCellSize(cell_id, CellSize(width, height)))

    def update_viewer(self, cell_id: str, viewer: str) -> NotebookState:
        return self.dispatch(UpdateCellViewer(cell_id, viewer))

    def evaluate_cell(self, cell_id: str) -> NotebookState:
        return self.dispatch(EvaluateCell(cell_id))

    def evaluate_all(self) -> NotebookState:
        return self.dispatch(EvaluateAll())

    def evaluate_until_fresh(self, max_passes: int = 3) -> int:
        """Evaluate all cells, then re-run them in dependency order while any are stale.

        The first pass uses insertion order and discovers dependencies; later
        passes follow them. Returns the number of passes run.
        """
        self.evaluate_all()
        passes = 1
        while passes < max_passes and stale_cells(self._state):
            for cell_id in evaluation_order(self._state) or self.cell_ids():
                self.evaluate_cell(cell_id)
            passes += 1
        return passes

    def stale_cells(self) -> list[str]:
        return stale_cells(self._state)

    def update_decoration_value(
        self, cell_id: str, decoration_type: str, entry_id: str, value: Any
    ) -> NotebookState:
        return self.dispatch(UpdateDecorationValue(cell_id, decoration_type, entry_id, value))

    def set_decoration(self, cell_id: str, decoration_type: str, entry_id: str, value: Any) -> None:
        """Write path for viewers, e.g. a dragged vertex position."""
        self.update_decoration_value(cell_id, decoration_type, entry_id, value)

    # Queries

    def cell_ids(self) -> list[str]:
        return list(self._state.cells)

    def cell(self, cell_id: str) -> Cell | None:
        return self._state.cells.get(cell_id)

    def evaluated(self, cell_id: str) -> EvaluatedCell | None:
        return self._state.evaluated_cells.get(cell_id)

    def result(self, cell_id: str) -> Any:
        evaluated = self.evaluated(cell_id)
        return evaluated.result if evaluated is not None else None

    def decorations(self, cell_id: str) -> DecorationBundle:
        """Registry decorations for a cell, after merging and viewer edits."""
        return self._state.decorations_registry.get(self.engine.registry_key(cell_id), {})

    def decoration(self, cell_id: str, decoration_type: str) -> Decoration[Any] | None:
        return self.decorations(cell_id).get(decoration_type)

    def __len__(self) -> int:
        return len(self._state.cells)

    def __contains__(self, cell_id: object) -> bool:
        return cell_id in self._state.cells

    def __repr__(self) -> str:
        evaluated = sum(1 for e in self._state.evaluated_cells.values() if e is not None)
        return f"Notebook(cells={len(self)}, evaluated={evaluated})"
