"""Notebook engine: pure state transitions and cell evaluation."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Any, TypeVar

from portgraph.core.exceptions import CellNotFoundError, StaleCellError
from portgraph.core.graph.base import PortGraph
from portgraph.core.graph.builder import DecoratedGraph
from portgraph.core.graph.decoration import Decoration
from portgraph.core.models import CellError
from portgraph.evaluator.base import Evaluator
from portgraph.evaluator.bindings import DEFAULT_BINDINGS, with_bindings
from portgraph.evaluator.interpreter import SandboxEvaluator
from portgraph.notebook.models import (
    DEFAULT_VIEWER,
    GLOBAL_REGISTRY_KEY,
    AddCell,
    AddEmptyCell,
    Cell,
    DecorationBundle,
    DeleteCell,
    EvaluateAll,
    EvaluateCell,
    EvaluatedCell,
    MergePolicy,
    NotebookAction,
    NotebookConfig,
    NotebookState,
    RegistryScope,
    RenameCell,
    UpdateCellSize,
    UpdateCellSource,
    UpdateCellViewer,
    UpdateDecorationValue,
)

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

Clock = Callable[[], int]


class MonotonicClock:
    """Wraps a time source so successive readings strictly increase.

    Staleness compares timestamps with ``<``, so two events must never share
    a reading.
    """

    def __init__(self, source: Clock = time.time_ns) -> None:
        self._source = source
        self._last = 0

    def __call__(self) -> int:
        self._last = max(self._source(), self._last + 1)
        return self._last


def merge_decorations(
    old: DecorationBundle | None, new: DecorationBundle, policy: MergePolicy
) -> DecorationBundle:
    """Merge a freshly evaluated decoration bundle into a registry slot.

    Decoration types missing from ``old`` are added. Types present in both
    are merged key by key, except under REPLACE. Neither input is modified
    and the merged decorations are frozen.
    """
    merged: dict[str, Decoration[Any]] = dict(old or {})
    for name, deco in new.items():
        current = merged.get(name)
        if current is None or policy is MergePolicy.REPLACE:
            merged[name] = Decoration(deco.entries()).freeze()
        elif policy is MergePolicy.KEEP_EXISTING:
            added = [(k, v) for k, v in deco.entries() if not current.has(k)]
            merged[name] = Decoration(current.entries() + added).freeze()
        else:
            merged[name] = Decoration(current.entries() + deco.entries()).freeze()
    return MappingProxyType(merged)


def _publish(result: Any) -> Any:
    """Freeze a cell result so dependents cannot modify it through cell()."""
    if isinstance(result, DecoratedGraph):
        result.graph.freeze()
    elif isinstance(result, PortGraph):
        result.freeze()
    elif isinstance(result, Decoration):
        result.freeze()
    return result

def evaluate_cell(
    cell_id: str,
    cells: Mapping[str, Cell],
    evaluated_cells: Mapping[str, EvaluatedCell | None],
    evaluator: Evaluator,
    bindings: Mapping[str, Any],
    now: int,
) -> tuple[EvaluatedCell, DecorationBundle]:
    """Evaluate one cell against the given view of the other cells' results.

    Returns the new EvaluatedCell and the decorations its result contributes.
    """
    cell = cells[cell_id]
    previous = evaluated_cells.get(cell_id)
    viewer = previous.viewer if previous else (cell.default_viewer or DEFAULT_VIEWER)

    dependencies: dict[str, None] = {}

    def lookup(ref_id: str) -> Any:
        dep = cells.get(ref_id)
        if dep is None:
            raise CellNotFoundError(f"Cell with id {ref_id} does not exist.")

        dependencies.setdefault(ref_id, None)

        evaluated = evaluated_cells.get(ref_id)
        if evaluated is None or evaluated.last_evaluated < dep.last_updated:
            raise StaleCellError(f"Cell with id {ref_id} has not been evaluated yet.")
        return evaluated.result

    outcome = evaluator.evaluate(cell.source, with_bindings(bindings, cell=lookup))

    if not outcome.success:
        logger.debug("Error evaluating cell %s: %s", cell_id, outcome.error)
        result: Any = CellError(outcome.error or "evaluation failed")
        decorations: DecorationBundle = {}
    else:
        result = _publish(outcome.result)
        decorations = result.decorations if isinstance(result, DecoratedGraph) else {}

    evaluated_cell = EvaluatedCell(
        id=cell_id,
        last_evaluated=now,
        result=result,
        dependencies=tuple(dependencies),
        viewer=viewer,
    )
    return evaluated_cell, decorations


def _with(mapping: Mapping[K, V], key: K, value: V) -> dict[K, V]:
    return {**mapping, key: value}


def _without(mapping: Mapping[K, V], key: K) -> dict[K, V]:
    return {k: v for k, v in mapping.items() if k != key}


def _renamed(mapping: Mapping[K, V], old: K, new: K, value: V) -> dict[K, V]:
    """Replace key ``old`` with ``new`` in place, keeping iteration order."""
    return {(new if k == old else k): (value if k == old else v) for k, v in mapping.items()}


class NotebookEngine:
    """Applies notebook actions to immutable NotebookState snapshots.

    ``reduce`` never modifies the state it is given. Misuse (unknown cell,
    duplicate id, missing decoration type) is logged as a warning and the
    input state is returned unchanged.
    """

    def __init__(
        self,
        config: NotebookConfig | None = None,
        bindings: Mapping[str, Any] | None = None,
        clock: Clock | None = None,
        evaluator: Evaluator | None = None,
    ) -> None:
        self.config = config or NotebookConfig()
        self.bindings = bindings if bindings is not None else DEFAULT_BINDINGS
        self.clock = clock or MonotonicClock()
        self.evaluator = evaluator or SandboxEvaluator(self.config.max_steps)

    def registry_key(self, cell_id: str) -> str:
        """Registry slot that holds a cell's decorations."""
        if self.config.registry_scope is RegistryScope.GLOBAL:
            return GLOBAL_REGISTRY_KEY
        return cell_id

    def reduce(self, state: NotebookState, action: NotebookAction) -> NotebookState:
        """Return the state that results from applying ``action`` to ``state``."""
        if isinstance(action, AddEmptyCell):
            return self._add_empty_cell(state)
        if isinstance(action, AddCell):
            return self._add_cell(state, action)
        if isinstance(action, DeleteCell):
            return self._delete_cell(state, action)
        if isinstance(action, RenameCell):
            return self._rename_cell(state, action)
        if isinstance(action, UpdateCellSource):
            return self._update_source(state, action)
        if isinstance(action, UpdateCellSize):
            return self._update_size(state, action)
        if isinstance(action, UpdateCellViewer):
            return self._update_viewer(state, action)
        if isinstance(action, EvaluateCell):
            return self._evaluate_cell(state, action)
        if isinstance(action, EvaluateAll):
            return self._evaluate_all(state)
        if isinstance(action, UpdateDecorationValue):
            return self._update_decoration_value(state, action)

        logger.warning("Unknown notebook action %r. Ignoring.", action)
        return state

    def _add_empty_cell(self, state: NotebookState) -> NotebookState:
        counter = 1
        while f"cell-{counter}" in state.cells:
            counter += 1
        return self._add_cell(state, AddCell(Cell(id=f"cell-{counter}")))

    def _add_cell(self, state: NotebookState, action: AddCell) -> NotebookState:
        cell = action.cell
        if cell.id in state.cells:
            logger.warning("Cell with id %s already exists. Skipping add.", cell.id)
            return state

        return replace(
            state,
            cells=_with(state.cells, cell.id, cell),
            evaluated_cells=_with(state.evaluated_cells, cell.id, None),
        )

    def _delete_cell(self, state: NotebookState, action: DeleteCell) -> NotebookState:
        if action.cell_id not in state.cells:
            logger.warning("Cell with id %s does not exist. Cannot delete.", action.cell_id)
            return state

        registry = state.decorations_registry
        if self.config.registry_scope is RegistryScope.PER_CELL:
            registry = _without(registry, action.cell_id)

        return replace(
            state,
            cells=_without(state.cells, action.cell_id),
            evaluated_cells=_without(state.evaluated_cells, action.cell_id),
            decorations_registry=registry,
        )

    def _rename_cell(self, state: NotebookState, action: RenameCell) -> NotebookState:
        old, new = action.cell_id, action.new_cell_id
        if old not in state.cells:
            logger.warning("Cell with id %s does not exist. Cannot update ID.", old)
            return state
        if new in state.cells:
            logger.warning("Cell with new id %s already exists. Cannot update ID.", new)
            return state

        evaluated = state.evaluated_cells.get(old)
        registry = state.decorations_registry
        if self.config.registry_scope is RegistryScope.PER_CELL and old in registry:
            registry = _renamed(registry, old, new, registry[old])

        return replace(
            state,
            cells=_renamed(state.cells, old, new, replace(state.cells[old], id=new)),
            evaluated_cells=_renamed(
                state.evaluated_cells,
                old,
                new,
                replace(evaluated, id=new) if evaluated is not None else None,
            ),
            decorations_registry=registry,
        )

    def _update_source(self, state: NotebookState, action: UpdateCellSource) -> NotebookState:
        cell = state.cells.get(action.cell_id)
        if cell is None:
            logger.warning("Cell with id %s does not exist. Cannot update.", action.cell_id)
            return state

        updated = replace(cell, source=action.source, last_updated=self.clock())
        return replace(state, cells=_with(state.cells, cell.id, updated))

    def _update_size(self, state: NotebookState, action: UpdateCellSize) -> NotebookState:
        cell = state.cells.get(action.cell_id)
        if cell is None:
            logger.warning("Cell with id %s does not exist. Cannot update size.", action.cell_id)
            return state

        return replace(state, cells=_with(state.cells, cell.id, replace(cell, size=action.size)))

    def _update_viewer(self, state: NotebookState, action: UpdateCellViewer) -> NotebookState:
        evaluated = state.evaluated_cells.get(action.cell_id)
        if evaluated is None:
            logger.warning(
                "Cell with id %s is not evaluated. Cannot update viewer.", action.cell_id
            )
            return state

        return replace(
            state,
            evaluated_cells=_with(
                state.evaluated_cells, action.cell_id, replace(evaluated, viewer=action.viewer)
            ),
        )

    def _evaluate_cell(self, state: NotebookState, action: EvaluateCell) -> NotebookState:
        if action.cell_id not in state.cells:
            logger.warning("Cell with id %s does not exist. Cannot evaluate.", action.cell_id)
            return state
        return self._evaluate(state, [action.cell_id])

    def _evaluate_all(self, state: NotebookState) -> NotebookState:
        return self._evaluate(state, list(state.cells))

    def _evaluate(self, state: NotebookState, cell_ids: list[str]) -> NotebookState:
        """Evaluate cells in order; later cells see results of earlier ones."""
        evaluated_cells = dict(state.evaluated_cells)
        registry = dict(state.decorations_registry)

        for cell_id in cell_ids:
            evaluated, decorations = evaluate_cell(
                cell_id,
                state.cells,
                evaluated_cells,
                self.evaluator,
                self.bindings,
                self.clock(),
            )
            evaluated_cells[cell_id] = evaluated
            key = self.registry_key(cell_id)
            registry[key] = merge_decorations(
                registry.get(key), decorations, self.config.merge_policy
            )

        return replace(state, evaluated_cells=evaluated_cells, decorations_registry=registry)

    def _update_decoration_value(
        self, state: NotebookState, action: UpdateDecorationValue
    ) -> NotebookState:
        if state.evaluated_cells.get(action.cell_id) is None:
            logger.warning(
                "Cell with id %s is not evaluated. Cannot update decoration.", action.cell_id
            )
            return state

        key = self.registry_key(action.cell_id)
        bundle = state.decorations_registry.get(key, {})
        current = bundle.get(action.decoration_type)
        if current is None:
            logger.warning(
                "Decoration of type %s does not exist on cell %s. Cannot update decoration.",
                action.decoration_type,
                action.cell_id,
            )
            return state

        updated = MappingProxyType(
            _with(
                bundle,
                action.decoration_type,
                current.with_entry(action.entry_id, action.value).freeze(),
            )
        )
        return replace(state, decorations_registry=_with(state.decorations_registry, key, updated))
