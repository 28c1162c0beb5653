"""
Notebook: named cells of source, evaluated with cross-cell references.

Components:
    - Notebook: Facade owning the current state; every change is an action
    - NotebookEngine: Pure ``reduce(state, action) -> state`` transitions
    - NotebookState/Cell/EvaluatedCell: Immutable snapshots
    - dependencies: Dependency graph, stale cells, topological order

A cell reads another cell's result with ``cell("id")``. The reference is
recorded as a dependency and fails if the referenced cell has not been
evaluated since its source last changed. ``evaluate_all`` runs cells in
insertion order, so a forward reference fails on the first pass and succeeds
on the next.
"""

from portgraph.notebook.dependencies import (
    dependency_graph,
    dependents,
    evaluation_order,
    stale_cells,
)
from portgraph.notebook.engine import MonotonicClock, NotebookEngine, merge_decorations
from portgraph.notebook.models import (
    DEFAULT_VIEWER,
    GLOBAL_REGISTRY_KEY,
    AddCell,
    AddEmptyCell,
    Cell,
    CellSize,
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
from portgraph.notebook.notebook import Notebook

__all__ = [
    # Facade and engine
    "Notebook",
    "NotebookEngine",
    "MonotonicClock",
    "merge_decorations",
    # Models
    "Cell",
    "CellSize",
    "EvaluatedCell",
    "NotebookState",
    "NotebookConfig",
    "MergePolicy",
    "RegistryScope",
    "DEFAULT_VIEWER",
    "GLOBAL_REGISTRY_KEY",
    # Actions
    "NotebookAction",
    "AddEmptyCell",
    "AddCell",
    "DeleteCell",
    "RenameCell",
    "UpdateCellSource",
    "UpdateCellSize",
    "UpdateCellViewer",
    "EvaluateCell",
    "EvaluateAll",
    "UpdateDecorationValue",
    # Dependencies
    "dependency_graph",
    "dependents",
    "evaluation_order",
    "stale_cells",
]
