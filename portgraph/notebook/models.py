"""Data models for notebooks: cells, evaluations, state, actions, config."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from portgraph.core.graph.decoration import Decoration
from portgraph.core.models import CellError
from portgraph.evaluator.interpreter import DEFAULT_MAX_STEPS

DEFAULT_VIEWER = "Basic"
GLOBAL_REGISTRY_KEY = "ALL"

DecorationBundle = Mapping[str, Decoration[Any]]


class MergePolicy(Enum):
    """How a re-evaluated cell's decorations combine with the registry's."""

    KEEP_EXISTING = "keep-existing"
    PREFER_NEW = "prefer-new"
    REPLACE = "replace"


class RegistryScope(Enum):
    """Whether decorations are registered per cell or in one shared slot."""

    PER_CELL = "per-cell"
    GLOBAL = "global"


@dataclass(frozen=True)
class CellSize:
    width: int = 512
    height: int = 512


@dataclass(frozen=True)
class Cell:
    """A named unit of source text."""

    id: str
    source: str = ""
    last_updated: int = 0
    size: CellSize = field(default_factory=CellSize)
    default_viewer: str | None = None


@dataclass(frozen=True)
class EvaluatedCell:
    """The outcome of one evaluation of a cell. Replaced, never patched."""

    id: str
    last_evaluated: int
    result: Any
    dependencies: tuple[str, ...] = ()
    viewer: str = DEFAULT_VIEWER

    @property
    def ok(self) -> bool:
        return not isinstance(self.result, CellError)

    @property
    def error(self) -> str | None:
        return self.result.message if isinstance(self.result, CellError) else None


@dataclass(frozen=True)
class NotebookState:
    """Immutable snapshot of a notebook.

    ``evaluated_cells`` maps every cell id to its EvaluatedCell, or None until
    the cell is first evaluated. ``decorations_registry`` maps a registry slot
    (a cell id, or GLOBAL_REGISTRY_KEY) to its decoration bundle.
    """

    cells: Mapping[str, Cell] = field(default_factory=dict)
    evaluated_cells: Mapping[str, EvaluatedCell | None] = field(default_factory=dict)
    decorations_registry: Mapping[str, DecorationBundle] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("cells", "evaluated_cells", "decorations_registry"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @classmethod
    def from_cells(cls, cells: list[Cell]) -> NotebookState:
        return cls(
            cells={c.id: c for c in cells},
            evaluated_cells={c.id: None for c in cells},
        )


@dataclass(frozen=True)
class NotebookConfig:
    """Engine configuration."""

    merge_policy: MergePolicy = MergePolicy.KEEP_EXISTING
    registry_scope: RegistryScope = RegistryScope.PER_CELL
    max_steps: int = DEFAULT_MAX_STEPS


# Actions


@dataclass(frozen=True)
class AddEmptyCell:
    pass


@dataclass(frozen=True)
class AddCell:
    cell: Cell


@dataclass(frozen=True)
class DeleteCell:
    cell_id: str


@dataclass(frozen=True)
class RenameCell:
    cell_id: str
    new_cell_id: str


@dataclass(frozen=True)
class UpdateCellSource:
    cell_id: str
    source: str


@dataclass(frozen=True)
class UpdateCellSize:
    cell_id: str
    size: CellSize


@dataclass(frozen=True)
class UpdateCellViewer:
    cell_id: str
    viewer: str


@dataclass(frozen=True)
class EvaluateCell:
    cell_id: str


@dataclass(frozen=True)
class EvaluateAll:
    pass


@dataclass(frozen=True)
class UpdateDecorationValue:
    cell_id: str
    decoration_type: str
    entry_id: str
    value: Any


NotebookAction = (
    AddEmptyCell
    | AddCell
    | DeleteCell
    | RenameCell
    | UpdateCellSource
    | UpdateCellSize
    | UpdateCellViewer
    | EvaluateCell
    | EvaluateAll
    | UpdateDecorationValue
)
