"""Protocol for cell source collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from portgraph.notebook.models import Cell


class CellSource(Protocol):
    """Supplies the initial cells that seed a notebook."""

    def load(self) -> list[Cell]:
        """Load cells, in the order they should appear in the notebook."""
        ...
