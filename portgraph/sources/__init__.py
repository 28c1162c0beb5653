"""
Cell sources: where a notebook's initial cells come from.

Components:
    - CellSource: Protocol with a single ``load() -> list[Cell]``
    - DirectoryCellSource: One file per cell, id taken from the file stem
    - ExampleCellSource: The built-in example graphs
"""

from portgraph.sources.base import CellSource
from portgraph.sources.directory import DirectoryCellSource
from portgraph.sources.examples import EXAMPLES, ExampleCellSource, function_body

__all__ = [
    "CellSource",
    "DirectoryCellSource",
    "ExampleCellSource",
    "EXAMPLES",
    "function_body",
]
