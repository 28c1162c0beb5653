"""Load cells from a directory, one file per cell."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path

from portgraph.core.exceptions import SourceLoadError
from portgraph.notebook.models import Cell

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "*.py"

DEFAULT_EXCLUDES = [
    "__init__.py",
    "_*",
    ".*",
]


class DirectoryCellSource:
    """Each matching file becomes a cell whose id is the file stem.

    Files are taken in name order.
    """

    def __init__(
        self,
        directory: Path,
        pattern: str = DEFAULT_PATTERN,
        exclude_patterns: list[str] | None = None,
    ) -> None:
        self.directory = directory
        self.pattern = pattern
        self.exclude_patterns = DEFAULT_EXCLUDES + (exclude_patterns or [])

    def supports(self, file: Path) -> bool:
        return file.is_file() and not any(
            fnmatch.fnmatch(file.name, pattern) for pattern in self.exclude_patterns
        )

    def load(self) -> list[Cell]:
        if not self.directory.is_dir():
            raise SourceLoadError(f"Not a directory: {self.directory}")

        cells = []
        for file in sorted(self.directory.glob(self.pattern)):
            if not self.supports(file):
                continue
            try:
                source = file.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise SourceLoadError(f"Cannot read {file}: {e}") from e
            cells.append(Cell(id=file.stem, source=source))

        logger.info("Loaded %d cells from %s", len(cells), self.directory)
        return cells
