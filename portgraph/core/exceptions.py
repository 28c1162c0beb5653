"""portgraph custom exceptions."""


class PortGraphError(Exception):
    """Base exception for portgraph errors."""


class PathSpecError(PortGraphError):
    """A ported path was given an invalid port specification."""


class CellNotFoundError(PortGraphError):
    """Referenced cell does not exist in the notebook."""


class StaleCellError(PortGraphError):
    """Referenced cell has no evaluation newer than its last source update."""


class EvaluationError(PortGraphError):
    """Cell source used a construct the sandbox refuses, or ran too long."""


class SourceLoadError(PortGraphError):
    """Error loading cell sources."""


class ReadOnlyError(PortGraphError):
    """A published graph or decoration was modified in place."""
