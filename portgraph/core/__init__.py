"""
Core module: data models, exceptions, and the port graph.

Models (models.py):
    - Port: A (vertex, port-name) attachment point
    - Edge: A directed or undirected connection between two ports
    - Vector2/FormattedContent: Common decoration payloads
    - CellError: Error descriptor stored in place of a failed result

Exceptions (exceptions.py):
    - PortGraphError: Base exception for all portgraph errors
    - PathSpecError: Malformed ported path
    - CellNotFoundError/StaleCellError: Failed cell() references

Graph (graph/):
    - PortGraph, Decoration, DecoratedGraph and the construction DSL
"""

from portgraph.core.exceptions import (
    CellNotFoundError,
    EvaluationError,
    PathSpecError,
    PortGraphError,
    SourceLoadError,
    StaleCellError,
)
from portgraph.core.graph import DecoratedGraph, Decoration, GraphBuilder, PortGraph
from portgraph.core.models import DEFAULT_PORT, CellError, Edge, FormattedContent, Port, Vector2

__all__ = [
    # Models
    "DEFAULT_PORT",
    "Port",
    "Edge",
    "Vector2",
    "FormattedContent",
    "CellError",
    # Exceptions
    "PortGraphError",
    "PathSpecError",
    "CellNotFoundError",
    "StaleCellError",
    "EvaluationError",
    "SourceLoadError",
    # Graph
    "PortGraph",
    "Decoration",
    "DecoratedGraph",
    "GraphBuilder",
]
