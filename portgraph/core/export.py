"""Convert graphs, decorations and cell results to JSON-serializable dicts."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from portgraph.core.graph.base import PortGraph
from portgraph.core.graph.builder import DecoratedGraph
from portgraph.core.graph.decoration import Decoration
from portgraph.core.models import CellError, Edge


def value_to_json(value: Any) -> Any:
    """Best-effort conversion of an opaque decoration payload."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decoration):
        return decoration_to_dict(value)
    if isinstance(value, PortGraph):
        return graph_to_dict(value)
    if isinstance(value, DecoratedGraph):
        return decorated_graph_to_dict(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: value_to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): value_to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [value_to_json(v) for v in value]
    return repr(value)


def edge_to_dict(edge: Edge) -> dict[str, Any]:
    return {
        "id": edge.id,
        "directed": edge.directed,
        "from": {"vertex": edge.source.vertex, "port": edge.source.port},
        "to": {"vertex": edge.target.vertex, "port": edge.target.port},
    }


def graph_to_dict(graph: PortGraph) -> dict[str, Any]:
    return {
        "nodes": graph.nodes(),
        "edges": [edge_to_dict(e) for e in graph.edges()],
    }


def decoration_to_dict(deco: Decoration[Any]) -> dict[str, Any]:
    return {k: value_to_json(v) for k, v in deco.entries()}


def decorations_to_dict(decorations: Mapping[str, Decoration[Any]]) -> dict[str, Any]:
    return {name: decoration_to_dict(d) for name, d in decorations.items()}


def decorated_graph_to_dict(dg: DecoratedGraph) -> dict[str, Any]:
    return {
        **graph_to_dict(dg.graph),
        "decorations": decorations_to_dict(dg.decorations),
    }


def result_to_dict(result: Any) -> dict[str, Any]:
    """Describe a cell result, tagging its kind for consumers."""
    if isinstance(result, CellError):
        return {"kind": "error", "error": result.message}
    if isinstance(result, DecoratedGraph):
        return {"kind": "decorated_graph", **decorated_graph_to_dict(result)}
    if isinstance(result, PortGraph):
        return {"kind": "graph", **graph_to_dict(result)}
    return {"kind": "value", "value": value_to_json(result)}
