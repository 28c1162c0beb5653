"""Graph-construction DSL and the DecoratedGraph record."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from portgraph.core.graph.base import PathEntry, PortGraph, PortSpec
from portgraph.core.graph.decoration import Decoration
from portgraph.core.models import Edge


class GraphBuilder:
    """Builds a PortGraph one node or edge at a time.

    Usage:
        g = builder()
        e1 = g.arrow(("a", "0"), ("b", "1"))
        g.undirected("a", ("d", "6"))
        g.path(("b", "out"), ("h1", ("in", "out")), ("a", "in"))
        graph = g.build()

    Edge methods return the new edge's id so it can key a decoration.
    """

    def __init__(self) -> None:
        self._graph = PortGraph()

    def node(self, v: str) -> str:
        return self._graph.node(v)

    def edge(self, source: PortSpec, target: PortSpec, directed: bool) -> str:
        return self._graph.edge(source, target, directed)

    def arrow(self, source: PortSpec, target: PortSpec) -> str:
        return self._graph.arrow(source, target)

    def undirected(self, source: PortSpec, target: PortSpec) -> str:
        return self._graph.undirected(source, target)

    def path(self, *entries: PathEntry) -> list[str]:
        return self._graph.path(*entries)

    def build(self) -> PortGraph:
        return self._graph


@dataclass(frozen=True)
class DecoratedGraph:
    """A PortGraph paired with a named bundle of decorations.

    Bundle values may be Decorations, mappings or iterables of (id, value)
    pairs; the latter two are converted. Every decoration in the bundle is
    frozen, so the record cannot be changed through it.
    """

    graph: PortGraph
    decorations: Mapping[str, Decoration[Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.graph, PortGraph):
            raise TypeError(
                f"decorated_graph() needs a PortGraph, not {type(self.graph).__name__}"
            )
        bundle = {
            name: _as_decoration(name, deco).freeze()
            for name, deco in dict(self.decorations).items()
        }
        object.__setattr__(self, "decorations", MappingProxyType(bundle))

    def decoration(self, name: str) -> Decoration[Any] | None:
        return self.decorations.get(name)

    def incompatible_decorations(self) -> list[str]:
        """Names of decorations with keys that are not ids in the graph."""
        return [
            name for name, deco in self.decorations.items() if not deco.compatible_with(self.graph)
        ]

    def __repr__(self) -> str:
        return f"DecoratedGraph({self.graph!r}, decorations={list(self.decorations)})"


def _as_decoration(name: str, value: Any) -> Decoration[Any]:
    if isinstance(value, Decoration):
        return value
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        return Decoration(value)
    raise TypeError(
        f"Decoration {name!r} must be a Decoration, mapping or iterable of pairs, "
        f"not {type(value).__name__}"
    )


def graph(nodes: Iterable[str] = (), edges: Iterable[Edge] = ()) -> PortGraph:
    """Create a PortGraph; it accepts the builder methods directly."""
    return PortGraph(nodes, edges)


def builder() -> GraphBuilder:
    return GraphBuilder()


def decoration(
    initial: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
) -> Decoration[Any]:
    return Decoration(initial)


def decorated_graph(
    g: GraphBuilder | PortGraph, decorations: Mapping[str, Decoration[Any]] | None = None
) -> DecoratedGraph:
    """Pair a graph (or a builder's graph) with named decorations."""
    return DecoratedGraph(g.build() if isinstance(g, GraphBuilder) else g, decorations or {})


def edge_decorations(dg: DecoratedGraph) -> dict[str, list[tuple[str, Any]]]:
    """Group decoration values by edge id, for renderers that draw edges."""
    result: dict[str, list[tuple[str, Any]]] = {}
    for e in dg.graph.edges():
        entries = result.setdefault(e.id, [])
        for name, deco in dg.decorations.items():
            if deco.has(e.id):
                entries.append((name, deco.get(e.id)))
    return result
