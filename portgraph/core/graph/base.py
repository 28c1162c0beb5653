"""Core PortGraph class with ported edges and adjacency indexes."""

from __future__ import annotations

from collections.abc import Iterable

from portgraph.core.exceptions import PathSpecError, ReadOnlyError
from portgraph.core.models import DEFAULT_PORT, Edge, Port

PortSpec = str | tuple[str, str] | Port
PathEntry = tuple[str, str | tuple[str, str]]


class PortGraph:
    """Graph whose edges attach to named ports on vertices.

    Vertices and edges keep insertion order. The outgoing and incoming
    indexes always hold exactly the edges in ``_edges``. A frozen graph refuses
    every mutation with ReadOnlyError; ``clone()`` gives a writable copy.
    """

    __slots__ = (
        "_nodes",
        "_node_set",
        "_edges",
        "_by_key",
        "_by_id",
        "_out",
        "_in",
        "_counter",
        "_frozen",
    )

    def __init__(
        self,
        nodes: Iterable[str] = (),
        edges: Iterable[Edge | tuple[PortSpec, PortSpec, bool]] = (),
    ) -> None:
        self._nodes: list[str] = []
        self._node_set: set[str] = set()
        self._edges: list[Edge] = []
        self._by_key: dict[tuple[Port, Port, bool], Edge] = {}
        self._by_id: dict[str, Edge] = {}
        self._out: dict[str, list[Edge]] = {}
        self._in: dict[str, list[Edge]] = {}
        self._counter = 0
        self._frozen = False

        for v in nodes:
            self.add_node(v)
        for e in edges:
            if isinstance(e, Edge):
                self.add_edge(e.source, e.target, e.directed)
            else:
                source, target, directed = e
                self.add_edge(Port.of(source), Port.of(target), directed)

    def add_node(self, v: str) -> str:
        """Add a vertex. Adding an existing vertex is a no-op. O(1)."""
        self._check_mutable()
        if v not in self._node_set:
            self._node_set.add(v)
            self._nodes.append(v)
        return v

    def add_edge(self, source: Port, target: Port, directed: bool = True) -> Edge:
        """Add an edge, or return the existing one with the same endpoints. O(1)."""
        self._check_mutable()
        self.add_node(source.vertex)
        self.add_node(target.vertex)

        existing = self._by_key.get((source, target, directed))
        if existing is not None:
            return existing

        edge = Edge(id=f"e{self._counter}", directed=directed, source=source, target=target)
        self._counter += 1

        self._edges.append(edge)
        self._by_key[edge.key] = edge
        self._by_id[edge.id] = edge
        self._out.setdefault(source.vertex, []).append(edge)
        self._in.setdefault(target.vertex, []).append(edge)
        return edge

    def remove_node(self, v: str) -> None:
        """Remove a vertex and every edge touching it."""
        self._check_mutable()
        if v not in self._node_set:
            return

        self._node_set.remove(v)
        self._nodes.remove(v)

        for edge in list(self._out.get(v, [])):
            self.remove_edge(edge)
        for edge in list(self._in.get(v, [])):
            self.remove_edge(edge)
        self._out.pop(v, None)
        self._in.pop(v, None)

    def remove_edge(self, edge: Edge) -> None:
        """Remove an edge. Edges not in this graph are ignored."""
        self._check_mutable()
        if self._by_key.get(edge.key) != edge:
            return

        del self._by_key[edge.key]
        del self._by_id[edge.id]
        self._edges.remove(edge)

        out_list = self._out.get(edge.source.vertex)
        if out_list is not None:
            out_list.remove(edge)
        in_list = self._in.get(edge.target.vertex)
        if in_list is not None:
            in_list.remove(edge)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> PortGraph:
        """Make this graph read-only. Returns self."""
        self._frozen = True
        return self

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ReadOnlyError("Cannot modify a published graph; use clone() for a copy")

    def nodes(self) -> list[str]:
        return list(self._nodes)

    def edges(self) -> list[Edge]:
        return list(self._edges)

    def outset(self, v: str, port: str | None = None) -> list[Edge]:
        """Edges leaving ``v``, optionally only those leaving ``port``."""
        edges = self._out.get(v, [])
        if port is None:
            return list(edges)
        return [e for e in edges if e.source.port == port]

    def inset(self, v: str, port: str | None = None) -> list[Edge]:
        """Edges entering ``v``, optionally only those entering ``port``."""
        edges = self._in.get(v, [])
        if port is None:
            return list(edges)
        return [e for e in edges if e.target.port == port]

    def neighbors(self, v: str, port: str | None = None) -> list[str]:
        """Sources of inbound edges then targets of outbound edges, de-duplicated."""
        seen = [e.source.vertex for e in self.inset(v, port)]
        seen += [e.target.vertex for e in self.outset(v, port)]
        return list(dict.fromkeys(seen))

    def has_node(self, v: str) -> bool:
        return v in self._node_set

    def has_edge_id(self, edge_id: str) -> bool:
        return edge_id in self._by_id

    def has_edge(self, edge: Edge) -> bool:
        """Check for an edge with the same endpoint ports, in either direction mode."""
        return any(e.source == edge.source and e.target == edge.target for e in self._edges)

    def get_edge(self, edge_id: str) -> Edge | None:
        return self._by_id.get(edge_id)

    def clone(self) -> PortGraph:
        """Writable deep copy. Edges are replayed, so their ids are renumbered."""
        return PortGraph(self._nodes, self._edges)

    def clear(self) -> None:
        self._check_mutable()
        self._nodes.clear()
        self._node_set.clear()
        self._edges.clear()
        self._by_key.clear()
        self._by_id.clear()
        self._out.clear()
        self._in.clear()
        self._counter = 0

    # Builder conveniences, usable directly from cell sources

    def node(self, v: str) -> str:
        return self.add_node(v)

    def edge(self, source: PortSpec, target: PortSpec, directed: bool) -> str:
        """Add an edge from bare or ported endpoints and return its id."""
        return self.add_edge(Port.of(source), Port.of(target), directed).id

    def arrow(self, source: PortSpec, target: PortSpec) -> str:
        return self.edge(source, target, True)

    def undirected(self, source: PortSpec, target: PortSpec) -> str:
        return self.edge(source, target, False)

    def path(self, *entries: PathEntry) -> list[str]:
        """Chain arrows through ported vertices.

        Each entry is ``(vertex, port_spec)``. The first entry may name only its
        output port and the last only its input port; every intermediate entry
        must give ``(input_port, output_port)``.
        """
        hops: list[tuple[str, str | None, str | None]] = []
        for i, (vertex, spec) in enumerate(entries):
            if isinstance(spec, str):
                if i == 0:
                    hops.append((vertex, None, spec))
                elif i == len(entries) - 1:
                    hops.append((vertex, spec, None))
                else:
                    raise PathSpecError(
                        f"Intermediate node {vertex!r} in path must be "
                        "(vertex, (input_port, output_port))"
                    )
            else:
                input_port, output_port = spec
                hops.append((vertex, input_port, output_port))

        edge_ids = []
        for (src, _, out_port), (dst, in_port, _) in zip(hops, hops[1:]):
            edge_ids.append(
                self.arrow((src, out_port or DEFAULT_PORT), (dst, in_port or DEFAULT_PORT))
            )
        return edge_ids

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    @property
    def num_edges(self) -> int:
        return len(self._edges)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, v: object) -> bool:
        return v in self._node_set

    def __repr__(self) -> str:
        return f"PortGraph(nodes={self.num_nodes}, edges={self.num_edges})"
