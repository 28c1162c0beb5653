"""Graph analysis over directed edges: cycles, sources, sinks, topological sort."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from portgraph.core.graph.base import PortGraph


def _successors(graph: PortGraph, v: str) -> list[str]:
    return [e.target.vertex for e in graph.outset(v) if e.directed]


def has_cycle(graph: PortGraph) -> bool:
    """Check for directed cycles using three-color DFS. O(V + E)."""
    white, gray, black = 0, 1, 2
    color: dict[str, int] = {v: white for v in graph.nodes()}

    def dfs(v: str) -> bool:
        color[v] = gray
        for nxt in _successors(graph, v):
            if color[nxt] == gray:
                return True
            if color[nxt] == white and dfs(nxt):
                return True
        color[v] = black
        return False

    return any(color[v] == white and dfs(v) for v in graph.nodes())


def sources(graph: PortGraph) -> list[str]:
    """Vertices with no inbound directed edge."""
    return [v for v in graph.nodes() if not any(e.directed for e in graph.inset(v))]


def sinks(graph: PortGraph) -> list[str]:
    """Vertices with no outbound directed edge."""
    return [v for v in graph.nodes() if not _successors(graph, v)]


def topological_sort(graph: PortGraph) -> list[str] | None:
    """Topological sort using Kahn's algorithm. O(V + E).

    Ties keep vertex insertion order. Returns None if graph has cycles.
    """
    in_degree = {v: sum(1 for e in graph.inset(v) if e.directed) for v in graph.nodes()}
    queue: deque[str] = deque(v for v, d in in_degree.items() if d == 0)
    result: list[str] = []

    while queue:
        v = queue.popleft()
        result.append(v)

        for nxt in _successors(graph, v):
            in_degree[nxt] -= 1
            if in_degree[nxt] == 0:
                queue.append(nxt)

    return result if len(result) == graph.num_nodes else None
