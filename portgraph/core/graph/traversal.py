"""Depth-first and breadth-first traversal over a PortGraph."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from portgraph.core.graph.base import PortGraph
    from portgraph.core.models import Edge


def steps(graph: PortGraph, v: str) -> Iterator[tuple[Edge, str]]:
    """Edges that can be walked from ``v``, with the vertex each leads to.

    Directed edges are walked forwards only; undirected edges either way.
    """
    for edge in graph.outset(v):
        yield edge, edge.target.vertex
    for edge in graph.inset(v):
        if not edge.directed:
            yield edge, edge.source.vertex


def dfs(graph: PortGraph, start: str) -> list[str]:
    """Ids of the edges of a depth-first search tree rooted at ``start``.

    Iterative with an explicit stack. O(V + E).
    """
    if not graph.has_node(start):
        return []

    visited: set[str] = {start}
    tree_edges: list[str] = []
    stack: list[Iterator[tuple[Edge, str]]] = [steps(graph, start)]

    while stack:
        for edge, nxt in stack[-1]:
            if nxt not in visited:
                visited.add(nxt)
                tree_edges.append(edge.id)
                stack.append(steps(graph, nxt))
                break
        else:
            stack.pop()

    return tree_edges


def bfs(graph: PortGraph, start: str) -> list[str]:
    """Vertices reachable from ``start`` in breadth-first order. O(V + E)."""
    if not graph.has_node(start):
        return []

    visited: set[str] = {start}
    order: list[str] = []
    queue: deque[str] = deque([start])

    while queue:
        v = queue.popleft()
        order.append(v)
        for _, nxt in steps(graph, v):
            if nxt not in visited:
                visited.add(nxt)
                queue.append(nxt)

    return order
