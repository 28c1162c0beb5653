"""Shortest path search over a PortGraph."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from portgraph.core.graph.traversal import steps

if TYPE_CHECKING:
    from portgraph.core.graph.base import PortGraph
    from portgraph.core.models import Edge


def shortest_path(graph: PortGraph, from_id: str, to_id: str) -> list[str] | None:
    """Edge ids along a fewest-hops path, or None when unreachable. BFS, O(V + E)."""
    if not graph.has_node(from_id) or not graph.has_node(to_id):
        return None
    if from_id == to_id:
        return []

    queue: deque[str] = deque([from_id])
    parent: dict[str, tuple[str, Edge]] = {}
    visited: set[str] = {from_id}

    while queue:
        current = queue.popleft()
        for edge, nxt in steps(graph, current):
            if nxt not in visited:
                visited.add(nxt)
                parent[nxt] = (current, edge)
                if nxt == to_id:
                    return _reconstruct(from_id, to_id, parent)
                queue.append(nxt)

    return None


def _reconstruct(from_id: str, to_id: str, parent: dict[str, tuple[str, Edge]]) -> list[str]:
    """Reconstruct the edge sequence from the BFS parent map."""
    edge_ids = []
    current = to_id

    while current != from_id:
        prev, edge = parent[current]
        edge_ids.append(edge.id)
        current = prev

    edge_ids.reverse()
    return edge_ids
