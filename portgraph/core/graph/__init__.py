"""
Port graph data structures and algorithms.

Data Structures:
    - PortGraph: Ordered vertices and ported edges with adjacency indexes
    - Decoration: Sparse id -> value annotations, independent of any graph
    - DecoratedGraph: A PortGraph plus named decorations
    - GraphBuilder: Incremental construction DSL

Algorithms:
    - traversal: DFS tree edges, BFS vertex order
    - pathfinding: BFS shortest path
    - analysis: Cycle detection, sources/sinks, topological sort
"""

from portgraph.core.graph.base import PortGraph
from portgraph.core.graph.builder import (
    DecoratedGraph,
    GraphBuilder,
    builder,
    decorated_graph,
    decoration,
    edge_decorations,
    graph,
)
from portgraph.core.graph.decoration import Decoration

__all__ = [
    "PortGraph",
    "Decoration",
    "DecoratedGraph",
    "GraphBuilder",
    "builder",
    "decorated_graph",
    "decoration",
    "edge_decorations",
    "graph",
]
