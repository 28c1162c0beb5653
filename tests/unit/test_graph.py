"""Unit tests for PortGraph and graph algorithms."""

import pytest

from portgraph.core.exceptions import PathSpecError, ReadOnlyError
from portgraph.core.graph import PortGraph
from portgraph.core.graph.analysis import has_cycle, sinks, sources, topological_sort
from portgraph.core.graph.pathfinding import shortest_path
from portgraph.core.graph.traversal import bfs, dfs
from portgraph.core.models import DEFAULT_PORT, Edge, Port


@pytest.fixture
def linear_graph() -> PortGraph:
    """Create a linear graph: a -> b -> c -> d."""
    graph = PortGraph()
    graph.arrow("a", "b")  # e0
    graph.arrow("b", "c")  # e1
    graph.arrow("c", "d")  # e2
    return graph


@pytest.fixture
def branching_graph() -> PortGraph:
    r"""Create a branching graph: a -> b -> d, a -> c -> d (diamond shape)."""
    graph = PortGraph()
    graph.arrow("a", "b")
    graph.arrow("a", "c")
    graph.arrow("b", "d")
    graph.arrow("c", "d")
    return graph


@pytest.fixture
def cyclic_graph() -> PortGraph:
    """Create a graph with a cycle: a -> b -> c -> a."""
    graph = PortGraph()
    graph.arrow("a", "b")
    graph.arrow("b", "c")
    graph.arrow("c", "a")  # cycle
    return graph


@pytest.fixture
def ported_graph() -> PortGraph:
    """Arrows a:0 -> b:1, b:2 -> c:3, c:4 -> a:5 and undirected a -- d:6."""
    graph = PortGraph(["a", "b", "c", "d"])
    graph.arrow(("a", "0"), ("b", "1"))
    graph.arrow(("b", "2"), ("c", "3"))
    graph.arrow(("c", "4"), ("a", "5"))
    graph.undirected("a", ("d", "6"))
    return graph


class TestPort:
    """Tests for Port normalization."""

    def test_bare_vertex_uses_default_port(self) -> None:
        assert Port.of("a") == Port("a", DEFAULT_PORT)

    def test_pair(self) -> None:
        assert Port.of(("a", "out")) == Port("a", "out")

    def test_port_passthrough(self) -> None:
        port = Port("a", "in")
        assert Port.of(port) is port

    def test_str(self) -> None:
        assert str(Port("a")) == "a"
        assert str(Port("a", "0")) == "a:0"


class TestPortGraph:
    """Tests for the PortGraph class."""

    def test_add_node_idempotent(self) -> None:
        graph = PortGraph()
        graph.add_node("a")
        graph.add_node("a")
        assert graph.nodes() == ["a"]

    def test_add_edge_adds_endpoints(self) -> None:
        graph = PortGraph()
        graph.add_edge(Port("a"), Port("b"))
        assert graph.nodes() == ["a", "b"]

    def test_edge_dedup(self) -> None:
        graph = PortGraph()
        first = graph.add_edge(Port("a", "0"), Port("b", "1"))
        second = graph.add_edge(Port("a", "0"), Port("b", "1"))

        assert first is second
        assert first.id == second.id
        assert graph.num_edges == 1

    def test_direction_is_part_of_identity(self) -> None:
        graph = PortGraph()
        directed = graph.arrow("a", "b")
        undirected = graph.undirected("a", "b")

        assert directed != undirected
        assert graph.num_edges == 2

    def test_different_ports_are_different_edges(self) -> None:
        graph = PortGraph()
        graph.arrow(("a", "0"), "b")
        graph.arrow(("a", "1"), "b")
        assert graph.num_edges == 2

    def test_edge_ids_are_sequential(self) -> None:
        graph = PortGraph()
        assert graph.arrow("a", "b") == "e0"
        assert graph.arrow("b", "c") == "e1"

    def test_outset_and_inset(self, ported_graph: PortGraph) -> None:
        out_a = ported_graph.outset("a")
        in_a = ported_graph.inset("a")

        assert [(e.source, e.target) for e in out_a] == [
            (Port("a", "0"), Port("b", "1")),
            (Port("a"), Port("d", "6")),
        ]
        assert [e.source.vertex for e in in_a] == ["c"]

    def test_outset_filtered_by_port(self, ported_graph: PortGraph) -> None:
        edges = ported_graph.outset("a", "0")
        assert len(edges) == 1
        assert edges[0].target == Port("b", "1")

    def test_inset_filtered_by_port(self, ported_graph: PortGraph) -> None:
        assert len(ported_graph.inset("a", "5")) == 1
        assert ported_graph.inset("a", "0") == []

    def test_unknown_vertex_has_no_edges(self, ported_graph: PortGraph) -> None:
        assert ported_graph.outset("zzz") == []
        assert ported_graph.inset("zzz") == []
        assert ported_graph.neighbors("zzz") == []

    def test_neighbors(self, ported_graph: PortGraph) -> None:
        assert set(ported_graph.neighbors("a")) == {"b", "c", "d"}
        # inbound sources first, then outbound targets
        assert ported_graph.neighbors("a") == ["c", "b", "d"]

    def test_remove_node_cascades(self, ported_graph: PortGraph) -> None:
        ported_graph.remove_node("a")

        assert not ported_graph.has_node("a")
        assert "a" not in ported_graph.nodes()
        for edge in ported_graph.edges():
            assert edge.source.vertex != "a"
            assert edge.target.vertex != "a"
        assert ported_graph.num_edges == 1
        assert ported_graph.outset("c") == []
        assert ported_graph.inset("b") == []

    def test_remove_missing_node_is_noop(self, linear_graph: PortGraph) -> None:
        linear_graph.remove_node("zzz")
        assert linear_graph.num_nodes == 4

    def test_remove_edge(self, linear_graph: PortGraph) -> None:
        edge = linear_graph.get_edge("e1")
        assert edge is not None

        linear_graph.remove_edge(edge)

        assert not linear_graph.has_edge_id("e1")
        assert linear_graph.outset("b") == []
        assert linear_graph.inset("c") == []
        assert linear_graph.num_nodes == 4

    def test_remove_foreign_edge_is_noop(self, linear_graph: PortGraph) -> None:
        foreign = Edge("e1", True, Port("x"), Port("y"))
        linear_graph.remove_edge(foreign)
        assert linear_graph.num_edges == 3

    def test_has_edge_ignores_direction(self) -> None:
        graph = PortGraph()
        graph.undirected("a", "b")
        lookalike = Edge("other", True, Port("a"), Port("b"))
        assert graph.has_edge(lookalike)
        assert not graph.has_edge(Edge("other", True, Port("b"), Port("a")))

    def test_nodes_and_edges_are_copies(self, linear_graph: PortGraph) -> None:
        linear_graph.nodes().append("zzz")
        linear_graph.edges().clear()
        assert linear_graph.num_nodes == 4
        assert linear_graph.num_edges == 3

    def test_clone_is_independent(self, linear_graph: PortGraph) -> None:
        copy = linear_graph.clone()
        copy.remove_node("a")

        assert linear_graph.has_node("a")
        assert linear_graph.num_edges == 3
        assert copy.num_edges == 2

    def test_frozen_graph_refuses_mutation(self, linear_graph: PortGraph) -> None:
        assert linear_graph.freeze() is linear_graph
        assert linear_graph.frozen

        for mutate in [
            lambda: linear_graph.node("x"),
            lambda: linear_graph.arrow("a", "x"),
            lambda: linear_graph.remove_node("a"),
            lambda: linear_graph.remove_edge(linear_graph.edges()[0]),
            linear_graph.clear,
        ]:
            with pytest.raises(ReadOnlyError):
                mutate()

        assert linear_graph.nodes() == ["a", "b", "c", "d"]
        assert linear_graph.num_edges == 3

    def test_clone_of_frozen_graph_is_writable(self, linear_graph: PortGraph) -> None:
        copy = linear_graph.freeze().clone()
        assert not copy.frozen
        copy.arrow("d", "e")
        assert copy.num_edges == 4

    def test_clear(self, linear_graph: PortGraph) -> None:
        linear_graph.clear()
        assert len(linear_graph) == 0
        assert linear_graph.edges() == []
        assert linear_graph.arrow("x", "y") == "e0"

    def test_constructor_accepts_edge_tuples(self) -> None:
        graph = PortGraph(["a"], [(("a", "0"), "b", True), ("b", "c", False)])
        assert graph.nodes() == ["a", "b", "c"]
        assert [e.directed for e in graph.edges()] == [True, False]

    def test_contains(self, linear_graph: PortGraph) -> None:
        assert "a" in linear_graph
        assert "zzz" not in linear_graph


class TestPaths:
    """Tests for ported paths."""

    def test_path_through_intermediate(self) -> None:
        graph = PortGraph()
        ids = graph.path(("b", "out"), ("h1", ("in", "out")), ("a", "in"))

        assert len(ids) == 2
        first, second = (graph.get_edge(i) for i in ids)
        assert first.source == Port("b", "out")
        assert first.target == Port("h1", "in")
        assert second.source == Port("h1", "out")
        assert second.target == Port("a", "in")

    def test_path_endpoints_with_pairs(self) -> None:
        graph = PortGraph()
        ids = graph.path(("a", ("unused", "out")), ("b", ("in", "unused")))
        edge = graph.get_edge(ids[0])
        assert edge.source == Port("a", "out")
        assert edge.target == Port("b", "in")

    def test_path_rejects_bare_intermediate_port(self) -> None:
        graph = PortGraph()
        with pytest.raises(PathSpecError) as exc_info:
            graph.path(("a", "out"), ("h", "in"), ("b", "in"))

        assert "'h'" in str(exc_info.value)

    def test_single_entry_path_has_no_edges(self) -> None:
        graph = PortGraph()
        assert graph.path(("a", "out")) == []


class TestTraversal:
    """Tests for DFS and BFS."""

    def test_dfs_linear(self, linear_graph: PortGraph) -> None:
        assert dfs(linear_graph, "a") == ["e0", "e1", "e2"]

    def test_dfs_tree_has_one_edge_per_reached_vertex(self, branching_graph: PortGraph) -> None:
        tree = dfs(branching_graph, "a")
        assert len(tree) == 3
        targets = {branching_graph.get_edge(e).target.vertex for e in tree}
        assert targets == {"b", "c", "d"}

    def test_dfs_follows_undirected_both_ways(self) -> None:
        graph = PortGraph()
        graph.undirected("b", "a")
        assert dfs(graph, "a") == ["e0"]

    def test_dfs_does_not_walk_arrows_backwards(self, linear_graph: PortGraph) -> None:
        assert dfs(linear_graph, "d") == []

    def test_dfs_unknown_start(self, linear_graph: PortGraph) -> None:
        assert dfs(linear_graph, "zzz") == []

    def test_dfs_terminates_on_cycle(self, cyclic_graph: PortGraph) -> None:
        assert len(dfs(cyclic_graph, "a")) == 2

    def test_bfs_order(self, branching_graph: PortGraph) -> None:
        assert bfs(branching_graph, "a") == ["a", "b", "c", "d"]


class TestPathfinding:
    """Tests for shortest path."""

    def test_shortest_path_linear(self, linear_graph: PortGraph) -> None:
        assert shortest_path(linear_graph, "a", "d") == ["e0", "e1", "e2"]

    def test_shortest_path_same_node(self, linear_graph: PortGraph) -> None:
        assert shortest_path(linear_graph, "a", "a") == []

    def test_shortest_path_unreachable(self, linear_graph: PortGraph) -> None:
        assert shortest_path(linear_graph, "d", "a") is None

    def test_shortest_path_unknown_node(self, linear_graph: PortGraph) -> None:
        assert shortest_path(linear_graph, "a", "zzz") is None

    def test_shortest_path_prefers_fewest_hops(self) -> None:
        graph = PortGraph()
        graph.arrow("a", "b")
        graph.arrow("b", "c")
        shortcut = graph.arrow("a", "c")
        assert shortest_path(graph, "a", "c") == [shortcut]


class TestAnalysis:
    """Tests for cycle detection, sources, sinks and topological sort."""

    def test_has_cycle_false(self, linear_graph: PortGraph) -> None:
        assert has_cycle(linear_graph) is False

    def test_has_cycle_true(self, cyclic_graph: PortGraph) -> None:
        assert has_cycle(cyclic_graph) is True

    def test_has_cycle_branching(self, branching_graph: PortGraph) -> None:
        assert has_cycle(branching_graph) is False

    def test_undirected_edges_are_not_cycles(self) -> None:
        graph = PortGraph()
        graph.undirected("a", "b")
        graph.undirected("b", "a")
        assert has_cycle(graph) is False

    def test_sources_and_sinks(self, branching_graph: PortGraph) -> None:
        assert sources(branching_graph) == ["a"]
        assert sinks(branching_graph) == ["d"]

    def test_topological_sort_linear(self, linear_graph: PortGraph) -> None:
        assert topological_sort(linear_graph) == ["a", "b", "c", "d"]

    def test_topological_sort_branching(self, branching_graph: PortGraph) -> None:
        order = topological_sort(branching_graph)
        assert order is not None
        assert order.index("a") < order.index("b") < order.index("d")
        assert order.index("a") < order.index("c") < order.index("d")

    def test_topological_sort_cycle(self, cyclic_graph: PortGraph) -> None:
        assert topological_sort(cyclic_graph) is None
