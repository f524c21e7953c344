"""Unit tests for strongly connected component detection."""

from depsort.graph.components import find_cycles, strongly_connected_components
from depsort.graph.dependency_graph import DependencyGraph


def _as_sets(components):
    return {frozenset(c) for c in components}


class TestStronglyConnectedComponents:
    """Test SCC decomposition."""

    def test_empty_graph(self):
        """Test that an empty graph has no components."""
        assert strongly_connected_components(DependencyGraph()) == []

    def test_acyclic_graph_has_singleton_components(self):
        """Test that every node of a DAG is its own component."""
        graph = DependencyGraph()
        graph.add_edge("a", "b")
        graph.add_edge("b", "c")
        graph.add_edge("a", "c")

        components = strongly_connected_components(graph)

        assert _as_sets(components) == {
            frozenset({"a"}),
            frozenset({"b"}),
            frozenset({"c"}),
        }

    def test_components_partition_nodes(self):
        """Test that every node appears in exactly one component."""
        graph = DependencyGraph()
        graph.add_edge("a", "b")
        graph.add_edge("b", "a")
        graph.add_edge("b", "c")
        graph.add_edge("c", "d")
        graph.add_edge("d", "e")
        graph.add_edge("e", "c")
        graph.add_node("f")

        components = strongly_connected_components(graph)
        members = [node for component in components for node in component]

        assert sorted(members) == sorted(graph.nodes())
        assert _as_sets(components) == {
            frozenset({"a", "b"}),
            frozenset({"c", "d", "e"}),
            frozenset({"f"}),
        }

    def test_reverse_topological_order_of_components(self):
        """Test that downstream components are completed first."""
        graph = DependencyGraph()
        graph.add_edge("a", "b")
        graph.add_edge("b", "a")
        graph.add_edge("b", "c")
        graph.add_edge("c", "d")
        graph.add_edge("d", "c")

        components = strongly_connected_components(graph)

        assert components == [frozenset({"c", "d"}), frozenset({"a", "b"})]

    def test_long_chain_does_not_hit_recursion_limit(self):
        """Test decomposition of a chain longer than the recursion limit."""
        graph = DependencyGraph()
        length = 2000
        for i in range(length - 1):
            graph.add_edge(i, i + 1)
        graph.add_edge(length - 1, 0)

        components = strongly_connected_components(graph)

        assert len(components) == 1
        assert len(components[0]) == length


class TestFindCycles:
    """Test filtering of cyclic components."""

    def test_no_cycles(self):
        """Test that a DAG reports no cycles."""
        graph = DependencyGraph()
        graph.add_task("b", {"a"})

        assert find_cycles(graph) == []

    def test_all_independent_cycles_reported(self):
        """Test that separate cycles are all reported."""
        graph = DependencyGraph()
        graph.add_edge("a", "b")
        graph.add_edge("b", "a")
        graph.add_edge("x", "y")
        graph.add_edge("y", "z")
        graph.add_edge("z", "x")
        graph.add_edge("ok", "a")

        assert _as_sets(find_cycles(graph)) == {
            frozenset({"a", "b"}),
            frozenset({"x", "y", "z"}),
        }

    def test_self_loop_is_not_a_cycle_component(self):
        """Test that a self-loop alone yields no multi-node component."""
        graph = DependencyGraph(allow_self_loops=True)
        graph.add_edge("a", "a")

        assert find_cycles(graph) == []
