"""Tests for subgraph algorithms: adjacency, cycles, ordering and structure."""

from typing import List, Tuple

import pytest

from workflowgraph.core.graph import algorithms
from workflowgraph.core.graph.algorithms import NodeRole
from workflowgraph.core.graph.edge import WorkflowEdge


def edges_from(pairs: List[Tuple[str, str]]) -> List[WorkflowEdge]:
    return [WorkflowEdge(id=f"e{i}", source=s, target=t) for i, (s, t) in enumerate(pairs)]


class TestAdjacency:
    """Test adjacency construction."""

    def test_edges_leaving_subset_are_dropped(self):
        """Test only edges with both ends in the subset count."""
        adjacency = algorithms.build_adjacency(
            edges_from([("a", "b"), ("b", "x"), ("x", "a")]), ["a", "b"]
        )
        assert adjacency.forward == {"a": ["b"], "b": []}
        assert adjacency.reverse == {"a": [], "b": ["a"]}

    def test_subset_order_is_kept(self):
        """Test ids keep their given order and duplicates collapse."""
        adjacency = algorithms.build_adjacency([], ["c", "a", "c", "b"])
        assert adjacency.nodes == ["c", "a", "b"]


class TestCycleDetection:
    """Test cycle detection with path reconstruction."""

    def test_three_node_ring(self):
        """Test a ring yields a closed four-element path."""
        result = algorithms.detect_cycle(edges_from([("a", "b"), ("b", "c"), ("c", "a")]), ["a", "b", "c"])
        assert result.has_cycle
        assert len(result.cycle_path) == 4
        assert result.cycle_path[0] == result.cycle_path[-1]
        assert set(result.cycle_path) == {"a", "b", "c"}

    def test_cycle_path_excludes_lead_in(self):
        """Test nodes before the loop are not part of the path."""
        result = algorithms.detect_cycle(
            edges_from([("s", "a"), ("a", "b"), ("b", "a")]), ["s", "a", "b"]
        )
        assert result.cycle_path == ["a", "b", "a"]

    def test_self_loop(self):
        """Test a self-loop is a two-element cycle."""
        result = algorithms.detect_cycle(edges_from([("a", "a")]), ["a"])
        assert result.cycle_path == ["a", "a"]

    def test_diamond_is_acyclic(self):
        """Test converging paths are not cycles."""
        result = algorithms.detect_cycle(
            edges_from([("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")]), ["a", "b", "c", "d"]
        )
        assert not result.has_cycle
        assert result.cycle_path == []

    def test_cycle_found_from_any_entry(self):
        """Test a cycle not reachable from the first id is still found."""
        result = algorithms.detect_cycle(edges_from([("b", "c"), ("c", "b")]), ["a", "b", "c"])
        assert result.has_cycle

    def test_cycle_through_outside_node_ignored(self):
        """Test a loop closed by a node outside the subset is not a cycle."""
        result = algorithms.detect_cycle(edges_from([("a", "b"), ("b", "x"), ("x", "a")]), ["a", "b"])
        assert not result.has_cycle

    def test_long_chain_does_not_recurse(self):
        """Test deep graphs are handled without hitting the recursion limit."""
        ids = [f"n{i}" for i in range(5000)]
        pairs = list(zip(ids, ids[1:])) + [(ids[-1], ids[0])]
        result = algorithms.detect_cycle(edges_from(pairs), ids)
        assert result.has_cycle
        assert len(result.cycle_path) == 5001


class TestTopologicalSort:
    """Test Kahn ordering."""

    def test_order_respects_edges(self):
        """Test every edge points forward in the order."""
        pairs = [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")]
        order = algorithms.topological_sort(edges_from(pairs), ["d", "c", "b", "a"])
        assert sorted(order) == ["a", "b", "c", "d"]
        for source, target in pairs:
            assert order.index(source) < order.index(target)

    def test_discovery_order(self):
        """Test independent ids come out in subset order."""
        assert algorithms.topological_sort([], ["z", "y", "x"]) == ["z", "y", "x"]

    def test_cycle_has_no_order(self):
        """Test a cyclic subgraph returns None rather than a partial order."""
        assert algorithms.topological_sort(edges_from([("a", "b"), ("b", "a")]), ["a", "b", "c"]) is None

    @pytest.mark.parametrize("pairs", [
        [],
        [("a", "b")],
        [("a", "b"), ("b", "c")],
        [("a", "b"), ("b", "c"), ("c", "a")],
        [("a", "a")],
        [("a", "b"), ("b", "a"), ("c", "d")],
        [("a", "b"), ("b", "x"), ("x", "a")],
        [("a", "b"), ("a", "b"), ("b", "c")],
        [("c", "a"), ("b", "c"), ("a", "d"), ("d", "b")],
    ])
    def test_agrees_with_cycle_detection(self, pairs):
        """Test "no order" happens exactly when a cycle is detected."""
        subset = ["a", "b", "c", "d"]
        edges = edges_from(pairs)
        order = algorithms.topological_sort(edges, subset)
        cycle = algorithms.detect_cycle(edges, subset)
        assert (order is None) == cycle.has_cycle


class TestStructure:
    """Test structural classification."""

    def test_chain_roles(self):
        """Test start, internal and end roles."""
        analysis = algorithms.analyze_structure(edges_from([("a", "b"), ("b", "c")]), ["a", "b", "c"])
        assert analysis.roles == {"a": NodeRole.START, "b": NodeRole.INTERNAL, "c": NodeRole.END}
        assert analysis.is_valid

    def test_disconnected_and_merge(self):
        """Test an isolated id and a merge point."""
        analysis = algorithms.analyze_structure(
            edges_from([("a", "c"), ("b", "c")]), ["a", "b", "c", "lonely"]
        )
        assert analysis.disconnected_nodes == ["lonely"]
        assert analysis.multiple_path_nodes == ["c"]
        assert analysis.start_nodes == ["a", "b"]
        assert not analysis.is_valid

    def test_single_member_is_not_disconnected(self):
        """Test the single-member guard."""
        analysis = algorithms.analyze_structure([], ["only"])
        assert analysis.disconnected_nodes == []
        assert not analysis.is_valid

    def test_unreachable_cycle(self):
        """Test a cycle with no entry point is unreachable."""
        analysis = algorithms.analyze_structure(
            edges_from([("a", "b"), ("c", "d"), ("d", "c")]), ["a", "b", "c", "d"]
        )
        assert analysis.unreachable_nodes == ["c", "d"]

    def test_reachable_from_sources(self):
        """Test BFS reachability."""
        adjacency = algorithms.build_adjacency(edges_from([("a", "b"), ("b", "c")]), ["a", "b", "c", "d"])
        assert algorithms.find_reachable(adjacency, ["b"]) == {"b", "c"}
        assert algorithms.entry_points(adjacency) == ["a", "d"]
