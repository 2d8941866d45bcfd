"""
Tests for exposure path tracing.
"""

import math

import networkx as nx
import pytest

from detection.paths import UNREACHABLE, trace_paths
from utils.errors import NegativeWeightError
from utils.graph_builder import AccountGraph, Edge, build_graph, build_simple_digraph, to_multidigraph


class TestTracePaths:
    """Test distances and predecessors."""

    def test_direct_edge_beats_detour(self, records):
        graph = build_graph(records(("A", "B", 1), ("A", "C", 10), ("C", "B", 1)))
        result = trace_paths(graph, "A")
        assert result.distances == {"A": 0, "B": 1, "C": 10}
        assert result.predecessors == {"A": None, "B": "A", "C": "A"}

    def test_cheaper_multi_hop(self, records):
        graph = build_graph(records(("A", "B", 10), ("A", "C", 1), ("C", "B", 1)))
        result = trace_paths(graph, "A")
        assert result.distances["B"] == 2
        assert result.path_to("B") == ["A", "C", "B"]

    def test_source_distance_zero(self, triangle):
        result = trace_paths(build_graph(triangle), "B")
        assert result.distances["B"] == 0
        assert result.predecessors["B"] is None

    def test_unreachable(self, chain):
        result = trace_paths(build_graph(chain), "C")
        assert result.distances["A"] == UNREACHABLE
        assert math.isinf(result.distances["B"])
        assert result.predecessors["A"] is None
        assert not result.is_reachable("A")
        assert result.path_to("A") == []
        assert result.reachable() == {"C": 0, "D": 100}

    def test_unknown_source_all_unreachable(self, chain):
        result = trace_paths(build_graph(chain), "Z")
        assert set(result.distances) == {"A", "B", "C", "D"}
        assert all(d == UNREACHABLE for d in result.distances.values())
        assert all(p is None for p in result.predecessors.values())
        assert result.path_to("Z") == []

    def test_parallel_edges_use_cheapest(self, records):
        graph = build_graph(records(("A", "B", 9), ("A", "B", 4), ("A", "B", 6)))
        assert trace_paths(graph, "A").distances["B"] == 4

    def test_zero_weight_cycle(self, records):
        graph = build_graph(records(("A", "B", 0), ("B", "A", 0), ("B", "C", 3)))
        result = trace_paths(graph, "A")
        assert result.distances == {"A": 0, "B": 0, "C": 3}
        assert result.path_to("C") == ["A", "B", "C"]

    def test_path_to_source(self, chain):
        assert trace_paths(build_graph(chain), "A").path_to("A") == ["A"]

    def test_negative_weight_rejected(self):
        graph = AccountGraph({"A": (Edge("B", -1.0),), "B": ()})
        with pytest.raises(NegativeWeightError) as excinfo:
            trace_paths(graph, "A")
        assert excinfo.value.weight == -1.0
        assert isinstance(excinfo.value, ValueError)

    def test_mixed_id_types_not_compared(self, records):
        """Heap ties never fall through to comparing account ids."""
        graph = build_graph(records(("S", 1, 5), ("S", "x", 5), (1, ("t", 2), 0), ("x", ("t", 2), 0)))
        result = trace_paths(graph, "S")
        assert result.distances[("t", 2)] == 5


class TestAgainstNetworkX:
    """Distances must equal the true minimum path sums."""

    def _random_records(self, records, seed):
        import random

        rng = random.Random(seed)
        nodes = [f"N{i}" for i in range(12)]
        transfers = [
            (rng.choice(nodes), rng.choice(nodes), round(rng.uniform(0, 50), 2))
            for _ in range(40)
        ]
        return records(*transfers)

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_matches_dijkstra(self, records, seed):
        recs = self._random_records(records, seed)
        graph = build_graph(recs)
        source = recs[0].sender
        result = trace_paths(graph, source)

        S = build_simple_digraph(to_multidigraph(graph))
        # Collapse parallel edges to their cheapest weight for the oracle
        for u, v in S.edges():
            S[u][v]["weight"] = min(
                e.weight for e in graph.successors(u) if e.target == v
            )
        expected = nx.single_source_dijkstra_path_length(S, source, weight="weight")

        for node in graph:
            if node in expected:
                assert result.distances[node] == pytest.approx(expected[node])
                path = result.path_to(node)
                assert path[0] == source and path[-1] == node
            else:
                assert result.distances[node] == UNREACHABLE


class TestResultImmutability:
    """Path results cannot be changed after they are returned."""

    def test_mappings_read_only(self, chain):
        result = trace_paths(build_graph(chain), "A")
        with pytest.raises(TypeError):
            result.distances["A"] = 5
        with pytest.raises(TypeError):
            result.predecessors["B"] = "Z"

    def test_unknown_source_mappings_read_only(self, chain):
        result = trace_paths(build_graph(chain), "Z")
        with pytest.raises(TypeError):
            result.distances["A"] = 0

    def test_hashable(self, chain):
        result = trace_paths(build_graph(chain), "A")
        assert hash(result) == hash(trace_paths(build_graph(chain), "A"))
