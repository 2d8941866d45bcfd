"""
paths.py — Exposure path tracing.

Computes the minimum cumulative transfer amount from one source account
to every account in the graph (Dijkstra), together with predecessor links
so the cheapest flow of funds to any target can be reconstructed.

The frontier is a ``heapq`` binary heap with lazy deletion: when an
account's distance improves it is pushed again, and the outdated entry is
skipped when it is eventually popped.
"""

from __future__ import annotations

import heapq
import itertools
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from loguru import logger

from utils.errors import NegativeWeightError
from utils.graph_builder import AccountGraph
from utils.validation import NodeId


UNREACHABLE: float = math.inf


@dataclass(frozen=True)
class PathResult:
    """Distances and predecessor links from a single source.

    ``distances[node]`` is ``UNREACHABLE`` (``math.inf``) when no directed
    path exists; ``predecessors[node]`` is ``None`` for the source and for
    unreachable accounts.
    """

    source: NodeId
    distances: Mapping[NodeId, float] = field(hash=False)
    predecessors: Mapping[NodeId, Optional[NodeId]] = field(hash=False)

    def is_reachable(self, node: NodeId) -> bool:
        return self.distances.get(node, UNREACHABLE) != UNREACHABLE

    def reachable(self) -> Dict[NodeId, float]:
        return {n: d for n, d in self.distances.items() if d != UNREACHABLE}

    def path_to(self, target: NodeId) -> List[NodeId]:
        """Accounts on the minimum path from the source to ``target``.

        Returns an empty list when ``target`` is unreachable.
        """
        if not self.is_reachable(target):
            return []

        path = [target]
        while path[-1] != self.source:
            path.append(self.predecessors[path[-1]])
        path.reverse()
        return path


# ── Public API ───────────────────────────────────────────────────────────────

def trace_paths(graph: AccountGraph, source: NodeId) -> PathResult:
    """Single-source minimum-weight paths over the account graph.

    Parameters
    ----------
    graph : AccountGraph
        Graph built by ``graph_builder.build_graph``.
    source : NodeId
        Origin account.  An account absent from the graph is not an
        error: every distance is reported unreachable.

    Raises
    ------
    NegativeWeightError
        If any edge carries a negative weight, since the greedy
        relaxation is only correct for non-negative weights.
    """
    _check_weights(graph)

    distances: Dict[NodeId, float] = {node: UNREACHABLE for node in graph}
    predecessors: Dict[NodeId, Optional[NodeId]] = {node: None for node in graph}

    if source not in graph:
        logger.warning(f"Source account {source!r} has no recorded transfers")
        return PathResult(
            source, MappingProxyType(distances), MappingProxyType(predecessors)
        )

    distances[source] = 0.0
    # Counter breaks ties by push order and keeps NodeIds out of comparisons
    counter = itertools.count()
    heap: List[Tuple[float, int, NodeId]] = [(0.0, next(counter), source)]
    done = set()

    while heap:
        dist, _, node = heapq.heappop(heap)
        if node in done or dist > distances[node]:
            continue  # stale entry
        done.add(node)

        for edge in graph.successors(node):
            candidate = dist + edge.weight
            if candidate < distances[edge.target]:
                distances[edge.target] = candidate
                predecessors[edge.target] = node
                heapq.heappush(heap, (candidate, next(counter), edge.target))

    logger.debug(
        f"Traced paths from {source!r}: {len(done)} of {len(distances)} "
        "account(s) reachable"
    )
    return PathResult(
        source, MappingProxyType(distances), MappingProxyType(predecessors)
    )


# ── Internal helpers ─────────────────────────────────────────────────────────

def _check_weights(graph: AccountGraph) -> None:
    for sender, receiver, weight in graph.edges:
        if weight < 0:
            raise NegativeWeightError(sender, receiver, weight)
