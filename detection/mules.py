"""
mules.py — Money-mule candidates by bounded reachability.

Pattern: Source → M1 → M2 → Cash-out

Accounts sitting a fixed number of hops downstream of a suspicious source
are candidate pass-through "mules".  A breadth-first walk over outgoing
transfers records each account's hop distance from the source (the first
time it is reached wins, amounts are ignored) and the accounts found at
exactly the requested depth are reported.
"""

from __future__ import annotations

import numbers
from collections import deque
from typing import Dict, List, Set

from loguru import logger

from utils.graph_builder import AccountGraph
from utils.validation import NodeId


# ── Configurable thresholds ──────────────────────────────────────────────────
DEFAULT_MULE_DEPTH: int = 2             # hops from the source to report


# ── Public API ───────────────────────────────────────────────────────────────

def scan_depth(
    graph: AccountGraph,
    source: NodeId,
    depth: int = DEFAULT_MULE_DEPTH,
) -> Set[NodeId]:
    """Return the accounts whose hop distance from ``source`` is ``depth``.

    An unknown source yields an empty set.  ``depth == 0`` yields
    ``{source}``.  A negative depth raises ``ValueError``.
    """
    return set(scan_depth_ordered(graph, source, depth))


def scan_depth_ordered(
    graph: AccountGraph,
    source: NodeId,
    depth: int = DEFAULT_MULE_DEPTH,
) -> List[NodeId]:
    """Same as ``scan_depth`` but in the order the accounts were dequeued."""
    validate_depth(depth)

    if source not in graph:
        logger.warning(f"Source account {source!r} has no recorded transfers")
        return []

    found: List[NodeId] = []
    distance: Dict[NodeId, int] = {source: 0}
    queue = deque([source])

    while queue:
        node = queue.popleft()
        hops = distance[node]

        if hops == depth:
            found.append(node)
            # Anything further out is beyond the requested depth
            continue

        for edge in graph.successors(node):
            if edge.target not in distance:
                distance[edge.target] = hops + 1
                queue.append(edge.target)

    logger.debug(f"Found {len(found)} account(s) at depth {depth} from {source!r}")
    return found


def hop_distances(graph: AccountGraph, source: NodeId) -> Dict[NodeId, int]:
    """Hop count from ``source`` to every account it can reach.

    Unreachable accounts are absent from the result.
    """
    if source not in graph:
        return {}

    distance: Dict[NodeId, int] = {source: 0}
    queue = deque([source])
    while queue:
        node = queue.popleft()
        for edge in graph.successors(node):
            if edge.target not in distance:
                distance[edge.target] = distance[node] + 1
                queue.append(edge.target)
    return distance


def validate_depth(depth: int) -> None:
    if isinstance(depth, bool) or not isinstance(depth, numbers.Integral):
        raise ValueError(f"depth must be a non-negative integer, got {depth!r}")
    if depth < 0:
        raise ValueError(f"depth must be a non-negative integer, got {depth}")
