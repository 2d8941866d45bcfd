"""
cycles.py — Circular Fund Routing detection.

Finds one directed cycle in the account graph, the classic money-muling
signature: A → B → C → A.  Funds that travel back to the account they
left from rarely have a legitimate explanation.

The walk is a depth-first search with an explicit stack of
``(node, edge iterator)`` frames, so very deep graphs do not hit the
interpreter's recursion limit.  Each node moves through three states:
unvisited → on-stack → done.  Reaching an on-stack node closes a cycle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from loguru import logger

from utils.graph_builder import AccountGraph, Edge
from utils.validation import NodeId


_ON_STACK = 1
_DONE = 2


@dataclass(frozen=True)
class CycleResult:
    """The first cycle found, or ``found=False`` with empty sequences.

    ``edges`` connects consecutive ``nodes`` and wraps from the last node
    back to the first, so it always describes a closed walk.
    """

    found: bool
    nodes: Tuple[NodeId, ...] = ()
    edges: Tuple[Tuple[NodeId, NodeId], ...] = ()

    def __bool__(self) -> bool:
        return self.found


# ── Public API ───────────────────────────────────────────────────────────────

def detect_cycle(graph: AccountGraph) -> CycleResult:
    """Return the first directed cycle reached by a depth-first walk.

    Start nodes are tried in adjacency order and edges are followed in
    record order, so identical input always yields the same cycle.  The
    search stops at the first cycle; it does not enumerate all of them.
    """
    state: Dict[NodeId, int] = {}

    for start in graph.adjacency:
        if start in state:
            continue
        cycle = _walk_from(graph, start, state)
        if cycle is not None:
            edges = tuple(
                (cycle[i], cycle[(i + 1) % len(cycle)]) for i in range(len(cycle))
            )
            logger.debug(f"Cycle detected through {len(cycle)} account(s)")
            return CycleResult(found=True, nodes=tuple(cycle), edges=edges)

    return CycleResult(found=False)


# ── Internal helpers ─────────────────────────────────────────────────────────

def _walk_from(
    graph: AccountGraph,
    start: NodeId,
    state: Dict[NodeId, int],
) -> Optional[List[NodeId]]:
    """Depth-first walk from ``start``; return the cycle path if one closes.

    ``state`` is shared across start nodes so finished subtrees are never
    re-walked.  Nodes are marked done only when their frame is popped.
    """
    path: List[NodeId] = [start]
    position: Dict[NodeId, int] = {start: 0}
    stack: List[Tuple[NodeId, Iterator[Edge]]] = [
        (start, iter(graph.successors(start)))
    ]
    state[start] = _ON_STACK

    while stack:
        node, out_edges = stack[-1]

        for edge in out_edges:
            neighbour = edge.target
            mark = state.get(neighbour)

            if mark == _ON_STACK:
                # Cycle = the path suffix starting at the repeated node
                return path[position[neighbour]:]

            if mark is None:
                state[neighbour] = _ON_STACK
                position[neighbour] = len(path)
                path.append(neighbour)
                stack.append((neighbour, iter(graph.successors(neighbour))))
                break
        else:
            # All edges exhausted: backtrack
            stack.pop()
            path.pop()
            del position[node]
            state[node] = _DONE

    return None
