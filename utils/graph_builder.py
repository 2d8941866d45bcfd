"""
graph_builder.py — Construct the weighted, directed account graph from an
ordered sequence of transfer records.

Each node is an account (sender or receiver).
Each edge is one transfer: ``sender -> receiver`` weighted by its amount.
Parallel edges are preserved, so two transfers between the same pair are
two edges, never a merged one.

The detectors walk ``AccountGraph.adjacency`` directly.  NetworkX
projections are provided for collaborators that want to render or further
analyse the same graph.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, NamedTuple, Tuple

import networkx as nx
from loguru import logger

from utils.validation import NodeId, TransferRecord


class Edge(NamedTuple):
    """Outgoing edge stored in an adjacency list."""

    target: NodeId
    weight: float


@dataclass(frozen=True, eq=False)
class AccountGraph:
    """Read-only adjacency view of a batch of transfers.

    ``adjacency`` maps every account to the tuple of its outgoing edges in
    record order.  Accounts that only receive money map to an empty tuple.
    """

    adjacency: Mapping[NodeId, Tuple[Edge, ...]]

    @property
    def nodes(self) -> List[NodeId]:
        return list(self.adjacency)

    @property
    def edges(self) -> List[Tuple[NodeId, NodeId, float]]:
        return [
            (source, edge.target, edge.weight)
            for source, out_edges in self.adjacency.items()
            for edge in out_edges
        ]

    def successors(self, node: NodeId) -> Tuple[Edge, ...]:
        return self.adjacency.get(node, ())

    def number_of_nodes(self) -> int:
        return len(self.adjacency)

    def number_of_edges(self) -> int:
        return sum(len(out_edges) for out_edges in self.adjacency.values())

    def __contains__(self, node: object) -> bool:
        return node in self.adjacency

    def __iter__(self) -> Iterator[NodeId]:
        return iter(self.adjacency)

    def __len__(self) -> int:
        return len(self.adjacency)


# ── Public API ───────────────────────────────────────────────────────────────

def build_graph(records: Iterable[TransferRecord]) -> AccountGraph:
    """Build the adjacency structure for a sequence of transfers.

    Node order is first-appearance order across the records (sender
    before receiver within a record); edge order per node is record
    order.  An empty input yields an empty graph.
    """
    adjacency: Dict[NodeId, List[Edge]] = {}

    for record in records:
        adjacency.setdefault(record.sender, []).append(
            Edge(record.receiver, record.amount)
        )
        # Receivers need an entry too, so traversals never miss a key
        adjacency.setdefault(record.receiver, [])

    frozen = {node: tuple(out_edges) for node, out_edges in adjacency.items()}
    graph = AccountGraph(MappingProxyType(frozen))

    logger.debug(
        f"Built account graph: {graph.number_of_nodes()} accounts, "
        f"{graph.number_of_edges()} transfers"
    )
    return graph


def to_multidigraph(graph: AccountGraph) -> nx.MultiDiGraph:
    """Project the account graph onto a NetworkX multigraph.

    Edge attributes (per edge)
    ---------------------------
    - amount : float
    - position : int — index of the edge in record order for its sender
    """
    G = nx.MultiDiGraph()
    G.add_nodes_from(graph.adjacency)

    for source, out_edges in graph.adjacency.items():
        for position, edge in enumerate(out_edges):
            G.add_edge(source, edge.target, amount=edge.weight, position=position)

    return G


def build_simple_digraph(G: nx.MultiDiGraph) -> nx.DiGraph:
    """Collapse parallel edges into a simple DiGraph.

    Edge attributes on the simple graph:
    - total_amount : float  — sum of all parallel transfer amounts
    - tx_count     : int    — number of individual transfers
    """
    S = nx.DiGraph()
    S.add_nodes_from(G.nodes(data=True))

    for u, v, data in G.edges(data=True):
        if S.has_edge(u, v):
            S[u][v]["total_amount"] += data["amount"]
            S[u][v]["tx_count"] += 1
        else:
            S.add_edge(u, v, total_amount=data["amount"], tx_count=1)

    return S


def graph_summary(graph: AccountGraph) -> Dict[str, Any]:
    """Return a small summary dict of the graph for reports."""
    weights = [weight for _, _, weight in graph.edges]
    return {
        "total_accounts": graph.number_of_nodes(),
        "total_transfers": graph.number_of_edges(),
        "total_volume": float(sum(weights)),
        "max_transfer": float(max(weights)) if weights else 0.0,
    }
