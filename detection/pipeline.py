"""
pipeline.py — Run every detector over one batch of transfers.

The graph is built once from an immutable snapshot of the records and
handed to each detector independently; no detector consumes another's
output.  Reachability and path tracing need an origin account and are
skipped when no ``source`` is given.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from loguru import logger

from detection.cycles import CycleResult, detect_cycle
from detection.mules import DEFAULT_MULE_DEPTH, scan_depth_ordered, validate_depth
from detection.paths import PathResult, trace_paths
from detection.suspicious import SuspicionFlag, explain_suspicious
from utils.graph_builder import AccountGraph, build_graph
from utils.validation import NodeId, TransferRecord


@dataclass(frozen=True, eq=False)
class AnalysisReport:
    """Everything one ``analyze`` call produced."""

    records: Tuple[TransferRecord, ...]
    graph: AccountGraph
    suspicious: Tuple[SuspicionFlag, ...]
    cycle: CycleResult
    source: Optional[NodeId] = None
    depth: Optional[int] = None
    mule_candidates: Tuple[NodeId, ...] = ()
    paths: Optional[PathResult] = None
    processing_time: float = 0.0

    @property
    def suspicious_records(self) -> Tuple[TransferRecord, ...]:
        return tuple(flag.record for flag in self.suspicious)

    @property
    def mule_set(self) -> Set[NodeId]:
        return set(self.mule_candidates)


def analyze(
    records: Iterable[TransferRecord],
    source: Optional[NodeId] = None,
    depth: int = DEFAULT_MULE_DEPTH,
) -> AnalysisReport:
    """Build the account graph and run all four detectors.

    Parameters
    ----------
    records : iterable of TransferRecord
        The batch to analyse.  It is copied into a tuple first, so later
        changes to the caller's list do not affect this call.
    source : NodeId or None
        Origin account for mule scanning and path tracing.
    depth : int
        Hop distance reported by the mule scan.
    """
    validate_depth(depth)
    start = time.perf_counter()
    snapshot = tuple(records)

    graph = build_graph(snapshot)
    suspicious = tuple(explain_suspicious(snapshot))
    cycle = detect_cycle(graph)

    mule_candidates: List[NodeId] = []
    paths: Optional[PathResult] = None
    if source is not None:
        mule_candidates = scan_depth_ordered(graph, source, depth)
        paths = trace_paths(graph, source)

    elapsed = time.perf_counter() - start
    logger.info(
        f"Analysed {len(snapshot)} transfer(s) across {graph.number_of_nodes()} "
        f"account(s): {len(suspicious)} suspicious, "
        f"cycle={'yes' if cycle.found else 'no'}, "
        f"{len(mule_candidates)} mule candidate(s)"
    )

    return AnalysisReport(
        records=snapshot,
        graph=graph,
        suspicious=suspicious,
        cycle=cycle,
        source=source,
        depth=depth if source is not None else None,
        mule_candidates=tuple(mule_candidates),
        paths=paths,
        processing_time=elapsed,
    )
