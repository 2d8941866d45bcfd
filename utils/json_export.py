"""
json_export.py — Turn an ``AnalysisReport`` into a JSON-serialisable dict
for presentation layers.

Output Schema
-------------
{
  "suspicious_transfers": [ ... ],
  "cycle": { ... },
  "mule_candidates": { ... } | null,
  "exposure_paths": { ... } | null,
  "account_pairs": [ ... ],
  "summary": { ... }
}
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

from detection.pipeline import AnalysisReport
from utils.graph_builder import build_simple_digraph, graph_summary, to_multidigraph


def generate_report(
    report: AnalysisReport,
    processing_time: Optional[float] = None,
) -> Dict[str, Any]:
    """Build the JSON-serialisable report dictionary.

    Parameters
    ----------
    report : AnalysisReport
        Output of ``pipeline.analyze``.
    processing_time : float or None
        Wall-clock seconds to report; defaults to the time measured by
        ``analyze`` itself.

    Returns
    -------
    dict
        The complete report.  Unreachable distances are ``None`` because
        JSON has no infinity.
    """
    # ── 1. Suspicious transfers ───────────────────────────────────────────
    suspicious_transfers: List[Dict[str, Any]] = []
    for flag in report.suspicious:
        rec = flag.record
        suspicious_transfers.append(
            {
                "index": flag.index,
                "sender": rec.sender,
                "receiver": rec.receiver,
                "amount": rec.amount,
                "label": rec.label,
                "origin_country": rec.origin_country,
                "timestamp": rec.timestamp,
                "rules": list(flag.rules),
            }
        )

    # ── 2. Cycle ──────────────────────────────────────────────────────────
    cycle = {
        "found": report.cycle.found,
        "nodes": list(report.cycle.nodes),
        "edges": [list(edge) for edge in report.cycle.edges],
    }

    # ── 3. Source-dependent results ───────────────────────────────────────
    mule_candidates = None
    exposure_paths = None
    if report.source is not None:
        mule_candidates = {
            "source": report.source,
            "depth": report.depth,
            "accounts": list(report.mule_candidates),
        }

    if report.paths is not None:
        paths = report.paths
        exposure_paths = {
            "source": paths.source,
            "distances": [
                {
                    "account": node,
                    "distance": dist if paths.is_reachable(node) else None,
                    "predecessor": paths.predecessors[node],
                    "path": paths.path_to(node),
                }
                for node, dist in paths.distances.items()
            ],
        }

    # ── 4. Account pairs (parallel transfers collapsed) ───────────────────
    simple_G = build_simple_digraph(to_multidigraph(report.graph))
    account_pairs = [
        {
            "sender": u,
            "receiver": v,
            "total_amount": data["total_amount"],
            "tx_count": data["tx_count"],
        }
        for u, v, data in simple_G.edges(data=True)
    ]

    # ── 5. Summary ────────────────────────────────────────────────────────
    elapsed = report.processing_time if processing_time is None else processing_time
    summary = graph_summary(report.graph)
    summary.update(
        {
            "suspicious_transfers_flagged": len(suspicious_transfers),
            "cycle_detected": report.cycle.found,
            "mule_candidates_found": len(report.mule_candidates),
            "processing_time_seconds": round(elapsed, 3),
        }
    )

    return {
        "suspicious_transfers": suspicious_transfers,
        "cycle": cycle,
        "mule_candidates": mule_candidates,
        "exposure_paths": exposure_paths,
        "account_pairs": account_pairs,
        "summary": summary,
    }


def flagged_edge_keys(report: AnalysisReport) -> List[Tuple[Any, Any, float]]:
    """``(sender, receiver, amount)`` of every flagged transfer.

    Renderers match drawn edges against these keys to highlight them.
    """
    return [(r.sender, r.receiver, r.amount) for r in report.suspicious_records]


def report_to_json_string(report: Dict[str, Any], indent: int = 2) -> str:
    """Serialise the report dict to a pretty-printed JSON string."""
    return json.dumps(report, indent=indent, default=str)
