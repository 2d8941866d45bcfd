"""
suspicious.py — Suspicious transfer scoring.

Flags individual transfers that match at least one of four heuristics:

Rule             | Condition
high_value       | amount > 10 000
frequent_pair    | more than 3 transfers share the same (sender, receiver)
self_loop        | sender == receiver
amount_spike     | amount > 5 × the sender's average transfer amount

Per-sender averages and per-pair counts are aggregated once over the
whole batch, then every rule is evaluated as a vectorised mask.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from utils.validation import TransferRecord


# ── Configurable thresholds ──────────────────────────────────────────────────
HIGH_VALUE_THRESHOLD: float = 10_000.0  # flag transfers strictly above this
FREQUENT_PAIR_THRESHOLD: int = 3        # flag pairs with more transfers than this
SPIKE_MULTIPLIER: float = 5.0           # amount vs. sender's mean amount
DEFAULT_AVERAGE: float = 1.0            # stands in for a zero sender mean

RULE_NAMES: Tuple[str, ...] = (
    "high_value",
    "frequent_pair",
    "self_loop",
    "amount_spike",
)


@dataclass(frozen=True)
class SuspicionFlag:
    """A flagged transfer, its position in the input and the rules it hit."""

    index: int
    record: TransferRecord
    rules: Tuple[str, ...]


# ── Public API ───────────────────────────────────────────────────────────────

def score_suspicious(
    records: Iterable[TransferRecord],
    high_value_threshold: float = HIGH_VALUE_THRESHOLD,
    frequent_pair_threshold: int = FREQUENT_PAIR_THRESHOLD,
    spike_multiplier: float = SPIKE_MULTIPLIER,
) -> Tuple[TransferRecord, ...]:
    """Return the transfers matching at least one suspicion rule.

    The result is a subset of ``records`` in input order.
    """
    flags = explain_suspicious(
        records,
        high_value_threshold=high_value_threshold,
        frequent_pair_threshold=frequent_pair_threshold,
        spike_multiplier=spike_multiplier,
    )
    return tuple(flag.record for flag in flags)


def explain_suspicious(
    records: Iterable[TransferRecord],
    high_value_threshold: float = HIGH_VALUE_THRESHOLD,
    frequent_pair_threshold: int = FREQUENT_PAIR_THRESHOLD,
    spike_multiplier: float = SPIKE_MULTIPLIER,
) -> List[SuspicionFlag]:
    """Like ``score_suspicious`` but keeps which rules fired per transfer.

    Parameters
    ----------
    records : iterable of TransferRecord
        The full batch; aggregates are computed over all of it.
    high_value_threshold : float
        Amount above which a single transfer is flagged.
    frequent_pair_threshold : int
        A (sender, receiver) pair with more transfers than this is flagged.
    spike_multiplier : float
        A transfer above this multiple of its sender's mean is flagged.

    Returns
    -------
    list[SuspicionFlag]
        One entry per flagged transfer, in input order.  ``rules`` lists
        the rule names from ``RULE_NAMES`` that matched.
    """
    batch = tuple(records)
    if not batch:
        return []

    masks = _rule_masks(
        batch, high_value_threshold, frequent_pair_threshold, spike_multiplier
    )
    hit_matrix = np.column_stack([masks[name] for name in RULE_NAMES])
    flagged_idx = np.flatnonzero(hit_matrix.any(axis=1))

    flags: List[SuspicionFlag] = []
    for idx in flagged_idx:
        rules = tuple(
            name for name, hit in zip(RULE_NAMES, hit_matrix[idx]) if hit
        )
        flags.append(SuspicionFlag(index=int(idx), record=batch[idx], rules=rules))

    logger.debug(f"Flagged {len(flags)} of {len(batch)} transfer(s) as suspicious")
    return flags


# ── Internal helpers ─────────────────────────────────────────────────────────

def _rule_masks(
    batch: Sequence[TransferRecord],
    high_value_threshold: float,
    frequent_pair_threshold: int,
    spike_multiplier: float,
) -> Dict[str, np.ndarray]:
    """Evaluate every rule over the batch as a boolean array per rule."""
    df = pd.DataFrame(
        {
            "sender": pd.Series([r.sender for r in batch], dtype=object),
            "receiver": pd.Series([r.receiver for r in batch], dtype=object),
            "amount": np.array([r.amount for r in batch], dtype=float),
        }
    )

    # ── Aggregates over the whole batch ──────────────────────────────────
    sender_mean = df.groupby("sender", sort=False, dropna=False)["amount"].transform(
        "mean"
    )
    sender_mean = sender_mean.where(sender_mean != 0, DEFAULT_AVERAGE)

    pair_count = df.groupby(
        ["sender", "receiver"], sort=False, dropna=False
    )["amount"].transform("count")

    amount = df["amount"].to_numpy()
    return {
        "high_value": amount > high_value_threshold,
        "frequent_pair": pair_count.to_numpy() > frequent_pair_threshold,
        "self_loop": np.array([r.is_self_transfer for r in batch], dtype=bool),
        "amount_spike": amount > spike_multiplier * sender_mean.to_numpy(),
    }
