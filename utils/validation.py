"""
validation.py — Transfer records and input validation for the Fraud Graph
Analysis Engine.

A ``TransferRecord`` is the atomic unit of input: one money movement from
a sender account to a receiver account.  Records check their own
invariants when they are created, so every detector downstream can assume
well-formed data.

``validate_transfers`` is the tabular entry point: it checks a pandas
DataFrame against the expected schema, collects human-readable errors and
returns the rows as ``TransferRecord`` objects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Hashable, List, Optional, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from utils.errors import InvalidRecordError

NodeId = Hashable

# ── Expected schema ──────────────────────────────────────────────────────────
REQUIRED_COLUMNS = {
    "sender_id": "string",
    "receiver_id": "string",
    "amount": "float",
}

OPTIONAL_COLUMNS = ("label", "origin_country", "timestamp")


# ── Data model ───────────────────────────────────────────────────────────────

def _is_missing_id(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


@dataclass(frozen=True)
class TransferRecord:
    """One directed transfer of ``amount`` from ``sender`` to ``receiver``.

    Account identifiers are opaque: they are compared by equality and
    hash only, so ``"1"`` and ``1`` are different accounts.
    """

    sender: NodeId
    receiver: NodeId
    amount: float
    label: Optional[str] = None
    origin_country: Optional[str] = None
    timestamp: Any = None

    def __post_init__(self) -> None:
        if _is_missing_id(self.sender):
            raise InvalidRecordError("Transfer record is missing a sender.")
        if _is_missing_id(self.receiver):
            raise InvalidRecordError("Transfer record is missing a receiver.")

        try:
            amount = float(self.amount)
        except (TypeError, ValueError) as exc:
            raise InvalidRecordError(
                f"Transfer amount {self.amount!r} is not a number."
            ) from exc

        if not math.isfinite(amount):
            raise InvalidRecordError(
                f"Transfer amount {self.amount!r} must be finite."
            )
        if amount < 0:
            raise InvalidRecordError(
                f"Transfer amount {amount} is negative. All amounts must be >= 0."
            )

        # frozen dataclass: normalise the amount in place
        object.__setattr__(self, "amount", amount)

    @property
    def pair(self) -> Tuple[NodeId, NodeId]:
        return (self.sender, self.receiver)

    @property
    def is_self_transfer(self) -> bool:
        return self.sender == self.receiver


# ── Public API ───────────────────────────────────────────────────────────────

def validate_transfers(
    df: pd.DataFrame,
) -> Tuple[bool, List[str], List[TransferRecord]]:
    """Validate a transfer DataFrame and convert it to records.

    Parameters
    ----------
    df : pd.DataFrame
        Raw transfers with at least ``sender_id``, ``receiver_id`` and
        ``amount`` columns.  ``label``, ``origin_country`` and
        ``timestamp`` are carried over when present.

    Returns
    -------
    is_valid : bool
        ``True`` if the data passes all checks.
    errors : list[str]
        Human-readable error messages (empty when valid).
    records : list[TransferRecord]
        One record per row, in row order (empty list on failure).
    """
    errors: List[str] = []

    # 1. Check required columns ------------------------------------------------
    missing = set(REQUIRED_COLUMNS.keys()) - set(df.columns)
    if missing:
        errors.append(f"Missing required columns: {', '.join(sorted(missing))}")
        return False, errors, []

    # Work on a copy so the caller's frame is untouched
    cleaned = df.copy()

    # 2. Strip whitespace from textual ids -------------------------------------
    for col in ("sender_id", "receiver_id"):
        cleaned[col] = cleaned[col].map(
            lambda v: v.strip() if isinstance(v, str) else v
        )

    # 3. Check for empty ids ---------------------------------------------------
    for col in ("sender_id", "receiver_id"):
        empty_mask = cleaned[col].isna() | cleaned[col].map(_is_missing_id).astype(bool)
        n_empty = int(empty_mask.sum())
        if n_empty > 0:
            errors.append(f"Column '{col}' has {n_empty} empty/null value(s).")

    # 4. Cast amount to float --------------------------------------------------
    cleaned["amount"] = pd.to_numeric(cleaned["amount"], errors="coerce")
    n_bad_amount = int(cleaned["amount"].isna().sum())
    if n_bad_amount:
        errors.append(f"Column 'amount' has {n_bad_amount} non-numeric value(s).")

    # 5. Ensure non-negative amounts -------------------------------------------
    n_neg = int((cleaned["amount"] < 0).sum())
    if n_neg:
        errors.append(
            f"Column 'amount' has {n_neg} negative value(s). "
            "All amounts must be >= 0."
        )

    # 6. Ensure finite amounts ------------------------------------------------
    n_inf = int(np.isinf(cleaned["amount"].to_numpy(dtype=float)).sum())
    if n_inf:
        errors.append(f"Column 'amount' has {n_inf} non-finite value(s).")

    if errors:
        return False, errors, []

    extras = [col for col in OPTIONAL_COLUMNS if col in cleaned.columns]
    records: List[TransferRecord] = []
    for row in cleaned.to_dict("records"):
        kwargs = {col: _none_if_na(row[col]) for col in extras}
        records.append(
            TransferRecord(
                sender=row["sender_id"],
                receiver=row["receiver_id"],
                amount=float(row["amount"]),
                **kwargs,
            )
        )

    logger.debug(f"Validated {len(records)} transfer record(s)")
    return True, errors, records


def _none_if_na(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        # list-like values have no scalar NA check
        return value
    return value
