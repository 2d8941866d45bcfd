"""
errors.py — Exception types raised by the fraud graph engine.

Analysis itself is total over well-formed input, so the taxonomy is small:
bad records are rejected when they are built, and the path tracer refuses
graphs whose weights would break its greedy relaxation.
"""

from __future__ import annotations


class FraudGraphError(Exception):
    """Base class for every error raised by this package."""


class InvalidRecordError(FraudGraphError, ValueError):
    """A transfer record violates the data-model invariants."""


class NegativeWeightError(FraudGraphError, ValueError):
    """An edge with a negative weight reached the shortest-path tracer."""

    def __init__(self, sender, receiver, weight: float):
        self.sender = sender
        self.receiver = receiver
        self.weight = weight
        super().__init__(
            f"Negative transfer weight {weight!r} on edge {sender!r} -> {receiver!r}"
        )
