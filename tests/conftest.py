"""Shared fixtures for the fraud graph engine tests."""

import os
import sys

import pytest

# Add the repository root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from utils.validation import TransferRecord


def make_records(*transfers):
    """Build records from ``(sender, receiver, amount)`` triples."""
    return [TransferRecord(sender, receiver, amount) for sender, receiver, amount in transfers]


@pytest.fixture
def records():
    return make_records


@pytest.fixture
def triangle():
    """A -> B -> C -> A, every transfer 50."""
    return make_records(("A", "B", 50), ("B", "C", 50), ("C", "A", 50))


@pytest.fixture
def chain():
    """A -> B -> C -> D, every transfer 100."""
    return make_records(("A", "B", 100), ("B", "C", 100), ("C", "D", 100))
