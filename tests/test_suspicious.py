"""
Tests for suspicious transfer scoring.
"""

from detection.suspicious import RULE_NAMES, explain_suspicious, score_suspicious
from utils.validation import TransferRecord


def _rules_for(records, index):
    for flag in explain_suspicious(records):
        if flag.index == index:
            return set(flag.rules)
    return set()


class TestRules:
    """Test each rule in isolation."""

    def test_empty_batch(self):
        assert score_suspicious([]) == ()
        assert explain_suspicious([]) == []

    def test_high_value_and_self_loop(self):
        """A single 15 000 self-transfer hits both rules."""
        recs = [TransferRecord("A", "A", 15000)]
        assert score_suspicious(recs) == tuple(recs)
        assert _rules_for(recs, 0) == {"high_value", "self_loop"}

    def test_high_value_is_strict(self, records):
        recs = records(("A", "B", 10000), ("C", "D", 10000.01))
        assert score_suspicious(recs) == (recs[1],)

    def test_frequent_pair_needs_more_than_three(self, records):
        three = records(("A", "B", 10), ("A", "B", 10), ("A", "B", 10))
        assert score_suspicious(three) == ()

        four = three + records(("A", "B", 10))
        assert score_suspicious(four) == tuple(four)
        assert all("frequent_pair" in f.rules for f in explain_suspicious(four))

    def test_frequent_pair_is_directional(self, records):
        recs = records(("A", "B", 10), ("A", "B", 10), ("B", "A", 10), ("B", "A", 10))
        assert score_suspicious(recs) == ()

    def test_spike_against_sender_average(self, records):
        # mean of A's transfers = (10 * 9 + 500) / 10 = 59; 500 > 5 * 59
        recs = records(*[("A", f"R{i}", 10) for i in range(9)], ("A", "X", 500))
        flags = explain_suspicious(recs)
        assert [f.index for f in flags] == [9]
        assert flags[0].rules == ("amount_spike",)

    def test_spike_uses_sender_not_receiver(self, records):
        recs = records(("A", "B", 10), ("C", "B", 40))
        assert score_suspicious(recs) == ()

    def test_zero_average_defaults_to_one(self, records):
        recs = records(("A", "B", 0), ("A", "C", 0))
        assert score_suspicious(recs) == ()

    def test_single_transfer_never_spikes(self, records):
        assert score_suspicious(records(("A", "B", 9000))) == ()


class TestProperties:
    """Test order, soundness and completeness over a mixed batch."""

    def _batch(self, records):
        return records(
            ("A", "B", 20000),
            ("B", "C", 5),
            ("C", "C", 1),
            ("D", "E", 1),
            ("D", "E", 1),
            ("D", "E", 1),
            ("D", "E", 1),
            *[("F", f"G{i}", 1) for i in range(6)],
            ("F", "H", 100),
            (1, 2, 3),
        )

    def test_order_preserved_subset(self, records):
        batch = self._batch(records)
        flagged = score_suspicious(batch)
        indices = [batch.index(r) for r in flagged]
        assert indices == sorted(indices)
        assert all(r in batch for r in flagged)

    def test_sound_and_complete(self, records):
        batch = self._batch(records)
        flags = explain_suspicious(batch)
        by_index = {f.index: f for f in flags}

        # A->B high value, C->C self loop, D->E x4 frequent, F->H spike
        assert set(by_index) == {0, 2, 3, 4, 5, 6, 13}
        assert by_index[0].rules == ("high_value",)
        assert by_index[2].rules == ("self_loop",)
        assert by_index[13].rules == ("amount_spike",)
        for flag in flags:
            assert flag.rules
            assert set(flag.rules) <= set(RULE_NAMES)
            assert flag.record is batch[flag.index]

    def test_thresholds_overridable(self, records):
        recs = records(("A", "B", 600))
        assert score_suspicious(recs, high_value_threshold=500) == tuple(recs)

    def test_accepts_any_iterable(self, records):
        recs = records(("A", "A", 1))
        assert score_suspicious(iter(recs)) == tuple(recs)
