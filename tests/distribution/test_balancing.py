"""
Tests for even distribution across buckets.
"""

import pytest

from board_toolkit.core.models.buckets import AllocationBucket
from board_toolkit.distribution.balancing import distribute_evenly, even_split


class TestEvenSplit:

    @pytest.mark.parametrize(
        "total,parts,expected",
        [
            (10, 3, [4, 3, 3]),
            (7, 2, [4, 3]),
            (9, 3, [3, 3, 3]),
            (2, 3, [1, 1, 0]),
            (0, 2, [0, 0]),
        ],
    )
    def test_split_when_called_then_earliest_parts_get_remainder(self, total, parts, expected):
        assert even_split(total, parts) == expected

    def test_split_when_any_inputs_then_sum_preserved_and_spread_at_most_one(self):
        for total in range(0, 40):
            for parts in range(1, 7):
                counts = even_split(total, parts)
                assert sum(counts) == total
                assert max(counts) - min(counts) <= 1

    def test_split_when_no_parts_then_raises_error(self):
        with pytest.raises(ValueError):
            even_split(5, 0)

    def test_split_when_negative_total_then_raises_error(self):
        with pytest.raises(ValueError):
            even_split(-1, 2)


class TestDistributeEvenly:

    def test_distribute_when_buckets_then_overwrites_counts(self):
        buckets = (AllocationBucket("t1", "One", script_count=9), AllocationBucket("t2", "Two"))
        result = distribute_evenly(7, buckets)
        assert [b.script_count for b in result] == [4, 3]
        assert [b.target_id for b in result] == ["t1", "t2"]

    def test_distribute_when_no_buckets_then_noop(self):
        assert distribute_evenly(10, ()) == ()
