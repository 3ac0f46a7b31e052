"""
Unit Tests for AllocationTarget and AllocationBucket
"""

import pytest

from board_toolkit.core.models.buckets import AllocationBucket, AllocationTarget


class TestAllocationTarget:

    def test_label_when_code_present_then_name_and_code(self):
        assert AllocationTarget("t1", "Examiner One", "E1").label == "Examiner One (E1)"

    def test_label_when_no_code_then_name_only(self):
        assert AllocationTarget("t1", "Examiner One").label == "Examiner One"

    def test_init_when_id_empty_then_raises_error(self):
        with pytest.raises(ValueError):
            AllocationTarget("", "Nobody")


class TestAllocationBucket:

    def test_for_target_when_created_then_count_zero(self):
        bucket = AllocationBucket.for_target(AllocationTarget("t1", "One", "E1"))
        assert bucket.script_count == 0
        assert (bucket.target_id, bucket.display_name, bucket.display_code) == ("t1", "One", "E1")

    def test_with_count_when_negative_then_stored_as_zero(self):
        bucket = AllocationBucket("t1", "One").with_count(-5)
        assert bucket.script_count == 0

    def test_with_count_when_above_any_bound_then_kept(self):
        # Upper bound is checked only at commit time
        assert AllocationBucket("t1", "One").with_count(10_000).script_count == 10_000

    def test_init_when_negative_count_then_raises_error(self):
        with pytest.raises(ValueError, match="negative"):
            AllocationBucket("t1", "One", script_count=-1)

    def test_to_dict_when_called_then_includes_count(self):
        assert AllocationBucket("t1", "One", "E1", 4).to_dict()["script_count"] == 4
