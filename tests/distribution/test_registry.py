"""
Tests for the bucket registry.
"""

from board_toolkit.distribution.registry import (
    add_target,
    find_bucket,
    remove_target,
    set_bucket_count,
    total_allocated,
)


class TestRegistry:

    def test_add_when_new_target_then_appended_with_zero(self, targets):
        buckets = add_target(add_target((), targets[0]), targets[1])
        assert [b.target_id for b in buckets] == ["t1", "t2"]
        assert total_allocated(buckets) == 0

    def test_add_when_target_present_then_noop(self, targets):
        buckets = set_bucket_count(add_target((), targets[0]), "t1", 4)
        again = add_target(buckets, targets[0])
        assert again == buckets
        assert find_bucket(again, "t1").script_count == 4

    def test_remove_when_present_then_count_unallocated(self, targets):
        buckets = add_target(add_target((), targets[0]), targets[1])
        buckets = set_bucket_count(set_bucket_count(buckets, "t1", 3), "t2", 5)
        buckets = remove_target(buckets, "t1")
        assert [b.target_id for b in buckets] == ["t2"]
        assert total_allocated(buckets) == 5

    def test_set_count_when_negative_then_zero(self, targets):
        buckets = set_bucket_count(add_target((), targets[0]), "t1", -3)
        assert find_bucket(buckets, "t1").script_count == 0

    def test_set_count_when_unknown_target_then_unchanged(self, targets):
        buckets = add_target((), targets[0])
        assert set_bucket_count(buckets, "nope", 3) == buckets

    def test_find_when_missing_then_none(self):
        assert find_bucket((), "t1") is None
