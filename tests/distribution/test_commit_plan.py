"""
Tests for commit reconciliation and contiguous slicing.
"""

import logging

import pytest

from board_toolkit.core.models.buckets import AllocationBucket
from board_toolkit.distribution.commit import can_commit, partition_scripts, plan_commit
from board_toolkit.distribution.errors import (
    InternalConsistencyError,
    InvariantViolation,
    MixedExamCenterError,
)
from board_toolkit.distribution.pool import build_pool
from board_toolkit.distribution.selection import set_institution_count, toggle_exam_center

STAMP = "2024-05-01T10:00:00+00:00"


def _buckets(*counts):
    return tuple(
        AllocationBucket(f"t{index}", f"Examiner {index}", f"E{index}", count)
        for index, count in enumerate(counts, start=1)
    )


@pytest.fixture
def all_selected(sample_scripts):
    pool = build_pool(sample_scripts)
    return toggle_exam_center({}, pool.centers["c1"], True)


class TestCanCommit:

    def test_can_commit_when_totals_match_then_true(self, all_selected):
        assert can_commit(all_selected, _buckets(4, 3, 3))

    def test_can_commit_when_totals_differ_then_false(self, all_selected):
        assert not can_commit(all_selected, _buckets(4, 3))

    def test_can_commit_when_no_buckets_then_false(self, all_selected):
        assert not can_commit(all_selected, ())

    def test_can_commit_when_nothing_selected_then_false(self):
        assert not can_commit({}, _buckets(0))


class TestPlanCommit:

    def test_plan_when_even_split_then_contiguous_roll_slices(self, all_selected, context):
        plan = plan_commit(all_selected, _buckets(4, 3, 3), context, STAMP)
        assert [piece.roll_numbers for piece in plan.slices] == [
            (101, 102, 103, 104),
            (105, 106, 201),
            (202, 203, 204),
        ]
        assert [c.target_id for c in plan.commands] == ["t1", "t2", "t3"]
        assert plan.total_scripts == 10

    def test_plan_when_slice_crosses_institutions_then_lists_both(self, all_selected, context):
        plan = plan_commit(all_selected, _buckets(4, 3, 3), context, STAMP)
        assert plan.commands[1].institution_ids == ("m1", "m2")
        assert plan.commands[0].institution_ids == ("m1",)

    def test_plan_when_built_then_commands_carry_context_and_one_timestamp(self, all_selected, context):
        plan = plan_commit(all_selected, _buckets(5, 5), context, STAMP)
        for command in plan.commands:
            assert (command.exam_id, command.stage_id, command.subject_id) == ("x1", "s1", "k1")
            assert command.exam_center_id == "c1"
            assert command.timestamp == STAMP

    def test_plan_when_built_then_examinees_disjoint_and_complete(self, all_selected, context):
        plan = plan_commit(all_selected, _buckets(4, 3, 3), context, STAMP)
        ids = [e for command in plan.commands for e in command.examinee_ids]
        assert len(ids) == len(set(ids)) == 10

    def test_plan_when_partial_selection_then_lowest_rolls_per_institution(self, all_selected, context):
        selections = set_institution_count(set_institution_count(all_selected, "m1", 2), "m2", 1)
        plan = plan_commit(selections, _buckets(3), context, STAMP)
        assert plan.slices[0].roll_numbers == (101, 102, 201)

    def test_plan_when_zero_count_bucket_then_no_command(self, all_selected, context):
        plan = plan_commit(all_selected, _buckets(6, 0, 4), context, STAMP)
        assert [c.target_id for c in plan.commands] == ["t1", "t3"]

    def test_plan_when_totals_differ_then_raises_with_counts(self, all_selected, context):
        with pytest.raises(InvariantViolation, match=r"Selected \(10\) and allocated \(7\)"):
            plan_commit(all_selected, _buckets(4, 3), context, STAMP)

    def test_plan_when_no_buckets_then_raises(self, all_selected, context):
        with pytest.raises(InvariantViolation, match="No examiners"):
            plan_commit(all_selected, (), context, STAMP)

    def test_plan_when_nothing_selected_then_raises(self, context):
        with pytest.raises(InvariantViolation, match="No scripts"):
            plan_commit({}, _buckets(0), context, STAMP)

    def test_plan_when_same_inputs_then_same_commands(self, all_selected, context):
        first = plan_commit(all_selected, _buckets(4, 3, 3), context, STAMP)
        second = plan_commit(all_selected, _buckets(4, 3, 3), context, STAMP)
        assert first.commands == second.commands


class TestRepeatedExaminees:

    def test_plan_when_examinee_in_two_institutions_then_consistency_error(self, script_factory, context):
        scripts = [
            script_factory("dup", 1, institution_id="m1"),
            script_factory("dup", 2, institution_id="m2"),
            script_factory("e3", 3, institution_id="m2"),
        ]
        pool = build_pool(scripts)
        selections = toggle_exam_center({}, pool.centers["c1"], True)
        with pytest.raises(InternalConsistencyError, match="selected more than once: dup"):
            plan_commit(selections, _buckets(3), context, STAMP)


class TestMixedExamCenters:

    @pytest.fixture
    def selections(self, two_center_scripts):
        pool = build_pool(two_center_scripts)
        selections = toggle_exam_center({}, pool.centers["c1"], True)
        return toggle_exam_center(selections, pool.centers["c2"], True)

    def test_plan_when_slice_spans_centers_then_raises(self, selections, context):
        with pytest.raises(MixedExamCenterError, match="span exam centers c1, c2"):
            plan_commit(selections, _buckets(6), context, STAMP)

    def test_plan_when_mixed_allowed_then_warns_and_uses_first_center(self, selections, context, caplog):
        with caplog.at_level(logging.WARNING):
            plan = plan_commit(selections, _buckets(6), context, STAMP, require_single_center=False)
        assert plan.commands[0].exam_center_id == "c1"
        assert "spans centers" in caplog.text

    def test_plan_when_slices_follow_center_boundary_then_allowed(self, selections, context):
        plan = plan_commit(selections, _buckets(3, 3), context, STAMP)
        assert [c.exam_center_id for c in plan.commands] == ["c1", "c2"]


class TestPartitionScripts:

    def test_partition_when_scripts_run_out_then_raises(self, sample_scripts):
        with pytest.raises(InternalConsistencyError, match="needs 4"):
            partition_scripts(sample_scripts[:3], _buckets(4))
