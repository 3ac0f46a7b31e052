"""
Tests for the in-memory repository and conflict detection.
"""

import pytest

from board_toolkit.core.models.commands import AssignmentCommand
from board_toolkit.distribution.errors import AssignmentConflict, TransportError
from board_toolkit.distribution.store.repository import InMemoryScriptRepository, find_conflicts

STAMP = "2024-05-01T10:00:00+00:00"


def _command(target_id, examinee_ids, subject_id="k1"):
    return AssignmentCommand(target_id, tuple(examinee_ids), "c1", subject_id, "x1", "s1", ("m1",), STAMP)


class TestFindConflicts:

    def test_conflicts_when_already_assigned_then_reported(self):
        assert find_conflicts([_command("t1", ["a", "b"])], {("x1", "k1", "b")}) == ["b"]

    def test_conflicts_when_other_subject_then_ignored(self):
        assert find_conflicts([_command("t1", ["a"])], {("x1", "k2", "a")}) == []

    def test_conflicts_when_duplicated_across_commands_then_reported(self):
        assert find_conflicts([_command("t1", ["a"]), _command("t2", ["a"])], set()) == ["a"]


class TestInMemoryScriptRepository:

    def test_fetch_when_other_filter_then_excluded(self, repo):
        assert len(repo.fetch_ungraded_scripts("x1", "s1", "k1")) == 10
        assert repo.fetch_ungraded_scripts("x1", "s2", "k1") == []

    def test_commit_when_accepted_then_scripts_leave_pool(self, repo):
        receipt = repo.commit_assignments([_command("t1", ["a101", "a102"])])
        assert receipt.accepted_count == 2
        remaining = {s.examinee_id for s in repo.fetch_ungraded_scripts("x1", "s1", "k1")}
        assert "a101" not in remaining
        assert len(remaining) == 8

    def test_commit_when_conflict_then_whole_batch_rejected(self, repo):
        repo.commit_assignments([_command("t1", ["a101"])])
        with pytest.raises(AssignmentConflict, match="a101"):
            repo.commit_assignments([_command("t2", ["a102"]), _command("t3", ["a101"])])
        assert len(repo.fetch_ungraded_scripts("x1", "s1", "k1")) == 9
        assert len(repo.batches) == 1

    def test_conflict_when_raised_then_is_transport_error(self):
        assert issubclass(AssignmentConflict, TransportError)

    def test_targets_when_limit_then_truncated(self, repo):
        assert len(repo.fetch_eligible_targets("x1")) == 3
        assert len(repo.fetch_eligible_targets("x1", limit=1)) == 1
        assert repo.fetch_eligible_targets("x9") == []
