"""
Module: commands

Purpose:
    Records exchanged with the persistence collaborator at commit time.

Key Classes:
    - AssignmentCommand: One examiner's committed slice of scripts
    - CommitReceipt: Collaborator acknowledgement of a batch

Dependencies:
    - dataclasses (std)

Used By:
    - distribution.commit: emits AssignmentCommands
    - distribution.store: consumes AssignmentCommands, returns receipts
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class AssignmentCommand:
    """
    Persist one slice of scripts against one examiner.

    Attributes:
        target_id: Examiner the slice is assigned to
        examinee_ids: Examinees in the slice, in roll-number order
        exam_center_id: Exam center of the slice
        subject_id: Subject (kitab) context
        exam_id: Exam context
        stage_id: Stage (marhala) context
        institution_ids: Distinct institutions represented, first-seen order
        timestamp: ISO-8601 distribution timestamp

    Invariants:
        - examinee_ids is non-empty and has no duplicates
    """

    target_id: str
    examinee_ids: Tuple[str, ...]
    exam_center_id: str
    subject_id: str
    exam_id: str
    stage_id: str
    institution_ids: Tuple[str, ...]
    timestamp: str

    def __post_init__(self) -> None:
        """Validate command on construction."""
        if not self.examinee_ids:
            raise ValueError(f"AssignmentCommand for {self.target_id} has no examinees")
        if len(set(self.examinee_ids)) != len(self.examinee_ids):
            raise ValueError(f"Duplicate examinees in command for {self.target_id}")

    @property
    def script_count(self) -> int:
        return len(self.examinee_ids)

    def to_dict(self) -> dict:
        return {
            "target_id": self.target_id,
            "examinee_ids": list(self.examinee_ids),
            "exam_center_id": self.exam_center_id,
            "subject_id": self.subject_id,
            "exam_id": self.exam_id,
            "stage_id": self.stage_id,
            "institution_ids": list(self.institution_ids),
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return (
            f"AssignmentCommand({self.target_id}, scripts={self.script_count}, "
            f"center={self.exam_center_id})"
        )


@dataclass(frozen=True, slots=True)
class CommitReceipt:
    """Acknowledgement of an accepted batch."""

    accepted_count: int

    def __post_init__(self) -> None:
        if self.accepted_count < 0:
            raise ValueError(f"accepted_count cannot be negative: {self.accepted_count}")
