"""
Module: distribution.commit

Purpose:
    Reconciliation & Commit Engine. Checks that the selected total equals
    the allocated total, partitions the selected scripts into contiguous
    roll-number slices in registry order, and emits one AssignmentCommand
    per non-empty slice.

Key Functions:
    - can_commit(): The single gating invariant
    - check_commit(): Raise InvariantViolation when the gate is closed
    - partition_scripts(): Contiguous slice walk
    - plan_commit(): Gate + materialize + sort + slice + commands

Key Classes:
    - AllocationSlice: One bucket's scripts
    - CommitPlan: Slices and their commands, ready to submit

Dependencies:
    - distribution.selection: total_selected / selected_scripts
    - distribution.registry: total_allocated

Used By:
    - distribution.session: BeginCommit handler
    - distribution.output.sheet: distribution sheet rendering
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import List, Mapping, Sequence, Tuple

from board_toolkit.core.models.buckets import AllocationBucket
from board_toolkit.core.models.commands import AssignmentCommand
from board_toolkit.core.models.filters import FilterContext
from board_toolkit.core.models.scripts import Script, by_roll_number
from board_toolkit.core.models.selection import SelectionEntry

from .errors import InternalConsistencyError, InvariantViolation, MixedExamCenterError
from .registry import total_allocated
from .selection import selected_scripts, total_selected

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationSlice:
    """
    A contiguous run of roll-ordered scripts assigned to one bucket.

    Attributes:
        bucket: The bucket the slice fills
        scripts: Scripts in ascending roll-number order
    """

    bucket: AllocationBucket
    scripts: Tuple[Script, ...]

    @property
    def examinee_ids(self) -> Tuple[str, ...]:
        return tuple(script.examinee_id for script in self.scripts)

    @property
    def institution_ids(self) -> Tuple[str, ...]:
        """Distinct institutions in first-seen order."""
        return tuple(dict.fromkeys(script.institution_id for script in self.scripts))

    @property
    def exam_center_ids(self) -> Tuple[str, ...]:
        """Distinct exam centers in first-seen order."""
        return tuple(dict.fromkeys(script.exam_center_id for script in self.scripts))

    @property
    def exam_center_id(self) -> str:
        """Exam center of the slice's first script."""
        return self.scripts[0].exam_center_id

    @property
    def roll_numbers(self) -> Tuple[int, ...]:
        return tuple(script.roll_number for script in self.scripts)


@dataclass(frozen=True)
class CommitPlan:
    """
    Everything needed to submit one batch.

    Attributes:
        context: Filter context the batch belongs to
        slices: Non-empty slices in registry order
        commands: One command per slice, same order
    """

    context: FilterContext
    slices: Tuple[AllocationSlice, ...]
    commands: Tuple[AssignmentCommand, ...]

    @cached_property
    def total_scripts(self) -> int:
        return sum(command.script_count for command in self.commands)

    def __repr__(self) -> str:
        return f"CommitPlan(commands={len(self.commands)}, scripts={self.total_scripts})"


def can_commit(
    selections: Mapping[str, SelectionEntry],
    buckets: Sequence[AllocationBucket],
) -> bool:
    """
    True iff buckets exist and selected == allocated > 0.

    This is the single gate; there is no partial commit.
    """
    if not buckets:
        return False
    selected = total_selected(selections)
    return selected > 0 and selected == total_allocated(buckets)


def check_commit(
    selections: Mapping[str, SelectionEntry],
    buckets: Sequence[AllocationBucket],
) -> None:
    """
    Raise InvariantViolation naming the reason the gate is closed.

    Raises:
        InvariantViolation: If can_commit() is False
    """
    if can_commit(selections, buckets):
        return
    selected = total_selected(selections)
    allocated = total_allocated(buckets)
    if not buckets:
        raise InvariantViolation("No examiners have been added")
    if selected == 0:
        raise InvariantViolation("No scripts are selected")
    raise InvariantViolation(
        f"Selected ({selected}) and allocated ({allocated}) script counts differ"
    )


def partition_scripts(
    scripts: Sequence[Script],
    buckets: Sequence[AllocationBucket],
) -> Tuple[AllocationSlice, ...]:
    """
    Walk buckets in registry order taking contiguous slices.

    Buckets with a zero count produce no slice.

    Args:
        scripts: Selected scripts, already in roll-number order
        buckets: Buckets in registry order

    Returns:
        Tuple of non-empty slices

    Raises:
        InternalConsistencyError: If fewer scripts remain than a bucket needs
    """
    slices: List[AllocationSlice] = []
    cursor = 0
    for bucket in buckets:
        need = bucket.script_count
        if need <= 0:
            continue
        taken = tuple(scripts[cursor:cursor + need])
        if len(taken) != need:
            raise InternalConsistencyError(
                f"Bucket {bucket.target_id} needs {need} scripts but only "
                f"{len(taken)} remain after {cursor} were allocated"
            )
        slices.append(AllocationSlice(bucket=bucket, scripts=taken))
        cursor += need
    return tuple(slices)


def plan_commit(
    selections: Mapping[str, SelectionEntry],
    buckets: Sequence[AllocationBucket],
    context: FilterContext,
    timestamp: str,
    *,
    require_single_center: bool = True,
) -> CommitPlan:
    """
    Build the assignment batch for the current selections and buckets.

    Pipeline:
    1. Gate on can_commit()
    2. Materialize the first ``selected_count`` scripts of every entry
    3. Sort the combined list by roll number
    4. Slice contiguously in registry order
    5. Emit one AssignmentCommand per non-empty slice

    Args:
        selections: Entries keyed by institution id
        buckets: Buckets in registry order
        context: Exam/stage/subject the batch belongs to
        timestamp: ISO-8601 timestamp shared by every command
        require_single_center: Refuse slices that span exam centers

    Returns:
        CommitPlan (pure; nothing is submitted here)

    Raises:
        InvariantViolation: Totals disagree or nothing to commit
        MixedExamCenterError: A slice spans centers and require_single_center
        InternalConsistencyError: An examinee is selected twice, or the slice
            walk ran out of scripts
    """
    check_commit(selections, buckets)

    ordered = by_roll_number(selected_scripts(selections))
    seen: set[str] = set()
    repeated: set[str] = set()
    for script in ordered:
        if script.examinee_id in seen:
            repeated.add(script.examinee_id)
        seen.add(script.examinee_id)
    if repeated:
        raise InternalConsistencyError(
            f"Examinees selected more than once: {', '.join(sorted(repeated))}"
        )
    slices = partition_scripts(ordered, buckets)

    commands: List[AssignmentCommand] = []
    for piece in slices:
        centers = piece.exam_center_ids
        if len(centers) > 1:
            if require_single_center:
                raise MixedExamCenterError(
                    f"Scripts for {piece.bucket.display_name or piece.bucket.target_id} "
                    f"span exam centers {', '.join(centers)}"
                )
            logger.warning(
                f"Slice for {piece.bucket.target_id} spans centers {centers}; "
                f"recording {piece.exam_center_id}"
            )
        commands.append(
            AssignmentCommand(
                target_id=piece.bucket.target_id,
                examinee_ids=piece.examinee_ids,
                exam_center_id=piece.exam_center_id,
                subject_id=context.subject_id,
                exam_id=context.exam_id,
                stage_id=context.stage_id,
                institution_ids=piece.institution_ids,
                timestamp=timestamp,
            )
        )

    plan = CommitPlan(context=context, slices=slices, commands=tuple(commands))
    logger.info(f"Planned {plan!r}")
    return plan
