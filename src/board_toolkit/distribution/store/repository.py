"""
Module: distribution.store.repository

Purpose:
    The collaborator seam: fetch ungraded scripts, fetch eligible
    examiners, commit an assignment batch. Plus a list-backed
    implementation used by tests and demos.

Key Classes:
    - ScriptRepository: Protocol every store implements
    - InMemoryScriptRepository: List-backed store

Dependencies:
    - typing.Protocol (std)

Used By:
    - distribution.controller: All suspension points go through here
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from board_toolkit.core.models.buckets import AllocationTarget
from board_toolkit.core.models.commands import AssignmentCommand, CommitReceipt
from board_toolkit.core.models.scripts import Script

from ..errors import AssignmentConflict

logger = logging.getLogger(__name__)


class ScriptRepository(Protocol):
    """
    Transport-agnostic collaborator operations.

    Implementations raise TransportError (or a subclass) on failure.
    commit_assignments must be all-or-nothing for the whole batch.
    """

    def fetch_ungraded_scripts(self, exam_id: str, stage_id: str, subject_id: str) -> List[Script]:
        ...

    def fetch_eligible_targets(self, exam_id: str, limit: Optional[int] = None) -> List[AllocationTarget]:
        ...

    def commit_assignments(self, commands: Sequence[AssignmentCommand]) -> CommitReceipt:
        ...


def find_conflicts(
    commands: Iterable[AssignmentCommand],
    assigned: Set[Tuple[str, str, str]],
) -> List[str]:
    """
    Examinees in ``commands`` already assigned for the same exam/subject.

    Duplicates inside the batch itself count as conflicts too.

    Args:
        commands: Incoming batch
        assigned: Existing (exam_id, subject_id, examinee_id) keys
    """
    seen: Set[Tuple[str, str, str]] = set()
    conflicts: List[str] = []
    for command in commands:
        for examinee_id in command.examinee_ids:
            key = (command.exam_id, command.subject_id, examinee_id)
            if key in assigned or key in seen:
                conflicts.append(examinee_id)
            seen.add(key)
    return conflicts


@dataclass(frozen=True)
class _PooledScript:
    exam_id: str
    stage_id: str
    subject_id: str
    script: Script


class InMemoryScriptRepository:
    """
    List-backed ScriptRepository.

    Scripts are registered per exam/stage/subject; committed examinees
    are excluded from later fetches and a batch touching an already
    assigned examinee is rejected whole.

    Example:
        >>> repo = InMemoryScriptRepository()
        >>> repo.add_scripts("x", "s", "k", scripts)
        >>> repo.fetch_ungraded_scripts("x", "s", "k")
    """

    def __init__(self) -> None:
        self._scripts: List[_PooledScript] = []
        self._targets: Dict[str, List[AllocationTarget]] = {}
        self._assigned: Set[Tuple[str, str, str]] = set()
        self.batches: List[Tuple[AssignmentCommand, ...]] = []

    def add_scripts(self, exam_id: str, stage_id: str, subject_id: str, scripts: Iterable[Script]) -> None:
        for script in scripts:
            self._scripts.append(_PooledScript(exam_id, stage_id, subject_id, script))

    def add_targets(self, exam_id: str, targets: Iterable[AllocationTarget]) -> None:
        self._targets.setdefault(exam_id, []).extend(targets)

    def fetch_ungraded_scripts(self, exam_id: str, stage_id: str, subject_id: str) -> List[Script]:
        return [
            pooled.script for pooled in self._scripts
            if (pooled.exam_id, pooled.stage_id, pooled.subject_id) == (exam_id, stage_id, subject_id)
            and (exam_id, subject_id, pooled.script.examinee_id) not in self._assigned
        ]

    def fetch_eligible_targets(self, exam_id: str, limit: Optional[int] = None) -> List[AllocationTarget]:
        targets = list(self._targets.get(exam_id, []))
        return targets[:limit] if limit is not None else targets

    def commit_assignments(self, commands: Sequence[AssignmentCommand]) -> CommitReceipt:
        conflicts = find_conflicts(commands, self._assigned)
        if conflicts:
            raise AssignmentConflict(
                f"Scripts already assigned: {', '.join(sorted(set(conflicts)))}"
            )
        for command in commands:
            for examinee_id in command.examinee_ids:
                self._assigned.add((command.exam_id, command.subject_id, examinee_id))
        self.batches.append(tuple(commands))
        accepted = sum(command.script_count for command in commands)
        logger.debug(f"Accepted batch of {len(commands)} commands ({accepted} scripts)")
        return CommitReceipt(accepted_count=accepted)
