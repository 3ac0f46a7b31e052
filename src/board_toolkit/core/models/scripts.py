"""
Module: scripts

Purpose:
    Provides the Script dataclass (one examinee's ungraded answer booklet)
    and the three-level pool hierarchy built from a flat script list:
    exam center -> institution -> script.

Key Classes:
    - Script: Atomic unit of allocation
    - InstitutionGroup: Scripts of one institution inside one exam center
    - ExamCenterGroup: Institutions grouped under one exam center
    - ScriptPool: The whole hierarchy plus the flat script tuple

Dependencies:
    - dataclasses (std)

Used By:
    - distribution.pool: build_pool / filter_pool
    - distribution.selection: selection entries hold sorted scripts
    - distribution.commit: slices are tuples of scripts
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple


@dataclass(frozen=True, slots=True)
class Script:
    """
    One examinee's ungraded answer booklet.

    Immutable once fetched. Only ``examinee_id``, ``roll_number``,
    ``institution_id`` and ``exam_center_id`` carry allocation semantics;
    the name/code fields are display labels.

    Attributes:
        examinee_id: Unique within a session
        roll_number: Integer used for deterministic ordering
        institution_id: Owning institution (madrasa)
        exam_center_id: Exam center (markaz) the script was sat at
        examinee_name: Display name of the examinee
        institution_name: Display name of the institution
        institution_code: Display code of the institution
        exam_center_name: Display name of the exam center

    Invariants:
        - examinee_id, institution_id and exam_center_id are non-empty
        - roll_number is a non-negative integer

    Example:
        >>> s = Script("e1", 1001, "m1", "c1")
        >>> s.roll_number
        1001
    """

    examinee_id: str
    roll_number: int
    institution_id: str
    exam_center_id: str
    examinee_name: str = ""
    institution_name: str = ""
    institution_code: str = ""
    exam_center_name: str = ""

    def __post_init__(self) -> None:
        """Validate script on construction."""
        if not self.examinee_id:
            raise ValueError("examinee_id must be non-empty")
        if not self.institution_id:
            raise ValueError(f"institution_id must be non-empty for {self.examinee_id}")
        if not self.exam_center_id:
            raise ValueError(f"exam_center_id must be non-empty for {self.examinee_id}")
        if isinstance(self.roll_number, bool) or not isinstance(self.roll_number, int):
            raise ValueError(
                f"roll_number must be an integer for {self.examinee_id}: {self.roll_number!r}"
            )
        if self.roll_number < 0:
            raise ValueError(
                f"roll_number cannot be negative for {self.examinee_id}: {self.roll_number}"
            )

    def to_dict(self) -> dict:
        """Serialize to the plain attribute mapping."""
        return {
            "examinee_id": self.examinee_id,
            "roll_number": self.roll_number,
            "institution_id": self.institution_id,
            "exam_center_id": self.exam_center_id,
            "examinee_name": self.examinee_name,
            "institution_name": self.institution_name,
            "institution_code": self.institution_code,
            "exam_center_name": self.exam_center_name,
        }


def by_roll_number(scripts) -> Tuple[Script, ...]:
    """
    Return scripts sorted ascending by roll number.

    The sort is stable, so scripts sharing a roll number keep their
    incoming order.
    """
    return tuple(sorted(scripts, key=lambda s: s.roll_number))


@dataclass(frozen=True)
class InstitutionGroup:
    """
    Scripts belonging to one institution within the current filter.

    Attributes:
        institution_id: Institution identifier
        name: First-seen institution label
        code: First-seen institution display code
        scripts: Scripts in fetch order (not sorted)
    """

    institution_id: str
    name: str
    code: str
    scripts: Tuple[Script, ...] = ()

    @property
    def total(self) -> int:
        """Number of scripts pooled for this institution."""
        return len(self.scripts)


@dataclass(frozen=True)
class ExamCenterGroup:
    """
    Institutions grouped under one exam center.

    Attributes:
        exam_center_id: Exam center identifier
        name: First-seen exam center label
        institutions: Institution id -> InstitutionGroup, in first-seen order
    """

    exam_center_id: str
    name: str
    institutions: Dict[str, InstitutionGroup] = field(default_factory=dict)

    @property
    def script_count(self) -> int:
        """Total scripts across all institutions of this center."""
        return sum(group.total for group in self.institutions.values())

    def __repr__(self) -> str:
        return (
            f"ExamCenterGroup({self.exam_center_id}, "
            f"institutions={len(self.institutions)}, scripts={self.script_count})"
        )


@dataclass(frozen=True)
class ScriptPool:
    """
    Three-level hierarchy of ungraded scripts.

    Derived entirely from the fetched script list; never persisted.

    Attributes:
        centers: Exam center id -> ExamCenterGroup, in first-seen order
        scripts: The flat script tuple the hierarchy was built from

    Invariants:
        - every script appears in exactly one center/institution pair
        - script_count == len(scripts)
    """

    centers: Dict[str, ExamCenterGroup] = field(default_factory=dict)
    scripts: Tuple[Script, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.centers

    @property
    def script_count(self) -> int:
        """Scripts reachable through the hierarchy."""
        return sum(center.script_count for center in self.centers.values())

    def institutions(self) -> Iterator[Tuple[ExamCenterGroup, InstitutionGroup]]:
        """Iterate (center, institution) pairs in display order."""
        for center in self.centers.values():
            for group in center.institutions.values():
                yield center, group

    def find_institution(self, institution_id: str) -> Optional[InstitutionGroup]:
        """
        Find an institution group by id.

        Args:
            institution_id: Institution to look up

        Returns:
            The first matching InstitutionGroup or None
        """
        for _, group in self.institutions():
            if group.institution_id == institution_id:
                return group
        return None

    def institution_scripts(self, institution_id: str) -> Tuple[Script, ...]:
        """
        All scripts of an institution, across every exam center it appears in.

        Selections are keyed by institution id, so an entry must cover the
        whole institution rather than one center's group.
        """
        found: List[Script] = []
        for _, group in self.institutions():
            if group.institution_id == institution_id:
                found.extend(group.scripts)
        return tuple(found)

    def __repr__(self) -> str:
        return f"ScriptPool(centers={len(self.centers)}, scripts={self.script_count})"
