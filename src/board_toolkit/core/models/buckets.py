"""
Module: buckets

Purpose:
    Allocation targets (examiners) and the per-target buckets that hold a
    pending script count.

Key Classes:
    - AllocationTarget: An eligible examiner from the lookup
    - AllocationBucket: One examiner's pending, uncommitted assignment

Dependencies:
    - dataclasses (std)

Used By:
    - distribution.registry: bucket add/remove/count edits
    - distribution.balancing: even distribution
    - distribution.commit: slice walk in registry order
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class AllocationTarget:
    """
    An eligible allocation target (examiner).

    Attributes:
        target_id: Examiner identifier
        display_name: Examiner name
        display_code: Examiner code (may be empty)
    """

    target_id: str
    display_name: str
    display_code: str = ""

    def __post_init__(self) -> None:
        if not self.target_id:
            raise ValueError("target_id must be non-empty")

    @property
    def label(self) -> str:
        """Label in the lookup's ``"Name (CODE)"`` form."""
        if self.display_code:
            return f"{self.display_name} ({self.display_code})"
        return self.display_name

    def to_dict(self) -> dict:
        return {
            "target_id": self.target_id,
            "display_name": self.display_name,
            "display_code": self.display_code,
        }


@dataclass(frozen=True, slots=True)
class AllocationBucket:
    """
    One examiner's pending assignment.

    ``script_count`` is only bounded below while editing; the upper bound
    is enforced by the reconciliation check at commit time.

    Attributes:
        target_id: Examiner identifier (one bucket per target)
        display_name: Examiner name
        display_code: Examiner code
        script_count: Desired number of scripts

    Invariants:
        - script_count >= 0
    """

    target_id: str
    display_name: str
    display_code: str = ""
    script_count: int = 0

    def __post_init__(self) -> None:
        """Validate bucket on construction."""
        if not self.target_id:
            raise ValueError("target_id must be non-empty")
        if self.script_count < 0:
            raise ValueError(
                f"script_count cannot be negative for {self.target_id}: {self.script_count}"
            )

    @classmethod
    def for_target(cls, target: AllocationTarget) -> AllocationBucket:
        """Create an empty bucket for ``target``."""
        return cls(
            target_id=target.target_id,
            display_name=target.display_name,
            display_code=target.display_code,
        )

    def with_count(self, count: int) -> AllocationBucket:
        """Copy with a new count; negative input becomes 0."""
        return replace(self, script_count=max(0, int(count)))

    def to_dict(self) -> dict:
        return {
            "target_id": self.target_id,
            "display_name": self.display_name,
            "display_code": self.display_code,
            "script_count": self.script_count,
        }
