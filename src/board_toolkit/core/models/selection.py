"""
Module: selection

Purpose:
    Provides the SelectionEntry dataclass: how many of an institution's
    pooled scripts are currently selected for allocation.

Key Functions:
    - SelectionEntry.full(institution_id, scripts): Select everything
    - SelectionEntry.with_count(n): Clamped copy with a new count
    - SelectionEntry.selected_scripts: First ``selected_count`` by roll

Dependencies:
    - dataclasses (std)
    - .scripts.Script

Used By:
    - distribution.selection: selection mutations
    - distribution.commit: materializing the selected script list
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence, Tuple

from .scripts import Script, by_roll_number


@dataclass(frozen=True)
class SelectionEntry:
    """
    Per-institution selection state.

    The script tuple is sorted ascending by roll number when the entry is
    created, so the first ``selected_count`` scripts are always the lowest
    roll numbers and the entry is commit-ready as stored.

    Attributes:
        institution_id: Key of the entry
        selected_count: Scripts selected for allocation
        scripts: Institution's scripts, sorted by roll number

    Invariants:
        - 0 <= selected_count <= total_count
        - total_count == len(scripts) (calculated, never stored)

    Example:
        >>> entry = SelectionEntry.full("m1", scripts)
        >>> entry.with_count(3).selected_count
        3
    """

    institution_id: str
    selected_count: int
    scripts: Tuple[Script, ...]

    def __post_init__(self) -> None:
        """Validate selection entry on construction."""
        if not 0 <= self.selected_count <= len(self.scripts):
            raise ValueError(
                f"selected_count for {self.institution_id} must be within "
                f"[0, {len(self.scripts)}]: {self.selected_count}"
            )

    @property
    def total_count(self) -> int:
        """Size of the institution's script list."""
        return len(self.scripts)

    @property
    def is_full(self) -> bool:
        return self.selected_count == self.total_count

    @property
    def selected_scripts(self) -> Tuple[Script, ...]:
        """The first ``selected_count`` scripts (lowest roll numbers)."""
        return self.scripts[: self.selected_count]

    @classmethod
    def full(cls, institution_id: str, scripts: Sequence[Script]) -> SelectionEntry:
        """
        Create an entry selecting every script of the institution.

        Args:
            institution_id: Institution key
            scripts: The institution's pooled scripts, any order

        Returns:
            SelectionEntry with selected_count == total_count
        """
        ordered = by_roll_number(scripts)
        return cls(institution_id=institution_id, selected_count=len(ordered), scripts=ordered)

    def with_count(self, requested: int) -> SelectionEntry:
        """
        Copy with ``requested`` clamped into ``[0, total_count]``.

        The entry is kept even at 0; a 0-count entry contributes nothing.
        """
        clamped = max(0, min(int(requested), self.total_count))
        return replace(self, selected_count=clamped)

    def __repr__(self) -> str:
        return f"SelectionEntry({self.institution_id}, {self.selected_count}/{self.total_count})"
