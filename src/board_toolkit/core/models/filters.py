"""
Module: filters

Purpose:
    The exam/stage/subject filter context a session allocates within.

Key Classes:
    - FilterLevel: Which filter an action changes
    - FilterContext: Immutable exam/stage/subject triple
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class FilterLevel(Enum):
    """Filter levels, outermost first. Changing a level clears the ones below."""

    EXAM = "exam_id"
    STAGE = "stage_id"
    SUBJECT = "subject_id"


@dataclass(frozen=True, slots=True)
class FilterContext:
    """
    Exam (pariksha), stage (marhala) and subject (kitab) filter.

    Empty string means "not chosen".
    """

    exam_id: str = ""
    stage_id: str = ""
    subject_id: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.exam_id or self.stage_id or self.subject_id)

    @property
    def is_complete(self) -> bool:
        """True when all three filters are chosen (scripts can be fetched)."""
        return bool(self.exam_id and self.stage_id and self.subject_id)

    def with_level(self, level: FilterLevel, value: str) -> FilterContext:
        """
        Copy with ``level`` set to ``value`` and every inner level cleared.

        Example:
            >>> FilterContext("x", "s", "k").with_level(FilterLevel.EXAM, "y")
            FilterContext(exam_id='y', stage_id='', subject_id='')
        """
        value = value or ""
        if level is FilterLevel.EXAM:
            return FilterContext(exam_id=value)
        if level is FilterLevel.STAGE:
            return replace(self, stage_id=value, subject_id="")
        return replace(self, subject_id=value)

    def value_of(self, level: FilterLevel) -> str:
        return getattr(self, level.value)
