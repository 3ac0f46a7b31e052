"""
Module: distribution.selection

Purpose:
    Selection Manager. Tracks, per institution, how many pooled scripts are
    selected for allocation. Every function returns a new mapping; the
    input mapping is never mutated.

Key Functions:
    - toggle_institution(): Full-select or clear one institution
    - set_institution_count(): Clamp and store a direct count edit
    - toggle_institutions(): Bulk toggle in one transition
    - toggle_exam_center(): Bulk toggle of one exam center
    - total_selected(): Sum of selected counts (recomputed on read)
    - selected_scripts(): Materialize the selected scripts

Dependencies:
    - core.models.selection.SelectionEntry

Used By:
    - distribution.session: selection actions
    - distribution.commit: reconciliation and slicing
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from board_toolkit.core.models.scripts import ExamCenterGroup, InstitutionGroup, Script, ScriptPool
from board_toolkit.core.models.selection import SelectionEntry

logger = logging.getLogger(__name__)

Selections = Mapping[str, SelectionEntry]


def toggle_institution(
    selections: Selections,
    institution_id: str,
    scripts: Sequence[Script],
    checked: bool,
) -> Dict[str, SelectionEntry]:
    """
    Select every script of an institution, or drop its entry.

    Checking creates an entry with ``selected_count == total_count`` and
    scripts sorted by roll number; unchecking removes the entry entirely.

    Args:
        selections: Current entries keyed by institution id
        institution_id: Institution to toggle
        scripts: The institution's pooled scripts
        checked: True to select, False to clear

    Returns:
        New entries mapping
    """
    updated = dict(selections)
    if checked:
        updated[institution_id] = SelectionEntry.full(institution_id, scripts)
    else:
        updated.pop(institution_id, None)
    return updated


def set_institution_count(
    selections: Selections,
    institution_id: str,
    requested: int,
) -> Dict[str, SelectionEntry]:
    """
    Store a direct count edit clamped into ``[0, total_count]``.

    The entry is kept at 0. Editing an institution without an entry is a
    no-op.
    """
    updated = dict(selections)
    entry = updated.get(institution_id)
    if entry is None:
        logger.debug(f"Ignoring count edit for unselected institution {institution_id}")
        return updated
    updated[institution_id] = entry.with_count(requested)
    return updated


def toggle_institutions(
    selections: Selections,
    groups: Iterable[InstitutionGroup],
    checked: bool,
    pool: Optional[ScriptPool] = None,
) -> Dict[str, SelectionEntry]:
    """
    Apply toggle_institution to many institutions atomically.

    Either all are full-selected or all are cleared; no intermediate mixed
    mapping is ever returned.

    Args:
        selections: Current entries keyed by institution id
        groups: Institution groups to toggle
        checked: True to select, False to clear
        pool: When given, each entry takes the institution's scripts from
            every exam center of the pool instead of from the group alone
    """
    updated = dict(selections)
    for group in groups:
        if checked:
            scripts = pool.institution_scripts(group.institution_id) if pool else group.scripts
            updated[group.institution_id] = SelectionEntry.full(group.institution_id, scripts)
        else:
            updated.pop(group.institution_id, None)
    return updated


def toggle_exam_center(
    selections: Selections,
    center: ExamCenterGroup,
    checked: bool,
    pool: Optional[ScriptPool] = None,
) -> Dict[str, SelectionEntry]:
    """Bulk toggle every institution of one exam center."""
    return toggle_institutions(selections, center.institutions.values(), checked, pool)


def total_selected(selections: Selections) -> int:
    """Sum of ``selected_count`` over all entries."""
    return sum(entry.selected_count for entry in selections.values())


def selected_scripts(selections: Selections) -> List[Script]:
    """
    Concatenate the first ``selected_count`` scripts of every entry.

    Entries are visited in insertion order; the result is not re-sorted.
    """
    result: List[Script] = []
    for entry in selections.values():
        result.extend(entry.selected_scripts)
    return result


def _all_full(selections: Selections, institution_ids: Iterable[str]) -> bool:
    seen = False
    for institution_id in institution_ids:
        entry = selections.get(institution_id)
        if entry is None or not entry.is_full or entry.total_count == 0:
            return False
        seen = True
    return seen


def is_center_fully_selected(selections: Selections, center: ExamCenterGroup) -> bool:
    """True when every institution of the center is fully selected."""
    return _all_full(selections, center.institutions)


def is_all_selected(selections: Selections, pool: ScriptPool) -> bool:
    """
    True when every institution shown in ``pool`` is fully selected.

    Checked per institution, so selections outside a filtered pool never
    count towards it.
    """
    return _all_full(selections, (group.institution_id for _, group in pool.institutions()))
