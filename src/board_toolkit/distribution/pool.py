"""
Module: distribution.pool

Purpose:
    Script Pool Index. Turns a flat list of ungraded scripts into the
    exam center -> institution -> script hierarchy used for display and
    bulk selection, and narrows it for the institution display filter.

Key Functions:
    - build_pool(): Group scripts by exam center, then institution
    - filter_pool(): Display-only narrowing to one institution

Dependencies:
    - core.models.scripts

Used By:
    - distribution.session: FetchSucceeded handler and visible pool
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from board_toolkit.core.models.scripts import (
    ExamCenterGroup,
    InstitutionGroup,
    Script,
    ScriptPool,
)

logger = logging.getLogger(__name__)


def build_pool(scripts: Iterable[Script]) -> ScriptPool:
    """
    Group scripts by exam center, then by institution.

    Labels and codes are taken from the first script seen for each group.
    Scripts keep their input order inside a group; roll-number ordering is
    applied later, at selection and commit time.

    Args:
        scripts: Fetched scripts in backend order

    Returns:
        ScriptPool; empty when ``scripts`` is empty

    Example:
        >>> pool = build_pool([Script("e1", 1, "m1", "c1")])
        >>> list(pool.centers)
        ['c1']
    """
    scripts = tuple(scripts)
    center_labels: Dict[str, str] = {}
    institution_labels: Dict[str, Dict[str, tuple[str, str]]] = {}
    members: Dict[str, Dict[str, List[Script]]] = {}
    seen_ids: set[str] = set()

    for script in scripts:
        if script.examinee_id in seen_ids:
            logger.warning(f"Duplicate examinee {script.examinee_id} in fetched pool")
        seen_ids.add(script.examinee_id)

        center_id = script.exam_center_id
        if center_id not in members:
            members[center_id] = {}
            center_labels[center_id] = script.exam_center_name
            institution_labels[center_id] = {}
        if script.institution_id not in members[center_id]:
            members[center_id][script.institution_id] = []
            institution_labels[center_id][script.institution_id] = (
                script.institution_name,
                script.institution_code,
            )
        members[center_id][script.institution_id].append(script)

    centers: Dict[str, ExamCenterGroup] = {}
    owner: Dict[str, str] = {}
    for center_id, by_institution in members.items():
        groups: Dict[str, InstitutionGroup] = {}
        for institution_id, group_scripts in by_institution.items():
            if institution_id in owner:
                logger.warning(
                    f"Institution {institution_id} appears in exam centers "
                    f"{owner[institution_id]} and {center_id}"
                )
            owner.setdefault(institution_id, center_id)
            name, code = institution_labels[center_id][institution_id]
            groups[institution_id] = InstitutionGroup(
                institution_id=institution_id,
                name=name,
                code=code,
                scripts=tuple(group_scripts),
            )
        centers[center_id] = ExamCenterGroup(
            exam_center_id=center_id,
            name=center_labels[center_id],
            institutions=groups,
        )

    pool = ScriptPool(centers=centers, scripts=scripts)
    logger.debug(f"Built {pool!r}")
    return pool


def filter_pool(pool: ScriptPool, institution_id: Optional[str] = None) -> ScriptPool:
    """
    Narrow the pool to one institution for display.

    Never affects selection state. Centers without the institution are
    dropped; an unknown institution yields an empty pool.

    Args:
        pool: Full pool
        institution_id: Institution display filter (None/"" = no filter)

    Returns:
        The same pool when no filter is active, otherwise the subtree
    """
    if not institution_id:
        return pool

    centers: Dict[str, ExamCenterGroup] = {}
    for center_id, center in pool.centers.items():
        group = center.institutions.get(institution_id)
        if group is not None:
            centers[center_id] = ExamCenterGroup(
                exam_center_id=center_id,
                name=center.name,
                institutions={institution_id: group},
            )

    scripts = tuple(
        script for center in centers.values()
        for group in center.institutions.values()
        for script in group.scripts
    )
    return ScriptPool(centers=centers, scripts=scripts)
