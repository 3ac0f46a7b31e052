"""
Module: distribution.balancing

Purpose:
    Even-Distribution Algorithm. Splits a selected total across buckets so
    the counts sum exactly to the total and differ by at most one.

Key Functions:
    - even_split(): Pure count split
    - distribute_evenly(): Overwrite bucket counts with the split
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from board_toolkit.core.models.buckets import AllocationBucket


def even_split(total: int, parts: int) -> List[int]:
    """
    Split ``total`` into ``parts`` counts.

    Each part gets ``total // parts``; the first ``total % parts`` parts
    get one more. Deterministic for fixed inputs.

    Args:
        total: Non-negative total to split
        parts: Number of parts (>= 1)

    Returns:
        List of ``parts`` counts summing to ``total``

    Raises:
        ValueError: If total < 0 or parts < 1

    Example:
        >>> even_split(10, 3)
        [4, 3, 3]
    """
    if total < 0:
        raise ValueError(f"total cannot be negative: {total}")
    if parts < 1:
        raise ValueError(f"parts must be at least 1: {parts}")
    base, remainder = divmod(total, parts)
    return [base + 1 if index < remainder else base for index in range(parts)]


def distribute_evenly(total: int, buckets: Sequence[AllocationBucket]) -> Tuple[AllocationBucket, ...]:
    """
    Overwrite every bucket count with an even split of ``total``.

    Extra units go to the earliest-added buckets. With no buckets this is
    a no-op.
    """
    if not buckets:
        return tuple(buckets)
    counts = even_split(total, len(buckets))
    return tuple(bucket.with_count(count) for bucket, count in zip(buckets, counts))
