"""
Module: distribution.registry

Purpose:
    Allocation Target Registry. An ordered tuple of buckets, one per
    examiner. Registry order is the order targets were added and drives
    both even distribution and the commit slice walk.

Key Functions:
    - add_target(): Idempotent append of an empty bucket
    - remove_target(): Drop a bucket without redistributing its count
    - set_bucket_count(): Permissive edit (negative -> 0, no upper clamp)
    - total_allocated(): Sum of bucket counts
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from board_toolkit.core.models.buckets import AllocationBucket, AllocationTarget

logger = logging.getLogger(__name__)

Buckets = Tuple[AllocationBucket, ...]


def find_bucket(buckets: Sequence[AllocationBucket], target_id: str) -> Optional[AllocationBucket]:
    for bucket in buckets:
        if bucket.target_id == target_id:
            return bucket
    return None


def add_target(buckets: Sequence[AllocationBucket], target: AllocationTarget) -> Buckets:
    """
    Append an empty bucket for ``target``.

    No-op when a bucket for the target already exists.
    """
    if find_bucket(buckets, target.target_id) is not None:
        logger.debug(f"Target {target.target_id} already has a bucket")
        return tuple(buckets)
    return (*buckets, AllocationBucket.for_target(target))


def remove_target(buckets: Sequence[AllocationBucket], target_id: str) -> Buckets:
    """
    Remove the bucket for ``target_id``.

    Its count becomes unallocated; nothing is redistributed.
    """
    return tuple(bucket for bucket in buckets if bucket.target_id != target_id)


def set_bucket_count(buckets: Sequence[AllocationBucket], target_id: str, count: int) -> Buckets:
    """
    Set a bucket's count; negative input is stored as 0.

    The upper bound is left to the reconciliation check at commit time.
    """
    return tuple(
        bucket.with_count(count) if bucket.target_id == target_id else bucket
        for bucket in buckets
    )


def total_allocated(buckets: Sequence[AllocationBucket]) -> int:
    return sum(bucket.script_count for bucket in buckets)
