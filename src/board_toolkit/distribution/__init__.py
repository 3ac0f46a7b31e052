"""
Module: distribution

Purpose:
    Script (answer-booklet) distribution engine. Pools ungraded scripts by
    exam center and institution, tracks partial selections, allocates
    exact counts to examiner buckets, and commits roll-ordered contiguous
    slices as one batch.

Key Functions:
    - build_pool(): Script Pool Index
    - distribute_evenly(): Even split across buckets
    - plan_commit(): Reconcile and slice into AssignmentCommands
    - apply(): Session state machine transition

Key Classes:
    - SessionState: Session aggregate
    - DistributionController: Runs fetch/commit against a repository
    - DistributionConfig: Controller configuration

Dependencies:
    - board_toolkit.core: Frozen models and serialization
    - portalocker (store), reportlab (output)

Used By:
    - board_toolkit.gui: Distribution tab
"""

from .config import DistributionConfig
from .errors import (
    DistributionError,
    TransportError,
    AssignmentConflict,
    FetchError,
    CommitError,
    InvariantViolation,
    MixedExamCenterError,
    InternalConsistencyError,
    IllegalTransition,
)
from .pool import build_pool, filter_pool
from .balancing import even_split, distribute_evenly
from .commit import AllocationSlice, CommitPlan, can_commit, plan_commit
from .session import SessionPhase, SessionState, ViewState, apply
from .controller import DistributionController

__all__ = [
    # Config
    "DistributionConfig",
    # Errors
    "DistributionError",
    "TransportError",
    "AssignmentConflict",
    "FetchError",
    "CommitError",
    "InvariantViolation",
    "MixedExamCenterError",
    "InternalConsistencyError",
    "IllegalTransition",
    # Pool
    "build_pool",
    "filter_pool",
    # Balancing
    "even_split",
    "distribute_evenly",
    # Commit
    "AllocationSlice",
    "CommitPlan",
    "can_commit",
    "plan_commit",
    # Session
    "SessionPhase",
    "SessionState",
    "ViewState",
    "apply",
    # Controller
    "DistributionController",
]
