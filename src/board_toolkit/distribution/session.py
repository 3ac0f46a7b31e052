"""
Module: distribution.session

Purpose:
    Session State Machine. One immutable SessionState, a closed set of
    action dataclasses, and ``apply(state, action) -> SessionState``.

    Lifecycle:
        Idle -> FilterSet -> Fetching -> Populated <-> Allocating
             -> Committing -> Fetching (refresh) | Allocating (failure)

    Changing the exam, stage or subject filter outside Idle discards the
    pool, selections and buckets. The institution display filter and the
    expand/collapse flags live in ViewState and never touch semantic state.

Key Classes:
    - SessionPhase: Lifecycle phases
    - ViewState: UI-only state (panel, display filter, expanded centers)
    - SessionState: The aggregate
    - Action subclasses: SetFilter, BeginFetch, FetchSucceeded, ...

Key Functions:
    - apply(): Pure transition; raises DistributionError subclasses

Dependencies:
    - distribution.pool / selection / registry / balancing / commit
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, FrozenSet, Mapping, Optional, Tuple, Type

from board_toolkit.core.models.buckets import AllocationBucket, AllocationTarget
from board_toolkit.core.models.commands import CommitReceipt
from board_toolkit.core.models.filters import FilterContext, FilterLevel
from board_toolkit.core.models.scripts import Script, ScriptPool
from board_toolkit.core.models.selection import SelectionEntry

from . import registry, selection
from .balancing import distribute_evenly
from .commit import CommitPlan, can_commit, plan_commit
from .errors import IllegalTransition
from .pool import build_pool, filter_pool

logger = logging.getLogger(__name__)


class SessionPhase(Enum):
    IDLE = "idle"
    FILTER_SET = "filter_set"
    FETCHING = "fetching"
    POPULATED = "populated"
    ALLOCATING = "allocating"
    COMMITTING = "committing"


_EDITABLE = frozenset({SessionPhase.POPULATED, SessionPhase.ALLOCATING})
_PENDING = frozenset({SessionPhase.FETCHING, SessionPhase.COMMITTING})


@dataclass(frozen=True)
class ViewState:
    """
    Display-only state. Nothing here feeds the commit invariants.

    Attributes:
        panel_visible: Pool/distribution panels shown
        institution_filter: Institution display filter ("" = none)
        expanded_centers: Exam centers currently expanded
    """

    panel_visible: bool = False
    institution_filter: str = ""
    expanded_centers: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class SessionState:
    """
    The distribution session aggregate.

    Attributes:
        phase: Current lifecycle phase
        filters: Exam/stage/subject context
        pool: Current Script Pool Index
        selections: Institution id -> SelectionEntry
        buckets: Allocation buckets in registry order
        view: UI-only sub-state
        pending_commit: Plan submitted and awaiting the collaborator
        last_error: Message of the most recent fetch/commit failure
        last_receipt: Receipt of the most recent successful commit
    """

    phase: SessionPhase = SessionPhase.IDLE
    filters: FilterContext = field(default_factory=FilterContext)
    pool: ScriptPool = field(default_factory=ScriptPool)
    selections: Mapping[str, SelectionEntry] = field(default_factory=dict)
    buckets: Tuple[AllocationBucket, ...] = ()
    view: ViewState = field(default_factory=ViewState)
    pending_commit: Optional[CommitPlan] = None
    last_error: Optional[str] = None
    last_receipt: Optional[CommitReceipt] = None

    @property
    def total_selected(self) -> int:
        return selection.total_selected(self.selections)

    @property
    def total_allocated(self) -> int:
        return registry.total_allocated(self.buckets)

    @property
    def can_commit(self) -> bool:
        return self.phase in _EDITABLE and can_commit(self.selections, self.buckets)

    @property
    def is_pending(self) -> bool:
        """True while a fetch or commit is outstanding."""
        return self.phase in _PENDING

    @property
    def visible_pool(self) -> ScriptPool:
        """Pool narrowed by the institution display filter."""
        return filter_pool(self.pool, self.view.institution_filter)

    def __repr__(self) -> str:
        return (
            f"SessionState({self.phase.value}, selected={self.total_selected}, "
            f"allocated={self.total_allocated}, buckets={len(self.buckets)})"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Actions
# ─────────────────────────────────────────────────────────────────────────────

class Action:
    """Base class for session actions."""
    __slots__ = ()


@dataclass(frozen=True)
class SetFilter(Action):
    level: FilterLevel
    value: str


@dataclass(frozen=True)
class SetInstitutionFilter(Action):
    institution_id: str = ""


@dataclass(frozen=True)
class ToggleCenterExpand(Action):
    exam_center_id: str


@dataclass(frozen=True)
class BeginFetch(Action):
    pass


@dataclass(frozen=True)
class FetchSucceeded(Action):
    context: FilterContext
    scripts: Tuple[Script, ...]


@dataclass(frozen=True)
class FetchFailed(Action):
    context: FilterContext
    message: str


@dataclass(frozen=True)
class ToggleInstitution(Action):
    institution_id: str
    checked: bool


@dataclass(frozen=True)
class SetInstitutionCount(Action):
    institution_id: str
    count: int


@dataclass(frozen=True)
class ToggleExamCenter(Action):
    exam_center_id: str
    checked: bool


@dataclass(frozen=True)
class ToggleAllVisible(Action):
    checked: bool


@dataclass(frozen=True)
class AddTarget(Action):
    target: AllocationTarget


@dataclass(frozen=True)
class RemoveTarget(Action):
    target_id: str


@dataclass(frozen=True)
class SetBucketCount(Action):
    target_id: str
    count: int


@dataclass(frozen=True)
class DistributeEvenly(Action):
    pass


@dataclass(frozen=True)
class ResetAllocation(Action):
    pass


@dataclass(frozen=True)
class BeginCommit(Action):
    timestamp: str
    require_single_center: bool = True


@dataclass(frozen=True)
class CommitSucceeded(Action):
    receipt: CommitReceipt


@dataclass(frozen=True)
class CommitFailed(Action):
    message: str


@dataclass(frozen=True)
class ResetAll(Action):
    pass


# ─────────────────────────────────────────────────────────────────────────────
# Transition function
# ─────────────────────────────────────────────────────────────────────────────

_Handler = Callable[[SessionState, Action], SessionState]
_HANDLERS: Dict[Type[Action], _Handler] = {}


def _handles(action_type: Type[Action]) -> Callable[[_Handler], _Handler]:
    def register(func: _Handler) -> _Handler:
        _HANDLERS[action_type] = func
        return func
    return register


def apply(state: SessionState, action: Action) -> SessionState:
    """
    Apply one action and return the next state.

    The input state is never mutated. Guard failures raise before any new
    state is built, so a refused action leaves the caller's state intact.

    Args:
        state: Current session state
        action: Action to apply

    Returns:
        Next SessionState (may be ``state`` itself for no-ops)

    Raises:
        IllegalTransition: Action not allowed in the current phase
        InvariantViolation: BeginCommit while the totals disagree
        InternalConsistencyError: BeginCommit slice walk ran out of scripts

    Example:
        >>> state = apply(SessionState(), SetFilter(FilterLevel.EXAM, "exam-1"))
        >>> state.phase
        <SessionPhase.FILTER_SET: 'filter_set'>
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise IllegalTransition(f"Unknown action {type(action).__name__}")
    new_state = handler(state, action)
    if new_state is not state:
        logger.debug(f"{type(action).__name__}: {state.phase.value} -> {new_state.phase.value}")
    return new_state


def _require_editable(state: SessionState, action: Action) -> None:
    if state.phase not in _EDITABLE:
        raise IllegalTransition(
            f"{type(action).__name__} is not allowed while {state.phase.value}"
        )


def _cleared(state: SessionState) -> SessionState:
    """Drop pool, selections, buckets and view state."""
    return replace(
        state,
        pool=ScriptPool(),
        selections={},
        buckets=(),
        view=ViewState(),
        pending_commit=None,
    )


@_handles(SetFilter)
def _set_filter(state: SessionState, action: SetFilter) -> SessionState:
    if state.phase is SessionPhase.COMMITTING:
        raise IllegalTransition("Filters cannot change while a commit is in flight")
    filters = state.filters.with_level(action.level, action.value)
    if filters == state.filters:
        return state
    phase = SessionPhase.IDLE if filters.is_empty else SessionPhase.FILTER_SET
    if state.phase not in (SessionPhase.IDLE, SessionPhase.FILTER_SET):
        logger.info(f"Filter {action.level.value} changed; discarding pool and allocation")
    return replace(_cleared(state), phase=phase, filters=filters, last_error=None)


@_handles(SetInstitutionFilter)
def _set_institution_filter(state: SessionState, action: SetInstitutionFilter) -> SessionState:
    return replace(state, view=replace(state.view, institution_filter=action.institution_id or ""))


@_handles(ToggleCenterExpand)
def _toggle_center_expand(state: SessionState, action: ToggleCenterExpand) -> SessionState:
    expanded = set(state.view.expanded_centers)
    expanded ^= {action.exam_center_id}
    return replace(state, view=replace(state.view, expanded_centers=frozenset(expanded)))


@_handles(BeginFetch)
def _begin_fetch(state: SessionState, action: BeginFetch) -> SessionState:
    if state.is_pending:
        raise IllegalTransition(f"Cannot fetch while {state.phase.value}")
    if not state.filters.is_complete:
        raise IllegalTransition("Exam, stage and subject must be chosen before fetching")
    return replace(state, phase=SessionPhase.FETCHING, last_error=None)


def _is_stale(state: SessionState, context: FilterContext, kind: str) -> bool:
    if state.phase is not SessionPhase.FETCHING or context != state.filters:
        logger.warning(f"Discarding stale {kind} for {context}")
        return True
    return False


@_handles(FetchSucceeded)
def _fetch_succeeded(state: SessionState, action: FetchSucceeded) -> SessionState:
    if _is_stale(state, action.context, "fetch result"):
        return state
    pool = build_pool(action.scripts)
    view = ViewState(
        panel_visible=not pool.is_empty,
        institution_filter=state.view.institution_filter,
        expanded_centers=frozenset(pool.centers),
    )
    return replace(
        state,
        phase=SessionPhase.POPULATED,
        pool=pool,
        selections={},
        buckets=(),
        view=view,
    )


@_handles(FetchFailed)
def _fetch_failed(state: SessionState, action: FetchFailed) -> SessionState:
    if _is_stale(state, action.context, "fetch failure"):
        return state
    return replace(_cleared(state), phase=SessionPhase.FILTER_SET, last_error=action.message)


def _lookup_scripts(state: SessionState, institution_id: str):
    scripts = state.pool.institution_scripts(institution_id)
    if not scripts:
        raise IllegalTransition(f"Institution {institution_id} is not in the pool")
    return scripts


@_handles(ToggleInstitution)
def _toggle_institution(state: SessionState, action: ToggleInstitution) -> SessionState:
    _require_editable(state, action)
    scripts = _lookup_scripts(state, action.institution_id)
    selections = selection.toggle_institution(
        state.selections, action.institution_id, scripts, action.checked
    )
    return replace(state, phase=SessionPhase.ALLOCATING, selections=selections)


@_handles(SetInstitutionCount)
def _set_institution_count(state: SessionState, action: SetInstitutionCount) -> SessionState:
    _require_editable(state, action)
    selections = selection.set_institution_count(state.selections, action.institution_id, action.count)
    return replace(state, phase=SessionPhase.ALLOCATING, selections=selections)


@_handles(ToggleExamCenter)
def _toggle_exam_center(state: SessionState, action: ToggleExamCenter) -> SessionState:
    _require_editable(state, action)
    center = state.pool.centers.get(action.exam_center_id)
    if center is None:
        raise IllegalTransition(f"Exam center {action.exam_center_id} is not in the pool")
    selections = selection.toggle_exam_center(state.selections, center, action.checked, state.pool)
    return replace(state, phase=SessionPhase.ALLOCATING, selections=selections)


@_handles(ToggleAllVisible)
def _toggle_all_visible(state: SessionState, action: ToggleAllVisible) -> SessionState:
    _require_editable(state, action)
    groups = [group for _, group in state.visible_pool.institutions()]
    selections = selection.toggle_institutions(state.selections, groups, action.checked, state.pool)
    return replace(state, phase=SessionPhase.ALLOCATING, selections=selections)


@_handles(AddTarget)
def _add_target(state: SessionState, action: AddTarget) -> SessionState:
    _require_editable(state, action)
    buckets = registry.add_target(state.buckets, action.target)
    return replace(state, phase=SessionPhase.ALLOCATING, buckets=buckets)


@_handles(RemoveTarget)
def _remove_target(state: SessionState, action: RemoveTarget) -> SessionState:
    _require_editable(state, action)
    buckets = registry.remove_target(state.buckets, action.target_id)
    return replace(state, phase=SessionPhase.ALLOCATING, buckets=buckets)


@_handles(SetBucketCount)
def _set_bucket_count(state: SessionState, action: SetBucketCount) -> SessionState:
    _require_editable(state, action)
    buckets = registry.set_bucket_count(state.buckets, action.target_id, action.count)
    return replace(state, phase=SessionPhase.ALLOCATING, buckets=buckets)


@_handles(DistributeEvenly)
def _distribute_evenly(state: SessionState, action: DistributeEvenly) -> SessionState:
    _require_editable(state, action)
    if not state.buckets:
        return state
    buckets = distribute_evenly(state.total_selected, state.buckets)
    return replace(state, phase=SessionPhase.ALLOCATING, buckets=buckets)


@_handles(ResetAllocation)
def _reset_allocation(state: SessionState, action: ResetAllocation) -> SessionState:
    _require_editable(state, action)
    return replace(state, phase=SessionPhase.POPULATED, selections={}, buckets=())


@_handles(BeginCommit)
def _begin_commit(state: SessionState, action: BeginCommit) -> SessionState:
    _require_editable(state, action)
    plan = plan_commit(
        state.selections,
        state.buckets,
        state.filters,
        action.timestamp,
        require_single_center=action.require_single_center,
    )
    return replace(state, phase=SessionPhase.COMMITTING, pending_commit=plan, last_error=None)


@_handles(CommitSucceeded)
def _commit_succeeded(state: SessionState, action: CommitSucceeded) -> SessionState:
    if state.phase is not SessionPhase.COMMITTING:
        raise IllegalTransition(f"No commit is in flight (phase {state.phase.value})")
    # The pool is re-fetched rather than assumed empty
    return replace(
        state,
        phase=SessionPhase.FETCHING,
        pool=ScriptPool(),
        selections={},
        buckets=(),
        pending_commit=None,
        last_receipt=action.receipt,
    )


@_handles(CommitFailed)
def _commit_failed(state: SessionState, action: CommitFailed) -> SessionState:
    if state.phase is not SessionPhase.COMMITTING:
        raise IllegalTransition(f"No commit is in flight (phase {state.phase.value})")
    return replace(
        state,
        phase=SessionPhase.ALLOCATING,
        pending_commit=None,
        last_error=action.message,
    )


@_handles(ResetAll)
def _reset_all(state: SessionState, action: ResetAll) -> SessionState:
    if state.phase is SessionPhase.COMMITTING:
        raise IllegalTransition("Cannot reset while a commit is in flight")
    return SessionState()
