"""
Module: distribution.controller

Purpose:
    Orchestrate a distribution session against a ScriptRepository.
    Filter → Fetch → Select/Allocate → Commit → Sheet → Refresh

    The controller owns the only mutable reference to the SessionState and
    runs the two suspension points (fetch, commit) one at a time. The
    session phase doubles as the pending flag: while FETCHING or
    COMMITTING every other fetch/commit is refused.

Key Classes:
    - DistributionController: Session owner and collaborator driver

Dependencies:
    - distribution.session: State machine
    - distribution.store: ScriptRepository
    - distribution.output: Distribution sheet

Used By:
    - gui.widgets.distribution_tab: GUI integration
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional, Tuple, Union

from board_toolkit.core.models.buckets import AllocationTarget
from board_toolkit.core.models.commands import CommitReceipt
from board_toolkit.core.models.filters import FilterLevel
from board_toolkit.core.models.scripts import ScriptPool

from .commit import CommitPlan
from .config import DistributionConfig
from .errors import CommitError, FetchError, IllegalTransition, InternalConsistencyError
from .output.sheet import render_distribution_sheet
from .session import (
    Action,
    AddTarget,
    BeginCommit,
    BeginFetch,
    CommitFailed,
    CommitSucceeded,
    FetchFailed,
    FetchSucceeded,
    SessionPhase,
    SessionState,
    SetFilter,
    apply,
)
from .store.repository import ScriptRepository

logger = logging.getLogger(__name__)


class DistributionController:
    """
    Drive one interactive distribution session.

    Attributes:
        repository: Collaborator for fetch and commit
        config: Controller behaviour
        eligible_targets: Examiners loaded for the current exam
        last_sheet: Path of the most recent distribution sheet, if any

    Example:
        >>> controller = DistributionController(JsonScriptStore(path))
        >>> controller.set_filter(FilterLevel.EXAM, "exam-1")
        >>> controller.set_filter(FilterLevel.STAGE, "stage-1")
        >>> controller.set_filter(FilterLevel.SUBJECT, "subject-1")
        >>> controller.fetch_scripts()
    """

    def __init__(
        self,
        repository: ScriptRepository,
        config: Optional[DistributionConfig] = None,
        state: Optional[SessionState] = None,
    ) -> None:
        self.repository = repository
        self.config = config or DistributionConfig()
        self._state = state or SessionState()
        self.eligible_targets: Tuple[AllocationTarget, ...] = ()
        self.last_sheet: Optional[Path] = None

    @property
    def state(self) -> SessionState:
        return self._state

    def dispatch(self, action: Action) -> SessionState:
        """
        Apply ``action`` to the session.

        Raises whatever ``apply`` raises; the state is unchanged then.
        """
        self._state = apply(self._state, action)
        return self._state

    # ─────────────────────────────────────────────────────────────────────
    # Filters and lookups
    # ─────────────────────────────────────────────────────────────────────

    def set_filter(self, level: FilterLevel, value: str) -> SessionState:
        previous_exam = self._state.filters.exam_id
        state = self.dispatch(SetFilter(level, value))
        if state.filters.exam_id != previous_exam:
            self.eligible_targets = ()
        return state

    def load_targets(self) -> Tuple[AllocationTarget, ...]:
        """
        Load eligible examiners for the current exam.

        Raises:
            IllegalTransition: No exam chosen
            FetchError: The collaborator failed
        """
        exam_id = self._state.filters.exam_id
        if not exam_id:
            raise IllegalTransition("Choose an exam before loading examiners")
        try:
            targets = self.repository.fetch_eligible_targets(exam_id, limit=self.config.target_limit)
        except Exception as e:
            logger.error(f"Failed to load examiners for {exam_id}: {e}")
            raise FetchError(str(e)) from e
        self.eligible_targets = tuple(targets)
        logger.info(f"Loaded {len(self.eligible_targets)} eligible examiners for {exam_id}")
        return self.eligible_targets

    def add_target(self, target: Union[str, AllocationTarget]) -> SessionState:
        """
        Add a bucket for an examiner, by id from the loaded list or directly.

        Raises:
            IllegalTransition: Unknown examiner id, or not editable now
        """
        if isinstance(target, str):
            match = next((t for t in self.eligible_targets if t.target_id == target), None)
            if match is None:
                raise IllegalTransition(f"Examiner {target} is not in the eligible list")
            target = match
        return self.dispatch(AddTarget(target))

    # ─────────────────────────────────────────────────────────────────────
    # Suspension points
    # ─────────────────────────────────────────────────────────────────────

    def fetch_scripts(self) -> ScriptPool:
        """
        Fetch the ungraded pool for the current filters.

        Returns:
            The new pool (empty when nothing is left to allocate)

        Raises:
            IllegalTransition: Filters incomplete or a call is pending
            FetchError: The collaborator failed in any way; the pool is left empty
        """
        self.dispatch(BeginFetch())
        context = self._state.filters
        start_time = time.perf_counter()
        try:
            scripts = self.repository.fetch_ungraded_scripts(
                context.exam_id, context.stage_id, context.subject_id
            )
        except Exception as e:
            # Any failure ends the fetch; the session must never stay FETCHING
            logger.error(f"Fetching scripts failed: {e}")
            self.dispatch(FetchFailed(context, str(e)))
            raise FetchError(str(e)) from e

        state = self.dispatch(FetchSucceeded(context, tuple(scripts)))
        elapsed = time.perf_counter() - start_time
        if not scripts:
            logger.info("No scripts left to distribute for this filter")
        logger.info(
            f"Fetched {len(scripts)} scripts across {len(state.pool.centers)} exam centers "
            f"in {elapsed:.2f}s"
        )
        return state.pool

    def commit(self) -> CommitReceipt:
        """
        Commit the current allocation as one batch.

        Pipeline:
        1. BeginCommit (gate + plan; nothing mutated on refusal)
        2. Submit commands to the repository
        3. CommitSucceeded / CommitFailed
        4. (Optional) Distribution sheet
        5. Re-fetch the remaining pool

        Returns:
            CommitReceipt from the repository

        Raises:
            InvariantViolation: Selected and allocated totals disagree
            InternalConsistencyError: Repeated examinee or slice walk ran out of scripts
            CommitError: The repository failed or rejected the batch; selections and
                buckets are kept for retry
        """
        state = self.dispatch(
            BeginCommit(
                timestamp=self.config.timestamp(),
                require_single_center=self.config.require_single_center,
            )
        )
        plan = state.pending_commit
        if plan is None:
            raise InternalConsistencyError("Commit started without a planned batch")

        logger.info(f"Submitting {len(plan.commands)} assignments ({plan.total_scripts} scripts)")
        try:
            receipt = self.repository.commit_assignments(list(plan.commands))
        except Exception as e:
            # Whole-batch failure; selections and buckets stay for a retry
            logger.error(f"Commit rejected: {e}")
            self.dispatch(CommitFailed(str(e)))
            raise CommitError(str(e)) from e

        if receipt.accepted_count != plan.total_scripts:
            logger.warning(
                f"Repository accepted {receipt.accepted_count} of {plan.total_scripts} scripts"
            )
        self.dispatch(CommitSucceeded(receipt))
        logger.info(f"Distributed {receipt.accepted_count} scripts")

        if self.config.sheet_output_dir is not None:
            self.last_sheet = self._write_sheet(plan)

        self._refresh()
        return receipt

    def _write_sheet(self, plan: CommitPlan) -> Optional[Path]:
        stamp = plan.commands[0].timestamp if plan.commands else "empty"
        safe_stamp = "".join(ch if ch.isalnum() else "-" for ch in stamp)
        path = self.config.sheet_output_dir / f"distribution_{plan.context.subject_id}_{safe_stamp}.pdf"
        try:
            render_distribution_sheet(plan, path, font_path=self.config.sheet_font_path)
        except Exception as e:
            logger.error(f"Failed to write distribution sheet {path}: {e}")
            return None
        return path

    def _refresh(self) -> None:
        """Re-fetch after a commit; the commit itself already succeeded."""
        context = self._state.filters
        try:
            scripts = self.repository.fetch_ungraded_scripts(
                context.exam_id, context.stage_id, context.subject_id
            )
        except Exception as e:
            logger.error(f"Refreshing pool after commit failed: {e}")
            self.dispatch(FetchFailed(context, str(e)))
            return
        state = self.dispatch(FetchSucceeded(context, tuple(scripts)))
        logger.info(f"{state.pool.script_count} scripts remain undistributed")

    @property
    def is_busy(self) -> bool:
        return self._state.phase in (SessionPhase.FETCHING, SessionPhase.COMMITTING)

