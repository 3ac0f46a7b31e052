"""
Module: distribution.errors

Purpose:
    Exception hierarchy for the distribution engine and its collaborators.

Key Classes:
    - DistributionError: Base class
    - TransportError / AssignmentConflict: Raised by collaborators
    - FetchError / CommitError: Collaborator failures surfaced to callers
    - InvariantViolation / MixedExamCenterError: Commit gate refused
    - InternalConsistencyError: Bookkeeping bug detected during slicing
    - IllegalTransition: Action not allowed in the current session phase
"""

from __future__ import annotations


class DistributionError(Exception):
    """Base class for script distribution errors."""
    pass


class TransportError(DistributionError):
    """Network, auth or storage failure inside a collaborator."""
    pass


class AssignmentConflict(TransportError):
    """The store rejected a batch because a script is already assigned."""
    pass


class FetchError(DistributionError):
    """Script pool or target list retrieval failed."""
    pass


class CommitError(DistributionError):
    """The collaborator rejected the assignment batch."""
    pass


class InvariantViolation(DistributionError):
    """Commit attempted while the selected and allocated totals disagree."""
    pass


class MixedExamCenterError(InvariantViolation):
    """A commit slice would span more than one exam center."""
    pass


class InternalConsistencyError(DistributionError):
    """The slice walk ran out of scripts; selection bookkeeping is broken."""
    pass


class IllegalTransition(DistributionError):
    """The action is not permitted in the current session phase."""
    pass
