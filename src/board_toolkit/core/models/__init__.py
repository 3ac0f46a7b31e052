"""
Core Models Package

Immutable, validated data models that serve as the single source of truth
for the distribution engine.

All models in this package are frozen dataclasses. Session transitions
build new instances instead of mutating, so a failed transition can never
leave half-applied state behind.

| Model | Role |
|-------|------|
| `Script` | One ungraded answer booklet |
| `ScriptPool` | exam center -> institution -> script hierarchy |
| `SelectionEntry` | Per-institution selected count |
| `AllocationBucket` | Per-examiner pending count |
| `AssignmentCommand` | Committed slice sent to the backend |
"""

from .scripts import Script, InstitutionGroup, ExamCenterGroup, ScriptPool, by_roll_number
from .selection import SelectionEntry
from .buckets import AllocationTarget, AllocationBucket
from .filters import FilterLevel, FilterContext
from .commands import AssignmentCommand, CommitReceipt

__all__ = [
    "Script",
    "InstitutionGroup",
    "ExamCenterGroup",
    "ScriptPool",
    "by_roll_number",
    "SelectionEntry",
    "AllocationTarget",
    "AllocationBucket",
    "FilterLevel",
    "FilterContext",
    "AssignmentCommand",
    "CommitReceipt",
]
