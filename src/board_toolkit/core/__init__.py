"""
Board Toolkit Core Package

Shared data models and serialization utilities. These models are the
single source of truth for the distribution engine, its stores and the GUI.

**DESIGN RULES:**

1. **Immutable Data Models**
   - Frozen dataclasses; every change creates a new instance.

2. **Calculated Values (Never Stored)**
   - Totals (`total_count`, `script_count`, selected totals) are always
     calculated from the underlying scripts and buckets.

3. **One Wire Vocabulary Boundary**
   - Backend key names (madrasa, markaz, kitab, marhala) appear only in
     `core.utils.serialization`.
"""

from .models import (
    Script,
    ScriptPool,
    SelectionEntry,
    AllocationTarget,
    AllocationBucket,
    FilterContext,
    FilterLevel,
    AssignmentCommand,
    CommitReceipt,
)

__all__ = [
    "Script",
    "ScriptPool",
    "SelectionEntry",
    "AllocationTarget",
    "AllocationBucket",
    "FilterContext",
    "FilterLevel",
    "AssignmentCommand",
    "CommitReceipt",
]
