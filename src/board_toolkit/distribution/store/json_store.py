"""
Module: distribution.store.json_store

Purpose:
    A JSON-file-backed ScriptRepository for offline boards and demos.
    Every commit is a locked read-modify-write, so concurrent sessions on
    the same file see each other's assignments and double assignment is
    rejected.

File layout:
    {
      "scripts":     [{<script record>, "exam_id", "marhala_id", "kitab_id"}],
      "examiners":   {"<exam_id>": [{"value", "label", "code"}]},
      "assignments": [{<assignment payload>}]
    }

Key Classes:
    - JsonScriptStore

Dependencies:
    - store.file_locking: portalocker-guarded JSON access
    - core.utils.serialization: wire format
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from board_toolkit.core.models.buckets import AllocationTarget
from board_toolkit.core.models.commands import AssignmentCommand, CommitReceipt
from board_toolkit.core.models.scripts import Script
from board_toolkit.core.utils.serialization import (
    WireFormatError,
    deserialize_script,
    deserialize_target,
    serialize_command,
)

from ..errors import AssignmentConflict, TransportError
from .file_locking import locked_read_json, locked_read_modify_write_json
from .repository import find_conflicts

logger = logging.getLogger(__name__)


def _empty_store() -> Dict[str, Any]:
    return {"scripts": [], "examiners": {}, "assignments": []}


def _assigned_keys(data: Dict[str, Any]) -> Set[Tuple[str, str, str]]:
    keys: Set[Tuple[str, str, str]] = set()
    for record in data.get("assignments", []):
        for examinee_id in record.get("examinee_ids", []):
            keys.add((str(record.get("exam_id", "")), str(record.get("kitab_id", "")), str(examinee_id)))
    return keys


class JsonScriptStore:
    """
    ScriptRepository backed by a single JSON file.

    Args:
        path: Store file; created empty on first write

    Example:
        >>> store = JsonScriptStore(Path("board.json"))
        >>> scripts = store.fetch_ungraded_scripts("exam-1", "stage-1", "subject-1")
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        try:
            return locked_read_json(self.path, default=_empty_store)
        except (OSError, json.JSONDecodeError) as e:
            raise TransportError(f"Failed to read store {self.path}: {e}") from e

    def fetch_ungraded_scripts(self, exam_id: str, stage_id: str, subject_id: str) -> List[Script]:
        data = self._read()
        assigned = _assigned_keys(data)
        scripts: List[Script] = []
        try:
            for record in data.get("scripts", []):
                if (
                    str(record.get("exam_id", "")) != exam_id
                    or str(record.get("marhala_id", "")) != stage_id
                    or str(record.get("kitab_id", "")) != subject_id
                ):
                    continue
                script = deserialize_script(record)
                if (exam_id, subject_id, script.examinee_id) in assigned:
                    continue
                scripts.append(script)
        except WireFormatError as e:
            raise TransportError(f"Malformed script record in {self.path}: {e}") from e
        logger.info(f"Store returned {len(scripts)} ungraded scripts for {exam_id}/{stage_id}/{subject_id}")
        return scripts

    def fetch_eligible_targets(self, exam_id: str, limit: Optional[int] = None) -> List[AllocationTarget]:
        data = self._read()
        records = data.get("examiners", {}).get(exam_id, [])
        if limit is not None:
            records = records[:limit]
        try:
            return [deserialize_target(record) for record in records]
        except WireFormatError as e:
            raise TransportError(f"Malformed examiner record in {self.path}: {e}") from e

    def commit_assignments(self, commands: Sequence[AssignmentCommand]) -> CommitReceipt:
        """
        Append the batch atomically.

        Raises:
            AssignmentConflict: Any examinee is already assigned; nothing
                is written
            TransportError: The file cannot be read or written
        """
        payload = [serialize_command(command) for command in commands]

        def record(existing: Dict[str, Any]) -> Dict[str, Any]:
            conflicts = find_conflicts(commands, _assigned_keys(existing))
            if conflicts:
                raise AssignmentConflict(
                    f"Scripts already assigned: {', '.join(sorted(set(conflicts)))}"
                )
            existing.setdefault("assignments", []).extend(payload)
            return existing

        try:
            locked_read_modify_write_json(self.path, record, default=_empty_store)
        except (OSError, json.JSONDecodeError) as e:
            raise TransportError(f"Failed to write store {self.path}: {e}") from e

        accepted = sum(command.script_count for command in commands)
        logger.info(f"Recorded {len(commands)} assignments ({accepted} scripts) in {self.path.name}")
        return CommitReceipt(accepted_count=accepted)
