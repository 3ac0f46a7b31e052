"""
Serialization Utilities

Maps core models to and from the backend wire format.

The backend speaks the board's own vocabulary (madrasa, markaz, kitab,
marhala, examiner); the core models use the neutral names (institution,
exam center, subject, stage, target). This module is the only place the
two vocabularies meet.

- `serialize_*` functions produce JSON-ready dictionaries.
- `deserialize_*` functions validate required keys and raise
  `WireFormatError` on malformed records.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from ..models.scripts import Script
from ..models.buckets import AllocationTarget
from ..models.commands import AssignmentCommand, CommitReceipt


class WireFormatError(ValueError):
    """A backend record is missing required keys or has bad values."""
    pass


_LABEL_WITH_CODE = re.compile(r"^(?P<name>.*?)\s*\((?P<code>[^()]*)\)\s*$")


def _require(data: Mapping[str, Any], key: str, kind: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise WireFormatError(f"{kind} record missing {key!r}: {dict(data)!r}")
    return value


# ─────────────────────────────────────────────────────────────────────────────
# Scripts
# ─────────────────────────────────────────────────────────────────────────────

def serialize_script(script: Script) -> dict[str, Any]:
    """
    Serialize a Script to a backend record.

    Args:
        script: Script to serialize

    Returns:
        Dictionary using the backend's key names
    """
    return {
        "examinee_id": script.examinee_id,
        "roll_number": script.roll_number,
        "examinee_name_bn": script.examinee_name,
        "madrasa_id": script.institution_id,
        "madrasa_name_bn": script.institution_name,
        "madrasa_code": script.institution_code,
        "markaz_id": script.exam_center_id,
        "markaz_name_bn": script.exam_center_name,
    }


def deserialize_script(data: Mapping[str, Any]) -> Script:
    """
    Deserialize a Script from a backend record.

    A missing or null roll number is read as 0.

    Raises:
        WireFormatError: If identifiers are missing or the roll number is
            not an integer
    """
    raw_roll = data.get("roll_number")
    try:
        roll_number = int(raw_roll) if raw_roll not in (None, "") else 0
    except (TypeError, ValueError) as e:
        raise WireFormatError(f"Invalid roll_number {raw_roll!r}") from e

    try:
        return Script(
            examinee_id=str(_require(data, "examinee_id", "script")),
            roll_number=roll_number,
            institution_id=str(_require(data, "madrasa_id", "script")),
            exam_center_id=str(_require(data, "markaz_id", "script")),
            examinee_name=data.get("examinee_name_bn") or "",
            institution_name=data.get("madrasa_name_bn") or "",
            institution_code=str(data.get("madrasa_code") or ""),
            exam_center_name=data.get("markaz_name_bn") or "",
        )
    except ValueError as e:
        if isinstance(e, WireFormatError):
            raise
        raise WireFormatError(str(e)) from e


def deserialize_scripts(records: Iterable[Mapping[str, Any]]) -> list[Script]:
    """Deserialize a list of backend script records."""
    return [deserialize_script(record) for record in records]


# ─────────────────────────────────────────────────────────────────────────────
# Allocation targets
# ─────────────────────────────────────────────────────────────────────────────

def serialize_target(target: AllocationTarget) -> dict[str, Any]:
    """Serialize a target to the lookup option form."""
    return {
        "value": target.target_id,
        "label": target.label,
        "code": target.display_code,
    }


def deserialize_target(data: Mapping[str, Any]) -> AllocationTarget:
    """
    Deserialize an eligible-examiner lookup option.

    Accepts ``value`` or ``id`` for the identifier and ``label`` or
    ``name`` for the display name. When no ``code`` is given and the label
    reads ``"Name (CODE)"``, name and code are split from the label.

    Raises:
        WireFormatError: If no identifier is present
    """
    target_id = data.get("value") or data.get("id")
    if not target_id:
        raise WireFormatError(f"target record missing 'value': {dict(data)!r}")

    label = str(data.get("label") or data.get("name") or "")
    code = str(data.get("code") or "")
    name = label
    match = _LABEL_WITH_CODE.match(label)
    if match:
        name = match.group("name")
        if not code:
            code = match.group("code")

    return AllocationTarget(target_id=str(target_id), display_name=name, display_code=code)


# ─────────────────────────────────────────────────────────────────────────────
# Commands and receipts
# ─────────────────────────────────────────────────────────────────────────────

def serialize_command(command: AssignmentCommand) -> dict[str, Any]:
    """
    Serialize an AssignmentCommand to the bulk-assignment payload item.

    Returns:
        Dictionary with examiner/markaz/kitab/marhala keys
    """
    return {
        "examiner_id": command.target_id,
        "examinee_ids": list(command.examinee_ids),
        "markaz_id": command.exam_center_id,
        "kitab_id": command.subject_id,
        "exam_id": command.exam_id,
        "marhala_id": command.stage_id,
        "distribution_date": command.timestamp,
        "madrasa_ids": list(command.institution_ids),
    }


def deserialize_command(data: Mapping[str, Any]) -> AssignmentCommand:
    """Deserialize a bulk-assignment payload item."""
    try:
        return AssignmentCommand(
            target_id=str(_require(data, "examiner_id", "assignment")),
            examinee_ids=tuple(str(e) for e in data.get("examinee_ids") or ()),
            exam_center_id=str(data.get("markaz_id") or ""),
            subject_id=str(data.get("kitab_id") or ""),
            exam_id=str(data.get("exam_id") or ""),
            stage_id=str(data.get("marhala_id") or ""),
            institution_ids=tuple(str(m) for m in data.get("madrasa_ids") or ()),
            timestamp=str(data.get("distribution_date") or ""),
        )
    except ValueError as e:
        if isinstance(e, WireFormatError):
            raise
        raise WireFormatError(str(e)) from e


def serialize_receipt(receipt: CommitReceipt) -> dict[str, Any]:
    return {"total_scripts_assigned": receipt.accepted_count}


def deserialize_receipt(data: Mapping[str, Any]) -> CommitReceipt:
    """Deserialize the bulk-assignment response."""
    raw = data.get("total_scripts_assigned")
    if raw is None:
        raise WireFormatError(f"receipt missing 'total_scripts_assigned': {dict(data)!r}")
    try:
        return CommitReceipt(accepted_count=int(raw))
    except (TypeError, ValueError) as e:
        raise WireFormatError(f"Invalid total_scripts_assigned {raw!r}") from e
