"""
Utils Package

Wire-format serialization for core models.
"""

from .serialization import (
    WireFormatError,
    serialize_script,
    deserialize_script,
    deserialize_scripts,
    serialize_target,
    deserialize_target,
    serialize_command,
    deserialize_command,
    serialize_receipt,
    deserialize_receipt,
)

__all__ = [
    "WireFormatError",
    "serialize_script",
    "deserialize_script",
    "deserialize_scripts",
    "serialize_target",
    "deserialize_target",
    "serialize_command",
    "deserialize_command",
    "serialize_receipt",
    "deserialize_receipt",
]
