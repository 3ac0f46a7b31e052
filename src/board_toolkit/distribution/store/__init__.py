"""
Module: distribution.store

Purpose:
    Collaborator implementations behind the ScriptRepository protocol.

Key Classes:
    - ScriptRepository: Protocol
    - InMemoryScriptRepository: List-backed store
    - JsonScriptStore: portalocker-guarded JSON file store
"""

from .repository import ScriptRepository, InMemoryScriptRepository, find_conflicts
from .json_store import JsonScriptStore

__all__ = [
    "ScriptRepository",
    "InMemoryScriptRepository",
    "JsonScriptStore",
    "find_conflicts",
]
