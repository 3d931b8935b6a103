"""
Collaborative editing state for task notes.
"""

from .engine import CrdtEngine, PycrdtEngine
from .memory import InMemoryEngine, MemoryDocument, MemoryNode
from .tree import build_tree
from .snapshot import (
    STATE_VECTOR_VERSION,
    UPDATE_ACTION,
    UPDATE_VERSION,
    SnapshotRebuild,
    create_collab_snapshot,
    create_updated_collab_snapshot,
    rebuild_collab_snapshot,
)

__all__ = [
    "CrdtEngine",
    "PycrdtEngine",
    "InMemoryEngine",
    "MemoryDocument",
    "MemoryNode",
    "build_tree",
    "STATE_VECTOR_VERSION",
    "UPDATE_ACTION",
    "UPDATE_VERSION",
    "SnapshotRebuild",
    "create_collab_snapshot",
    "create_updated_collab_snapshot",
    "rebuild_collab_snapshot",
]
