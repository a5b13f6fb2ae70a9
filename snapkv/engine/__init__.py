"""
Engine facade and snapshot lifecycle.
"""

from snapkv.engine.engine import Engine
from snapkv.engine.snapshot_manager import SnapshotManager, SnapshotState

__all__ = ["Engine", "SnapshotManager", "SnapshotState"]
