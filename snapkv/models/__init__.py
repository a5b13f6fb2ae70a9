"""
Data models for the key-value engine.
"""

from snapkv.models.concurrent_map import ConcurrentMap
from snapkv.models.exceptions import (
    EngineClosedError,
    SnapshotCorruptionError,
    SnapshotError,
    SnapshotLoadError,
    SnapshotWriteError,
)
from snapkv.models.locks import GlobalLock, ShardedLock
from snapkv.models.rwlock import ReadWriteLock
from snapkv.models.snapshot import Snapshot

__all__ = [
    "ConcurrentMap",
    "EngineClosedError",
    "GlobalLock",
    "ReadWriteLock",
    "ShardedLock",
    "Snapshot",
    "SnapshotCorruptionError",
    "SnapshotError",
    "SnapshotLoadError",
    "SnapshotWriteError",
]
