"""
Snapshot-backed in-memory key-value store.

This package provides a concurrent key-value engine with:
- Set(key, value) - O(1) under an exclusive lock
- Get(key) - O(1) under a shared lock, reports presence with a flag
- Delete(key) - O(1), no-op for absent keys
- Periodic full-dataset snapshots to a single file, plus a final flush on close
"""

from snapkv.engine.engine import Engine

__all__ = ["Engine"]
