"""
Engine - Main key-value engine API.
"""

import os
from collections.abc import Mapping

from snapkv.engine.snapshot_manager import SnapshotManager
from snapkv.interfaces.lock_strategy import LockStrategy
from snapkv.models.concurrent_map import ConcurrentMap
from snapkv.models.exceptions import EngineClosedError


class Engine:
    """
    Snapshot-backed in-memory key-value engine.

    Provides:
    - set(key, value): Insert/update a key-value pair
    - get(key): Retrieve a value and a presence flag
    - delete(key): Delete a key
    - seed(data): Replace the whole dataset (tests/benchmarks)
    - close(): Stop periodic snapshots and flush one last time

    Architecture:
    - All data lives in a ConcurrentMap; operations never touch disk
    - A SnapshotManager rewrites the full snapshot file every
      sync_interval seconds and once more on close
    - The snapshot is loaded before the engine accepts any operation
    """

    # Default interval between automatic snapshots (1 minute)
    DEFAULT_SYNC_INTERVAL_S = SnapshotManager.DEFAULT_SYNC_INTERVAL_S

    def __init__(
        self,
        data_file: str,
        sync_interval: float = DEFAULT_SYNC_INTERVAL_S,
        lock: LockStrategy | None = None,
        max_consecutive_failures: int = SnapshotManager.DEFAULT_MAX_CONSECUTIVE_FAILURES,
    ) -> None:
        """
        Initialize the engine and hydrate it from the snapshot.

        Args:
            data_file: Path of the snapshot file.
            sync_interval: Seconds between automatic snapshots.
            lock: Lock strategy for the map (default: whole-dataset lock).
            max_consecutive_failures: Failed periodic snapshots in a row before
                                      failures are logged as critical.

        Raises:
            SnapshotLoadError: If an existing snapshot cannot be read.
            SnapshotCorruptionError: If an existing snapshot is corrupt.
        """
        if not data_file or not data_file.strip():
            raise ValueError("data_file cannot be empty")
        if sync_interval <= 0:
            raise ValueError(f"sync_interval must be positive, got {sync_interval}")

        data_file = os.path.abspath(data_file)

        self._store = ConcurrentMap(lock)
        self._snapshots = SnapshotManager(
            self._store,
            data_file,
            sync_interval=sync_interval,
            max_consecutive_failures=max_consecutive_failures,
        )
        self._closed = False

        # Fails construction on an unreadable snapshot
        self._snapshots.load()

    @classmethod
    async def create(
        cls,
        data_file: str,
        sync_interval: float = DEFAULT_SYNC_INTERVAL_S,
        lock: LockStrategy | None = None,
        max_consecutive_failures: int = SnapshotManager.DEFAULT_MAX_CONSECUTIVE_FAILURES,
    ) -> "Engine":
        """
        Async factory method to create an engine with periodic snapshots running.

        Args:
            data_file: Path of the snapshot file.
            sync_interval: Seconds between automatic snapshots.
            lock: Lock strategy for the map.
            max_consecutive_failures: See __init__.

        Returns:
            Initialized Engine instance with the snapshot task running.
        """
        engine = cls(data_file, sync_interval, lock, max_consecutive_failures)
        await engine._snapshots.start()
        return engine

    @property
    def data_file(self) -> str:
        return self._snapshots.data_file

    @property
    def sync_interval(self) -> float:
        return self._snapshots.sync_interval

    @property
    def snapshots(self) -> SnapshotManager:
        return self._snapshots

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise EngineClosedError("Engine is closed")

    async def set(self, key: str, value: bytes) -> bool:
        """
        Insert or update a key-value pair.

        Args:
            key: The key to insert/update.
            value: The bytes to store.

        Returns:
            True if successful.
        """
        self._check_open()
        return self._store.set(key, value)

    async def get(self, key: str) -> tuple[bytes | None, bool]:
        """
        Retrieve a value by key.

        Args:
            key: The key to look up.

        Returns:
            (value, True) if found, (None, False) otherwise.
        """
        self._check_open()
        return self._store.get(key)

    async def delete(self, key: str) -> bool:
        """
        Delete a key. Deleting an absent key succeeds.

        Args:
            key: The key to delete.

        Returns:
            True if successful.
        """
        self._check_open()
        return self._store.delete(key)

    def seed(self, data: Mapping[str, bytes]) -> None:
        """
        Replace the entire dataset without touching the snapshot file.

        Only meant for pre-populating the store in tests and benchmarks.
        """
        self._check_open()
        self._store.seed(data)

    def size(self) -> int:
        return self._store.size()

    async def close(self) -> None:
        """
        Close the engine, writing one final snapshot.

        Raises:
            SnapshotWriteError: If the final snapshot could not be written.
        """
        if self._closed:
            return

        self._closed = True
        await self._snapshots.stop()

    async def __aenter__(self) -> "Engine":
        self._check_open()
        await self._snapshots.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
