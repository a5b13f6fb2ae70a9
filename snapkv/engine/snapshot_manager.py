"""
SnapshotManager - Load, periodically persist, and finally flush the map.
"""

import asyncio
import logging
import threading
import time
from enum import Enum

from snapkv.models.concurrent_map import ConcurrentMap
from snapkv.models.exceptions import SnapshotWriteError
from snapkv.models.snapshot import Snapshot

logger = logging.getLogger(__name__)


class SnapshotState(Enum):
    """Lifecycle of a SnapshotManager."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"  # Loaded, periodic task not running
    RUNNING = "running"
    CLOSING = "closing"
    CLOSED = "closed"


class SnapshotManager:
    """
    Bridges a ConcurrentMap to its snapshot file.

    Responsibilities:
    - Hydrate the map from the snapshot at startup
    - Rewrite the full snapshot every sync_interval seconds
    - Cancel the periodic task and flush one last time on stop

    Periodic failures are logged and retried on the next tick. Once
    max_consecutive_failures ticks in a row have failed, every further
    failure is logged as critical until a write succeeds again.
    """

    DEFAULT_SYNC_INTERVAL_S = 60.0
    DEFAULT_MAX_CONSECUTIVE_FAILURES = 5

    def __init__(
        self,
        store: ConcurrentMap,
        data_file: str,
        sync_interval: float = DEFAULT_SYNC_INTERVAL_S,
        max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES,
    ) -> None:
        """
        Initialize the snapshot manager.

        Args:
            store: The map to persist.
            data_file: Snapshot file path.
            sync_interval: Seconds between periodic snapshots.
            max_consecutive_failures: Failed ticks in a row before failures
                                      are escalated to critical.
        """
        if sync_interval <= 0:
            raise ValueError(f"sync_interval must be positive, got {sync_interval}")
        if max_consecutive_failures <= 0:
            raise ValueError(
                f"max_consecutive_failures must be positive, got {max_consecutive_failures}"
            )

        self._store = store
        self._data_file = data_file
        self._sync_interval = sync_interval
        self._max_consecutive_failures = max_consecutive_failures

        self._state = SnapshotState.UNINITIALIZED
        self._sync_task: asyncio.Task | None = None

        # Serializes file writes; a cancelled tick may still be writing in its thread
        self._write_lock = threading.Lock()

        self._consecutive_failures: int = 0
        self._sync_count: int = 0
        self._last_sync_time: float | None = None

    @property
    def state(self) -> SnapshotState:
        return self._state

    @property
    def data_file(self) -> str:
        return self._data_file

    @property
    def sync_interval(self) -> float:
        return self._sync_interval

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def sync_count(self) -> int:
        return self._sync_count

    @property
    def last_sync_time(self) -> float | None:
        return self._last_sync_time

    def load(self) -> int:
        """
        Hydrate the map from the snapshot file.

        A missing file yields an empty map. Unreadable or corrupt files
        raise, and the caller must not proceed.

        Returns:
            Number of entries loaded.
        """
        if self._state is not SnapshotState.UNINITIALIZED:
            raise RuntimeError(f"Snapshot already loaded (state: {self._state.value})")

        Snapshot.cleanup_temp(self._data_file)

        data = Snapshot.load(self._data_file)
        if data is None:
            logger.info(f"No snapshot at {self._data_file}, starting with an empty store")
            data = {}
        else:
            logger.info(f"Loaded {len(data)} keys from snapshot {self._data_file}")

        self._store.seed(data)
        self._state = SnapshotState.READY
        return len(data)

    async def start(self) -> None:
        """Start the periodic snapshot task if not already running."""
        if self._state in (SnapshotState.CLOSING, SnapshotState.CLOSED):
            raise RuntimeError("Cannot start a closed snapshot manager")
        if self._state is SnapshotState.UNINITIALIZED:
            raise RuntimeError("Snapshot must be loaded before starting")

        if self._sync_task is None or self._sync_task.done():
            self._sync_task = asyncio.create_task(self._sync_worker())
            self._state = SnapshotState.RUNNING

    async def sync(self) -> int:
        """
        Write a full snapshot now.

        The copy and the file write run in the default thread pool.

        Returns:
            Number of entries written.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._sync_blocking)

    def _sync_blocking(self) -> int:
        with self._write_lock:
            data = self._store.snapshot()
            size = Snapshot.write(self._data_file, data)
            self._sync_count += 1
            self._last_sync_time = time.time()
        logger.debug(f"Snapshot written: {len(data)} keys, {size} bytes -> {self._data_file}")
        return len(data)

    async def _sync_worker(self) -> None:
        """Background worker that rewrites the snapshot every interval."""
        while True:
            try:
                await asyncio.sleep(self._sync_interval)
                await self.sync()
                self._consecutive_failures = 0
            except asyncio.CancelledError:
                break
            except Exception as e:
                self._record_failure(e)

    def _record_failure(self, error: Exception) -> None:
        self._consecutive_failures += 1
        if self._consecutive_failures >= self._max_consecutive_failures:
            logger.critical(
                f"Periodic snapshot failed {self._consecutive_failures} times in a row "
                f"for {self._data_file}: {error}. In-memory data is not being persisted."
            )
        else:
            logger.warning(
                f"Periodic snapshot failed (attempt {self._consecutive_failures}) "
                f"for {self._data_file}: {error}. Retrying in {self._sync_interval}s..."
            )

    async def stop(self) -> None:
        """
        Cancel the periodic task and write the final snapshot.

        Safe to call more than once; only the first call writes.

        Raises:
            SnapshotWriteError: If the final snapshot could not be written.
        """
        if self._state in (SnapshotState.CLOSING, SnapshotState.CLOSED):
            return

        self._state = SnapshotState.CLOSING
        try:
            if self._sync_task:
                self._sync_task.cancel()
                try:
                    await self._sync_task
                except asyncio.CancelledError:
                    pass
                self._sync_task = None
        finally:
            try:
                count = await self.sync()
            except Exception as e:
                logger.critical(f"Final snapshot to {self._data_file} failed: {e}")
                raise SnapshotWriteError(
                    f"Failed to write final snapshot to {self._data_file}. "
                    f"Data since the last successful snapshot may be lost: {e}"
                ) from e
            finally:
                self._state = SnapshotState.CLOSED

        logger.info(f"Final snapshot written: {count} keys -> {self._data_file}")
