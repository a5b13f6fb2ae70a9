"""
Lock strategies for ConcurrentMap.
"""

import zlib
from collections.abc import Iterator
from contextlib import AbstractContextManager, ExitStack, contextmanager

from snapkv.interfaces.lock_strategy import LockStrategy
from snapkv.models.rwlock import ReadWriteLock


class GlobalLock(LockStrategy):
    """
    Whole-dataset reader/writer lock.

    Every operation contends on the same lock: readers run concurrently,
    each writer excludes everyone else.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()

    def read(self, key: str) -> AbstractContextManager[None]:
        return self._lock.read_locked()

    def write(self, key: str) -> AbstractContextManager[None]:
        return self._lock.write_locked()

    def read_all(self) -> AbstractContextManager[None]:
        return self._lock.read_locked()

    def write_all(self) -> AbstractContextManager[None]:
        return self._lock.write_locked()


class ShardedLock(LockStrategy):
    """
    Reader/writer locks sharded by CRC32 of the key.

    Writers on different shards proceed in parallel. Whole-dataset
    operations acquire every shard in index order, which keeps them
    deadlock-free against each other.
    """

    DEFAULT_SHARDS = 16

    def __init__(self, shards: int = DEFAULT_SHARDS) -> None:
        """
        Initialize sharded lock.

        Args:
            shards: Number of independent locks. Must be positive.
        """
        if shards <= 0:
            raise ValueError(f"shards must be positive, got {shards}")
        self._locks = [ReadWriteLock() for _ in range(shards)]

    @property
    def shards(self) -> int:
        return len(self._locks)

    def shard_for(self, key: str) -> int:
        """Index of the shard guarding key."""
        return zlib.crc32(key.encode("utf-8")) % len(self._locks)

    def read(self, key: str) -> AbstractContextManager[None]:
        return self._locks[self.shard_for(key)].read_locked()

    def write(self, key: str) -> AbstractContextManager[None]:
        return self._locks[self.shard_for(key)].write_locked()

    @contextmanager
    def read_all(self) -> Iterator[None]:
        with ExitStack() as stack:
            for lock in self._locks:
                stack.enter_context(lock.read_locked())
            yield

    @contextmanager
    def write_all(self) -> Iterator[None]:
        with ExitStack() as stack:
            for lock in self._locks:
                stack.enter_context(lock.write_locked())
            yield
