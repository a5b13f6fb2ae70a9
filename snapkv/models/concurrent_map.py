"""
ConcurrentMap - In-memory key-value map guarded by a lock strategy.
"""

from collections.abc import Iterator, Mapping

from snapkv.interfaces.lock_strategy import LockStrategy
from snapkv.models.locks import GlobalLock


class ConcurrentMap:
    """
    Thread-safe mapping from string keys to byte values.

    Supports:
    - O(1) set, get, delete under the configured lock strategy
    - Consistent point-in-time copies for snapshotting
    - Atomic bulk replacement (seeding)

    Reads take a shared lock, writes an exclusive one. No operation
    performs I/O or blocks beyond a single dict mutation.
    """

    def __init__(self, lock: LockStrategy | None = None) -> None:
        """
        Initialize ConcurrentMap.

        Args:
            lock: Lock granularity to use. Defaults to a single
                  whole-dataset reader/writer lock.
        """
        self._lock = lock if lock is not None else GlobalLock()
        self._data: dict[str, bytes] = {}

    @property
    def lock(self) -> LockStrategy:
        return self._lock

    def set(self, key: str, value: bytes) -> bool:
        """
        Insert or update a key-value pair.

        Args:
            key: The key to insert/update.
            value: The bytes to store.

        Returns:
            True (last write wins, never fails).
        """
        if not isinstance(value, bytes):
            raise TypeError(f"Expected bytes, got {type(value).__name__}")

        with self._lock.write(key):
            self._data[key] = value
        return True

    def get(self, key: str) -> tuple[bytes | None, bool]:
        """
        Retrieve value by key.

        Args:
            key: The key to look up.

        Returns:
            (value, True) if present, (None, False) otherwise.
        """
        with self._lock.read(key):
            value = self._data.get(key)
        if value is None:
            return None, False
        return value, True

    def delete(self, key: str) -> bool:
        """
        Remove a key if present.

        Args:
            key: The key to remove.

        Returns:
            True, whether or not the key existed.
        """
        with self._lock.write(key):
            self._data.pop(key, None)
        return True

    def snapshot(self) -> dict[str, bytes]:
        """Copy of the whole dataset taken under the shared lock."""
        with self._lock.read_all():
            return dict(self._data)

    def seed(self, data: Mapping[str, bytes]) -> None:
        """
        Replace the entire dataset atomically.

        Bypasses persistence; used for startup hydration and to
        pre-populate the map in tests and benchmarks.

        Args:
            data: New contents. Copied, never aliased.
        """
        for key, value in data.items():
            if not isinstance(value, bytes):
                raise TypeError(f"Expected bytes for {key}, got {type(value).__name__}")

        replacement = dict(data)
        with self._lock.write_all():
            self._data = replacement

    def size(self) -> int:
        with self._lock.read_all():
            return len(self._data)

    def __contains__(self, key: str) -> bool:
        with self._lock.read(key):
            return key in self._data

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[tuple[str, bytes]]:
        """Iterate over a point-in-time copy of all entries."""
        return iter(self.snapshot().items())
