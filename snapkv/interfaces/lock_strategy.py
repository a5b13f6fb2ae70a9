"""
LockStrategy abstract base class for map lock granularity.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager


class LockStrategy(ABC):
    """
    Abstract base class deciding which lock guards a key.

    Single-key operations lock only what covers their key; whole-dataset
    operations (snapshot copies, bulk seeding) lock everything.

    Implementations:
    - GlobalLock: one reader/writer lock for the whole dataset
    - ShardedLock: reader/writer locks sharded by key hash
    """

    @abstractmethod
    def read(self, key: str) -> AbstractContextManager[None]:
        """
        Shared lock covering a single key.

        Args:
            key: The key about to be read.
        """
        pass

    @abstractmethod
    def write(self, key: str) -> AbstractContextManager[None]:
        """
        Exclusive lock covering a single key.

        Args:
            key: The key about to be mutated.
        """
        pass

    @abstractmethod
    def read_all(self) -> AbstractContextManager[None]:
        """Shared lock covering every key (consistent point-in-time reads)."""
        pass

    @abstractmethod
    def write_all(self) -> AbstractContextManager[None]:
        """Exclusive lock covering every key."""
        pass
