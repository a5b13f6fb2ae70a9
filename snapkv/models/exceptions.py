"""
Custom exceptions for the key-value engine.
"""


class SnapshotError(Exception):
    """Base class for snapshot persistence failures."""


class SnapshotLoadError(SnapshotError):
    """
    Raised when an existing snapshot file cannot be read at startup.

    The engine refuses to start with indeterminate state.
    """


class SnapshotCorruptionError(SnapshotLoadError):
    """
    Raised when a snapshot file exists but its content cannot be decoded.
    """

    def __init__(self, file_path: str, reason: str):
        """
        Initialize corruption error.

        Args:
            file_path: Path of the corrupt snapshot.
            reason: What was wrong with the content.
        """
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Snapshot corruption detected in {file_path}: {reason}")


class SnapshotWriteError(SnapshotError):
    """Raised when the final snapshot write on close fails."""


class EngineClosedError(RuntimeError):
    """Raised when an operation is attempted on a closed engine."""
