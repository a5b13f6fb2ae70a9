"""
Snapshot - Full-dataset serialization to a single file.
"""

import base64
import binascii
import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from snapkv.models.exceptions import SnapshotCorruptionError, SnapshotLoadError

logger = logging.getLogger(__name__)


class Snapshot:
    """
    Reads and writes the on-disk snapshot.

    File format (UTF-8 JSON, no header or version):
        {"store": {"<key>": "<base64 value>", ...}}

    Writes go to "<path>.tmp" first and are renamed over the target
    only after an fsync, so a reader never sees a half-written file.
    """

    TEMP_SUFFIX = ".tmp"

    @staticmethod
    def temp_path(file_path: str) -> str:
        return file_path + Snapshot.TEMP_SUFFIX

    @staticmethod
    def encode(data: Mapping[str, bytes]) -> bytes:
        """Serialize a key -> bytes mapping to the snapshot format."""
        store = {key: base64.b64encode(value).decode("ascii") for key, value in data.items()}
        return json.dumps({"store": store}, separators=(",", ":")).encode("utf-8")

    @staticmethod
    def decode(raw: bytes, file_path: str = "<memory>") -> dict[str, bytes]:
        """
        Deserialize snapshot bytes.

        Args:
            raw: File content.
            file_path: Used in error messages only.

        Raises:
            SnapshotCorruptionError: If the content is not a valid snapshot.
        """
        if not raw:
            raise SnapshotCorruptionError(file_path, "file is empty")

        try:
            document = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SnapshotCorruptionError(file_path, f"invalid JSON: {e}") from e

        if not isinstance(document, dict) or not isinstance(document.get("store"), dict):
            raise SnapshotCorruptionError(file_path, "missing 'store' object")

        data: dict[str, bytes] = {}
        for key, encoded in document["store"].items():
            if not isinstance(encoded, str):
                raise SnapshotCorruptionError(file_path, f"value for {key!r} is not a string")
            try:
                data[key] = base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError) as e:
                raise SnapshotCorruptionError(
                    file_path, f"value for {key!r} is not valid base64"
                ) from e

        return data

    @staticmethod
    def load(file_path: str) -> dict[str, bytes] | None:
        """
        Read a snapshot file.

        Args:
            file_path: Snapshot location.

        Returns:
            The stored mapping, or None if the file does not exist.

        Raises:
            SnapshotLoadError: If the file exists but cannot be read.
            SnapshotCorruptionError: If the file content is invalid.
        """
        try:
            with open(file_path, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise SnapshotLoadError(f"Cannot read snapshot {file_path}: {e}") from e

        return Snapshot.decode(raw, file_path)

    @staticmethod
    def write(file_path: str, data: Mapping[str, bytes]) -> int:
        """
        Atomically replace the snapshot file with data.

        Args:
            file_path: Snapshot location.
            data: Complete dataset to persist.

        Returns:
            Number of bytes written.
        """
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        temp_path = Snapshot.temp_path(file_path)
        payload = Snapshot.encode(data)

        try:
            with open(temp_path, "wb") as f:
                f.write(payload)
                f.flush()
                # Use fdatasync if available (Linux), fallback to fsync (macOS/Windows)
                _sync_data = getattr(os, "fdatasync", os.fsync)
                _sync_data(f.fileno())
            os.replace(temp_path, file_path)
        except BaseException:
            try:
                os.remove(temp_path)
            except OSError:
                pass  # Best effort cleanup
            raise

        return len(payload)

    @staticmethod
    def cleanup_temp(file_path: str) -> bool:
        """
        Remove an orphaned temp file from an interrupted write.

        The previous complete snapshot (if any) is still intact.

        Returns:
            True if a temp file was removed.
        """
        temp_path = Snapshot.temp_path(file_path)
        if not os.path.exists(temp_path):
            return False

        try:
            os.remove(temp_path)
        except OSError as e:
            logger.warning(f"Failed to remove orphaned snapshot temp file {temp_path}: {e}")
            return False

        logger.info(f"Removed orphaned snapshot temp file {temp_path}")
        return True
