"""
snapkv Configuration Settings

Settings are read from environment variables; unset or zero values fall
back to the defaults below.
"""

import math
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_ADDRESS = "0.0.0.0:8000"
DEFAULT_MAX_KEY_LENGTH = 256
DEFAULT_MAX_VALUE_SIZE = 1024 * 1024  # 1 MiB
DEFAULT_SYNC_INTERVAL = "1m"
DEFAULT_DATA_FILE = "data/store.json"
DEFAULT_LOG_LEVEL = "INFO"

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """
    Parse a duration into seconds.

    Accepts Go-style durations ("100ms", "1m", "1h30m", "2.5s") or a
    plain number of seconds ("30", "0.5").

    Raises:
        ValueError: If value is not a valid duration.
    """
    text = value.strip()
    if not text:
        raise ValueError("duration cannot be empty")

    try:
        return float(text)
    except ValueError:
        pass

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        number, unit = match.groups()
        total += float(number) * _DURATION_UNITS[unit]
        pos = match.end()
    return total


def _int_env(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        parsed = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if parsed < 0:
        raise ValueError(f"{name} must be >= 0, got {parsed}")
    return parsed or default


@dataclass
class Settings:
    """Server configuration settings."""

    # Network settings
    address: str = DEFAULT_ADDRESS

    # Request validation
    max_key_length: int = DEFAULT_MAX_KEY_LENGTH  # characters
    max_value_size: int = DEFAULT_MAX_VALUE_SIZE  # bytes

    # Persistence
    sync_interval: float = 60.0  # seconds
    data_file: str = DEFAULT_DATA_FILE

    # Logging settings
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def host(self) -> str:
        host, _, _ = self.address.rpartition(":")
        return host or "0.0.0.0"

    @property
    def port(self) -> int:
        _, _, port = self.address.rpartition(":")
        return int(port)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Load settings from the environment.

        Args:
            environ: Variables to read (default: os.environ).

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ

        address = env.get("SERVER_ADDRESS", "").strip() or DEFAULT_ADDRESS
        if ":" not in address:
            raise ValueError(f"SERVER_ADDRESS must be host:port, got {address!r}")
        _, _, port = address.rpartition(":")
        if not port.isdigit():
            raise ValueError(f"SERVER_ADDRESS port must be numeric, got {port!r}")

        sync_interval = parse_duration(env.get("SYNC_INTERVAL", "") or DEFAULT_SYNC_INTERVAL)
        if not math.isfinite(sync_interval) or sync_interval <= 0:
            raise ValueError(f"SYNC_INTERVAL must be positive, got {sync_interval}s")

        return cls(
            address=address,
            max_key_length=_int_env(env, "MAX_KEY_LENGTH", DEFAULT_MAX_KEY_LENGTH),
            max_value_size=_int_env(env, "MAX_VALUE_SIZE", DEFAULT_MAX_VALUE_SIZE),
            sync_interval=sync_interval,
            data_file=env.get("DATA_FILE", "").strip() or DEFAULT_DATA_FILE,
            log_level=(env.get("LOG_LEVEL", "").strip() or DEFAULT_LOG_LEVEL).upper(),
        )
