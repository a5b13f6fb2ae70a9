"""
Request validation for keys and values.
"""

from typing import Any

from snapkv.api.status import StatusCode


class ValidationError(ValueError):
    """
    Raised when a request key or value is rejected.

    Attributes:
        status_code: Application status code for the response body.
    """

    def __init__(self, status_code: StatusCode, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


def validate_key(key: Any, max_key_length: int) -> str:
    """
    Check a request key.

    An empty string is a valid key here; only path lookups reject it.

    Args:
        key: Raw key from the request.
        max_key_length: Maximum length in characters.

    Returns:
        The key, unchanged.
    """
    if not isinstance(key, str):
        raise ValidationError(StatusCode.INVALID_KEY, "invalid key")

    if len(key) > max_key_length:
        raise ValidationError(
            StatusCode.KEY_TOO_LONG,
            f"err: key length exceeds maximum allowed length, max key length: {max_key_length}",
        )
    return key


def validate_value(value: Any, max_value_size: int) -> bytes:
    """
    Check a request value and encode it for storage.

    Args:
        value: Raw value from the request.
        max_value_size: Maximum size in UTF-8 bytes.

    Returns:
        The value encoded as UTF-8.
    """
    if not isinstance(value, str):
        raise ValidationError(StatusCode.INVALID_VALUE, "invalid value")

    encoded = value.encode("utf-8")
    if len(encoded) > max_value_size:
        raise ValidationError(
            StatusCode.VALUE_TOO_LARGE,
            f"err: value size exceeds maximum allowed size, max value size: {max_value_size}",
        )
    return encoded
