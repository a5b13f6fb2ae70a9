"""
Application status codes carried in every JSON response body.
"""

from enum import IntEnum


class StatusCode(IntEnum):
    """Result of a key-value API call, independent of the HTTP status."""

    SUCCESS = 1000
    KEY_NOT_FOUND = 1001
    KEY_EXISTS = 1002
    INVALID_KEY = 1003
    INVALID_VALUE = 1004
    STORAGE_ERROR = 1005
    INVALID_JSON = 1006
    KEY_TOO_LONG = 1007
    VALUE_TOO_LARGE = 1008
