"""
HTTP-facing helpers: response status codes and request validation.
"""

from snapkv.api.status import StatusCode
from snapkv.api.validation import ValidationError, validate_key, validate_value

__all__ = ["StatusCode", "ValidationError", "validate_key", "validate_value"]
