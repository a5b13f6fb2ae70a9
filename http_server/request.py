import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Request:
    method: str
    path: str
    headers: dict[str, str]
    query_params: dict[str, list]
    body: bytes
    version: str
    path_params: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self._json_valid = True
        try:
            payload = json.loads(self.body) if self.body else None
        except (json.JSONDecodeError, UnicodeDecodeError):
            payload = None
            self._json_valid = False

        if payload is not None and not isinstance(payload, dict):
            payload = None
            self._json_valid = False

        self._dict = payload

    @property
    def json_valid(self) -> bool:
        """False when a body was sent but is not a JSON object."""
        return self._json_valid

    @property
    def payload(self) -> dict[str, Any] | None:
        return self._dict

    def get(self, field: str, default: Any = None) -> Any:
        if field is None:
            raise ValueError("Field cannot be None")

        if len(field) == 0:
            raise ValueError("Field cannot be empty")

        if field in self.path_params:
            return self.path_params[field]

        if field in self.query_params and self.query_params[field]:
            return self.query_params[field][0]

        if self._dict and field in self._dict:
            return self._dict[field]

        return default
