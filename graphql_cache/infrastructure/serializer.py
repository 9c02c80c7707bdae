"""
JSON Serializer

Native encoding used by the bundled stores. Values are persisted as JSON
text, so only canonical values survive a write.
"""

import json
from typing import Any

from ..core.exceptions import CacheSerializationException


class JsonSerializer:
    """Strict JSON codec; unlike `json.dumps(default=str)` it rejects unknown types."""

    def dumps(self, value: Any, key: str = None) -> str:
        try:
            return json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise CacheSerializationException(
                message=f"Value is not JSON serializable: {e}",
                key=key,
                value_type=type(value).__name__,
                original_error=e,
            ) from e

    def loads(self, payload: Any) -> Any:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        return json.loads(payload)

    def is_serializable(self, value: Any) -> bool:
        try:
            json.dumps(value)
        except (TypeError, ValueError, RecursionError):
            return False
        return True


json_serializer = JsonSerializer()
