"""
In-Memory Cache Store

Process-local store with per-entry expiry. Values are held as JSON text so
the store rejects exactly what a networked store would reject.
"""

import time
from typing import Any, Callable, Dict, Optional, Tuple

import structlog

from ..domain.repository_interfaces import MISSING, CacheStore
from .serializer import JsonSerializer, json_serializer

logger = structlog.get_logger(__name__)


class InMemoryCacheStore(CacheStore):
    """Dict-backed store for tests and single-process deployments."""

    def __init__(
        self,
        serializer: Optional[JsonSerializer] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.serializer = serializer or json_serializer
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    def read(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return MISSING

        payload, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            logger.debug("Expired cache entry evicted", key=key)
            return MISSING

        return self.serializer.loads(payload)

    def write(self, key: str, value: Any, ttl: int) -> None:
        payload = self.serializer.dumps(value, key=key)
        now = self._clock()
        self.evict_expired(now)
        self._entries[key] = (payload, now + int(ttl))

    def evict_expired(self, now: Optional[float] = None) -> int:
        """Drop every expired entry; return how many were removed."""
        now = self._clock() if now is None else now
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Expired cache entries evicted", count=len(expired))
        return len(expired)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def is_serializable(self, value: Any) -> bool:
        return self.serializer.is_serializable(value)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.read(key) is not MISSING

    def __len__(self) -> int:
        return len(self._entries)
