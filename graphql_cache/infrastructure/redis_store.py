"""
Redis Cache Store

Redis-backed store writing JSON payloads with SETEX. Connection handling
and retries belong to the redis-py client; command failures surface as
CacheStoreException with the original error chained.
"""

import time
from typing import Any, Optional

import redis
from redis.exceptions import RedisError
import structlog
from opentelemetry import trace

from ..core.exceptions import CacheStoreException
from ..domain.repository_interfaces import MISSING, CacheStore
from .serializer import JsonSerializer, json_serializer

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


class RedisCacheStore(CacheStore):
    """Cache store over a synchronous redis-py client."""

    def __init__(
        self,
        client: redis.Redis,
        serializer: Optional[JsonSerializer] = None,
    ):
        self.client = client
        self.serializer = serializer or json_serializer

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisCacheStore":
        """Create a store from a redis:// URL."""
        return cls(redis.Redis.from_url(url, **kwargs))

    def read(self, key: str) -> Any:
        start_time = time.time()
        with tracer.start_as_current_span("redis_store.read") as span:
            span.set_attribute("cache.key", key)
            try:
                payload = self.client.get(key)
            except RedisError as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                logger.exception("Failed to read cache entry", key=key)
                raise CacheStoreException(
                    f"Failed to read cache entry: {e}",
                    operation="get",
                    key=key,
                    original_error=e,
                ) from e

            logger.debug(
                "Redis read",
                key=key,
                found=payload is not None,
                execution_time_ms=(time.time() - start_time) * 1000,
            )
            if payload is None:
                return MISSING
            return self.serializer.loads(payload)

    def write(self, key: str, value: Any, ttl: int) -> None:
        payload = self.serializer.dumps(value, key=key)
        with tracer.start_as_current_span("redis_store.write") as span:
            span.set_attribute("cache.key", key)
            span.set_attribute("cache.ttl", int(ttl))
            try:
                self.client.setex(key, int(ttl), payload)
            except RedisError as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                logger.exception("Failed to write cache entry", key=key)
                raise CacheStoreException(
                    f"Failed to write cache entry: {e}",
                    operation="setex",
                    key=key,
                    original_error=e,
                ) from e

    def delete(self, key: str) -> bool:
        try:
            return bool(self.client.delete(key))
        except RedisError as e:
            raise CacheStoreException(
                f"Failed to delete cache entry: {e}",
                operation="delete",
                key=key,
                original_error=e,
            ) from e

    def is_serializable(self, value: Any) -> bool:
        return self.serializer.is_serializable(value)
