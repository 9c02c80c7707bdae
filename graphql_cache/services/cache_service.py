"""
GraphQL Cache Service

High-level entry point that wires configuration, the cache store and the
key/sanitize/deconstruct/marshal components together.
"""

from typing import Any, Callable, Optional, Union

import structlog

from ..core.config import CacheConfig, CacheSettings, get_settings
from ..domain.deconstructor import Deconstructor
from ..domain.key_builder import KeyBuilder
from ..domain.repository_interfaces import CacheStore
from ..domain.sanitizer import Sanitizer
from ..domain.value_objects import CacheKey, ResolutionContext
from ..infrastructure.redis_store import RedisCacheStore
from .marshal import Marshal
from .resolver import CacheMiddleware, CacheResolver

logger = structlog.get_logger(__name__)


class GraphQLCache:
    """
    Field cache for a graphql-core schema.

    Example:
        cache = GraphQLCache.configure(cache=InMemoryCacheStore(), expiry=600)
        result = await graphql(schema, query, middleware=[cache.middleware()])
    """

    def __init__(self, config: CacheConfig):
        self.config = config
        store = config.cache
        self.sanitizer = Sanitizer(
            max_depth=config.max_depth,
            serializable=store.is_serializable if store is not None else None,
        )
        self.deconstructor = Deconstructor(self.sanitizer)
        self.key_builder = KeyBuilder(config)
        self.marshal = Marshal(config, self.deconstructor, self.sanitizer)
        self.resolver = CacheResolver(self.key_builder, self.marshal)

    @classmethod
    def configure(
        cls,
        cache: Optional[CacheStore] = None,
        settings: Optional[CacheSettings] = None,
        **overrides: Any,
    ) -> "GraphQLCache":
        """
        Build a cache from environment settings plus explicit overrides.

        Args:
            cache: Store instance; a Redis store is created from
                GRAPHQL_CACHE_REDIS_URL when omitted
            settings: Settings to use instead of the process-wide ones
            **overrides: CacheConfig fields (namespace, expiry, logger, ...)
        """
        settings = settings or get_settings()
        if cache is None and settings.redis_url:
            cache = RedisCacheStore.from_url(settings.redis_url)

        config = CacheConfig.from_settings(settings, cache=cache)
        if overrides:
            config = config.with_overrides(**overrides)

        logger.info(
            "GraphQL cache configured",
            namespace=config.namespace,
            expiry=config.expiry,
            store=type(config.cache).__name__ if config.cache else None,
        )
        return cls(config)

    def middleware(self) -> CacheMiddleware:
        return CacheMiddleware(self.resolver)

    def key_for(self, context: ResolutionContext) -> CacheKey:
        return self.key_builder.build(context)

    def read(
        self,
        key: Union[str, CacheKey],
        thunk: Callable[[], Any],
        directive: Any = None,
        force: bool = False,
    ) -> Any:
        return self.marshal.read(key, directive, force=force, thunk=thunk)

    def invalidate(self, key: Union[str, CacheKey]) -> bool:
        return self.config.require_cache().delete(str(key))
