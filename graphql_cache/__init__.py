"""
GraphQL Field Cache

Read-through caching for graphql-core field resolvers.

This module provides:
- GraphQLCache: configured entry point exposing middleware() and read()
- cached_field: GraphQLField factory carrying a cache directive
- KeyBuilder, Sanitizer, Deconstructor, Marshal: the caching core
- InMemoryCacheStore / RedisCacheStore: bundled cache stores
"""

from .constants import APP_VERSION
from .core.config import CacheConfig, CacheSettings, get_settings
from .core.exceptions import (
    GraphQLCacheException,
    CacheSerializationException,
    CacheStoreException,
    CacheConfigurationException,
)
from .domain.deconstructor import UNCACHEABLE, Deconstructor
from .domain.deferred import Deferred
from .domain.key_builder import KeyBuilder
from .domain.repository_interfaces import MISSING, CacheStore
from .domain.sanitizer import Sanitizer
from .domain.shapes import ValueShape, classify
from .domain.value_objects import (
    CacheDirective,
    CacheKey,
    KeySource,
    ResolutionContext,
    TTL,
)
from .infrastructure.memory_store import InMemoryCacheStore
from .infrastructure.redis_store import RedisCacheStore
from .services.cache_service import GraphQLCache
from .services.marshal import Marshal
from .services.resolver import CacheMiddleware, CacheResolver, cached_field

__version__ = APP_VERSION

configure = GraphQLCache.configure

__all__ = [
    # Entry points
    "GraphQLCache",
    "configure",
    "cached_field",
    "CacheMiddleware",
    "CacheResolver",
    # Configuration
    "CacheConfig",
    "CacheSettings",
    "get_settings",
    # Core
    "KeyBuilder",
    "Sanitizer",
    "Deconstructor",
    "Marshal",
    "Deferred",
    "ValueShape",
    "classify",
    # Value objects
    "CacheDirective",
    "CacheKey",
    "KeySource",
    "ResolutionContext",
    "TTL",
    # Stores
    "CacheStore",
    "MISSING",
    "UNCACHEABLE",
    "InMemoryCacheStore",
    "RedisCacheStore",
    # Exceptions
    "GraphQLCacheException",
    "CacheSerializationException",
    "CacheStoreException",
    "CacheConfigurationException",
]
