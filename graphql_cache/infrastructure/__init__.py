"""
Cache Store Infrastructure

Concrete CacheStore implementations and their JSON serializer.
"""

from .memory_store import InMemoryCacheStore
from .redis_store import RedisCacheStore
from .serializer import JsonSerializer, json_serializer

__all__ = [
    "InMemoryCacheStore",
    "RedisCacheStore",
    "JsonSerializer",
    "json_serializer",
]
