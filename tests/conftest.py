"""
Main pytest configuration for graphql-cache tests.

Shared fixtures wiring the caching components around an in-memory store
and a mock logger so tests can assert on hit/miss/skip diagnostics.
"""

from unittest.mock import MagicMock

import pytest

from graphql_cache.core.config import CacheConfig
from graphql_cache.domain.deconstructor import Deconstructor
from graphql_cache.domain.key_builder import KeyBuilder
from graphql_cache.domain.sanitizer import Sanitizer
from graphql_cache.infrastructure.memory_store import InMemoryCacheStore
from graphql_cache.services.marshal import Marshal


@pytest.fixture
def store():
    """Empty in-memory cache store."""
    return InMemoryCacheStore()


@pytest.fixture
def mock_logger():
    """Logger double recording debug/error calls."""
    return MagicMock()


@pytest.fixture
def config(store, mock_logger):
    """Runtime config with default namespace and expiry."""
    return CacheConfig(cache=store, logger=mock_logger, max_depth=8, strict_max_depth=4)


@pytest.fixture
def sanitizer(store):
    """Sanitizer using the store's trial round trip."""
    return Sanitizer(max_depth=8, serializable=store.is_serializable)


@pytest.fixture
def deconstructor(sanitizer):
    return Deconstructor(sanitizer)


@pytest.fixture
def key_builder(config):
    return KeyBuilder(config)


@pytest.fixture
def marshal(config, deconstructor, sanitizer):
    return Marshal(config, deconstructor, sanitizer)


@pytest.fixture
def debug_events(mock_logger):
    """Callable returning the event names passed to logger.debug so far."""

    def events() -> list:
        return [call.args[0] for call in mock_logger.debug.call_args_list]

    return events
