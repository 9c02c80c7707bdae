"""
Unit tests for cache settings and runtime configuration.
"""

from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from graphql_cache.core.config import CacheConfig, CacheSettings, get_settings
from graphql_cache.core.exceptions import CacheConfigurationException
from graphql_cache.infrastructure.memory_store import InMemoryCacheStore


class TestCacheSettings:
    """Test environment-backed settings."""

    def test_defaults(self):
        """Test default values and their aliases."""
        settings = CacheSettings()

        assert settings.namespace == "graphql"
        assert settings.expiry == 5400
        assert settings.max_depth == 16
        assert settings.strict_max_depth == 8
        assert settings.LOG_LEVEL == "INFO"

    def test_environment_overrides(self, monkeypatch):
        """Test GRAPHQL_CACHE_ prefixed variables are read."""
        monkeypatch.setenv("GRAPHQL_CACHE_NAMESPACE", "api")
        monkeypatch.setenv("GRAPHQL_CACHE_EXPIRY", "60")
        monkeypatch.setenv("GRAPHQL_CACHE_REDIS_URL", "redis://cache:6379/0")

        settings = CacheSettings()

        assert settings.namespace == "api"
        assert settings.expiry == 60
        assert settings.redis_url == "redis://cache:6379/0"

    def test_log_level_normalized(self):
        """Test log levels are upper-cased."""
        assert CacheSettings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_invalid_log_level(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            CacheSettings(LOG_LEVEL="LOUD")

    def test_invalid_expiry(self):
        """Test non-positive expiry is rejected."""
        with pytest.raises(ValidationError):
            CacheSettings(EXPIRY=0)

    def test_strict_depth_cannot_exceed_max_depth(self):
        """Test the re-clean depth is bounded by the main depth."""
        with pytest.raises(ValidationError):
            CacheSettings(MAX_DEPTH=4, STRICT_MAX_DEPTH=5)

    def test_get_settings_cached(self):
        """Test settings are created once per process."""
        assert get_settings() is get_settings()


class TestCacheConfig:
    """Test runtime configuration."""

    def test_defaults(self):
        """Test a structlog logger is supplied when none is given."""
        config = CacheConfig()

        assert config.namespace == "graphql"
        assert config.expiry == 5400
        assert config.cache is None
        assert config.logger is not None

    @pytest.mark.parametrize(
        "kwargs,config_key",
        [
            ({"expiry": 0}, "expiry"),
            ({"max_depth": 0}, "max_depth"),
            ({"max_depth": 4, "strict_max_depth": 5}, "strict_max_depth"),
        ],
    )
    def test_validation(self, kwargs, config_key):
        """Test invalid values raise a configuration error naming the field."""
        with pytest.raises(CacheConfigurationException) as exc_info:
            CacheConfig(**kwargs)

        assert exc_info.value.error_code == "CACHE_CONFIGURATION_ERROR"
        assert exc_info.value.details["config_key"] == config_key

    def test_from_settings(self):
        """Test settings values flow into the runtime config."""
        store = InMemoryCacheStore()
        logger = MagicMock()
        settings = CacheSettings(NAMESPACE="svc", EXPIRY=90)

        config = CacheConfig.from_settings(settings, cache=store, logger=logger)

        assert config.namespace == "svc"
        assert config.expiry == 90
        assert config.cache is store
        assert config.logger is logger

    def test_with_overrides(self):
        """Test overrides produce a modified copy."""
        config = CacheConfig()
        changed = config.with_overrides(namespace="api")

        assert changed.namespace == "api"
        assert config.namespace == "graphql"

    def test_require_cache(self):
        """Test a missing store raises, a present one is returned."""
        with pytest.raises(CacheConfigurationException):
            CacheConfig().require_cache()

        store = InMemoryCacheStore()
        assert CacheConfig(cache=store).require_cache() is store
