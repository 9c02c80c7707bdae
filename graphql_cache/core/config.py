"""
GraphQL Cache Configuration

Configuration management with environment variable support.
Settings are read once per process; the runtime CacheConfig built from them
is passed explicitly to the key builder and the read-through engine.
"""

import logging
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any, Optional

import structlog
from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    DEFAULT_EXPIRY_SECONDS,
    DEFAULT_MAX_DEPTH,
    DEFAULT_NAMESPACE,
    DEFAULT_STRICT_MAX_DEPTH,
)
from ..domain.repository_interfaces import CacheStore
from .exceptions import CacheConfigurationException

# Load environment variables from .env file
load_dotenv()


class CacheSettings(BaseSettings):
    """Process-wide cache settings with validation and defaults."""

    model_config = SettingsConfigDict(
        env_prefix="GRAPHQL_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    NAMESPACE: str = Field(
        default=DEFAULT_NAMESPACE, description="Prefix of every cache key"
    )
    EXPIRY: int = Field(
        default=DEFAULT_EXPIRY_SECONDS,
        ge=1,
        le=86400 * 365,
        description="Default cache entry expiry in seconds",
    )
    MAX_DEPTH: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=1,
        le=256,
        description="Maximum nesting depth kept when sanitizing values",
    )
    STRICT_MAX_DEPTH: int = Field(
        default=DEFAULT_STRICT_MAX_DEPTH,
        ge=1,
        le=256,
        description="Nesting depth used by the re-clean pass after a failed write",
    )
    REDIS_URL: Optional[str] = Field(
        default=None, description="Redis URL used when no store is supplied"
    )
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()

    @model_validator(mode="after")
    def validate_depths(self) -> "CacheSettings":
        """The re-clean pass must never be more permissive than the first pass."""
        if self.STRICT_MAX_DEPTH > self.MAX_DEPTH:
            raise ValueError("STRICT_MAX_DEPTH cannot exceed MAX_DEPTH")
        return self

    @property
    def namespace(self) -> str:
        """Alias for NAMESPACE."""
        return self.NAMESPACE

    @property
    def expiry(self) -> int:
        """Alias for EXPIRY."""
        return self.EXPIRY

    @property
    def max_depth(self) -> int:
        """Alias for MAX_DEPTH."""
        return self.MAX_DEPTH

    @property
    def strict_max_depth(self) -> int:
        """Alias for STRICT_MAX_DEPTH."""
        return self.STRICT_MAX_DEPTH

    @property
    def redis_url(self) -> Optional[str]:
        """Alias for REDIS_URL."""
        return self.REDIS_URL


@lru_cache()
def get_settings() -> CacheSettings:
    """Get cached settings instance."""
    return CacheSettings()


def build_logger(level: str = "INFO") -> Any:
    """Create the structlog logger that receives hit/miss/skip diagnostics."""
    return structlog.wrap_logger(
        None,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        logger_name="graphql_cache",
    )


@dataclass(frozen=True)
class CacheConfig:
    """
    Runtime cache configuration.

    Constructed once at startup and handed by reference to the components
    that need it. Use `with_overrides` to derive a modified copy.
    """

    namespace: str = DEFAULT_NAMESPACE
    expiry: int = DEFAULT_EXPIRY_SECONDS
    cache: Optional[CacheStore] = None
    logger: Any = None
    max_depth: int = DEFAULT_MAX_DEPTH
    strict_max_depth: int = DEFAULT_STRICT_MAX_DEPTH

    def __post_init__(self) -> None:
        if self.expiry <= 0:
            raise CacheConfigurationException(
                "Cache expiry must be positive", "expiry", self.expiry
            )
        if self.max_depth <= 0:
            raise CacheConfigurationException(
                "Sanitizer max depth must be positive", "max_depth", self.max_depth
            )
        if not 0 < self.strict_max_depth <= self.max_depth:
            raise CacheConfigurationException(
                "Strict max depth must be between 1 and max_depth",
                "strict_max_depth",
                self.strict_max_depth,
            )
        if self.logger is None:
            object.__setattr__(self, "logger", structlog.get_logger("graphql_cache"))

    @classmethod
    def from_settings(
        cls,
        settings: Optional[CacheSettings] = None,
        cache: Optional[CacheStore] = None,
        logger: Any = None,
    ) -> "CacheConfig":
        """Build a runtime config from environment-backed settings."""
        settings = settings or get_settings()
        return cls(
            namespace=settings.namespace,
            expiry=settings.expiry,
            cache=cache,
            logger=logger or build_logger(settings.LOG_LEVEL),
            max_depth=settings.max_depth,
            strict_max_depth=settings.strict_max_depth,
        )

    def with_overrides(self, **changes: Any) -> "CacheConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def require_cache(self) -> CacheStore:
        """Return the configured store or fail loudly when none was wired."""
        if self.cache is None:
            raise CacheConfigurationException(
                "No cache store configured; pass cache= to configure()",
                config_key="cache",
            )
        return self.cache
