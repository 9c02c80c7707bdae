"""
GraphQL Cache Exceptions

Domain-specific exceptions for cache store and marshaling operations.
Serialization failures are recovered locally by the read-through engine;
every other store failure propagates with its context preserved.
"""

from typing import Optional, Any, Dict


class GraphQLCacheException(Exception):
    """Base exception for cache-related errors.

    All cache store adapters should raise this or its subclasses.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class CacheSerializationException(GraphQLCacheException, TypeError):
    """Raised when a store cannot serialize the value it was asked to write."""

    def __init__(
        self,
        message: str = "Cache value could not be serialized",
        key: Optional[str] = None,
        value_type: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if key:
            details["key"] = key
        if value_type:
            details["value_type"] = value_type
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="CACHE_SERIALIZATION_ERROR", details=details
        )
        if original_error:
            self.__cause__ = original_error


class CacheStoreException(GraphQLCacheException):
    """Raised when the cache store is unavailable or a command fails."""

    def __init__(
        self,
        message: str = "Cache store operation failed",
        operation: Optional[str] = None,
        key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if key:
            details["key"] = key
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="CACHE_STORE_ERROR", details=details
        )
        if original_error:
            self.__cause__ = original_error


class CacheConfigurationException(GraphQLCacheException):
    """Raised when cache configuration is invalid or incomplete."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key
        if config_value is not None:
            details["config_value"] = str(config_value)

        super().__init__(
            message=message, error_code="CACHE_CONFIGURATION_ERROR", details=details
        )
