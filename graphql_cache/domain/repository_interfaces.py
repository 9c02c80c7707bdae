"""
Cache Store Interfaces

Abstract store contract the read-through engine depends on.
Concrete stores live in the infrastructure package.
"""

from abc import ABC, abstractmethod
from typing import Any


class _Missing:
    """Marker returned by stores for absent keys.

    Distinct from None so that a cached None/False/"" is still a hit.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


class CacheStore(ABC):
    """
    Abstract key-value store for canonical cache values.

    Implementations perform their own serialization and raise
    CacheSerializationException for values they cannot encode.
    Locking and connection retries are the store's concern.
    """

    @abstractmethod
    def read(self, key: str) -> Any:
        """Return the stored value, or MISSING when the key is absent."""
        pass

    @abstractmethod
    def write(self, key: str, value: Any, ttl: int) -> None:
        """Store value under key for ttl seconds."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key; return True if something was deleted."""
        pass

    def is_serializable(self, value: Any) -> bool:
        """Trial round trip through the store's native encoding."""
        return True
