"""
Cache Value Objects

Immutable value objects describing one field resolution and the identity
of its cached result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional


class KeySource(str, Enum):
    """Where the parent object's identifier comes from."""

    NONE = "none"
    ATTRIBUTE = "attribute"
    DERIVE = "derive"
    LITERAL = "literal"


@dataclass(frozen=True)
class CacheKey:
    """
    Immutable cache key value object.

    Produced by KeyBuilder; the string form is what the store sees.
    `cacheable` is False when the parent object has no stable identity,
    in which case nothing may be read or written under the key.
    """

    value: str
    cacheable: bool = True

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("Cache key cannot be empty")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TTL:
    """Time To Live value object for cache expiration."""

    seconds: int

    def __post_init__(self) -> None:
        """Validate TTL value."""
        if self.seconds <= 0:
            raise ValueError("TTL must be positive")
        if self.seconds > 86400 * 365:  # Max 1 year
            raise ValueError("TTL too large (max 1 year)")

    @classmethod
    def minutes(cls, minutes: int) -> "TTL":
        """Create TTL from minutes."""
        return cls(minutes * 60)

    @classmethod
    def hours(cls, hours: int) -> "TTL":
        """Create TTL from hours."""
        return cls(hours * 3600)

    def __int__(self) -> int:
        return self.seconds

    def __str__(self) -> str:
        return f"{self.seconds}s"


@dataclass(frozen=True)
class CacheDirective:
    """
    Per-field cache settings, as declared on the field definition.

    `key` holds the attribute name, derive function or literal named by
    `key_source`. `expiry` overrides the configured default when set.
    """

    enabled: bool = True
    key_source: KeySource = KeySource.NONE
    key: Any = None
    expiry: Optional[int] = None

    def __post_init__(self) -> None:
        if self.expiry is not None and self.expiry <= 0:
            raise ValueError("Cache directive expiry must be positive")

    @classmethod
    def disabled(cls) -> "CacheDirective":
        return cls(enabled=False)

    @classmethod
    def parse(cls, config: Any) -> "CacheDirective":
        """
        Build a directive from a field's `cache` extension value.

        Accepts `True`/`False`, an existing directive, or a mapping with
        optional `key`, `key_value` and `expiry` entries. A string `key` names
        an attribute, a callable `key` derives the identifier, any other `key`
        (or any `key_value`) is used literally.
        """
        if isinstance(config, CacheDirective):
            return config
        if not config:
            return cls.disabled()
        if not isinstance(config, Mapping):
            return cls()

        expiry = config.get("expiry")
        if isinstance(expiry, TTL):
            expiry = expiry.seconds

        if "key_value" in config:
            return cls(
                key_source=KeySource.LITERAL, key=config["key_value"], expiry=expiry
            )

        key = config.get("key")
        if key is None:
            source = KeySource.NONE
        elif isinstance(key, str):
            source = KeySource.ATTRIBUTE
        elif callable(key):
            source = KeySource.DERIVE
        else:
            source = KeySource.LITERAL

        return cls(key_source=source, key=key, expiry=expiry)


@dataclass(frozen=True)
class ResolutionContext:
    """
    Everything known about one field resolution attempt.

    Built once by the resolver glue and never mutated afterwards.
    """

    parent_type_name: str
    field_name: str
    parent_object: Any = None
    arguments: Mapping[str, Any] = field(default_factory=dict)
    directive: CacheDirective = field(default_factory=CacheDirective)
    execution_context: Any = None

    @property
    def has_parent(self) -> bool:
        return self.parent_object is not None
