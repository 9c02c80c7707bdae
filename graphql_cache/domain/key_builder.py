"""
Cache Key Builder

Builds deterministic cache keys from a resolution context:

    namespace:type:field:arguments:ObjectClass:object-id

Key construction never fails. An object without any identity attribute
gets a random token bound to its lifetime; objects that cannot carry one
(plain dicts, lists, slotted objects) produce a key marked not cacheable.
"""

import json
import uuid
import weakref
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

import structlog

from ..constants import KEY_SEPARATOR
from ..core.config import CacheConfig
from .shapes import type_name
from .value_objects import CacheKey, KeySource, ResolutionContext

logger = structlog.get_logger(__name__)

# Tried in order when the directive does not name an identifier.
IDENTITY_ATTRIBUTES = ("cache_key_with_version", "cache_key", "id")

# id(obj) -> token, dropped by a finalizer when obj is collected.
_runtime_tokens: Dict[int, str] = {}


def _value_of(obj: Any, attribute: str) -> Any:
    value = getattr(obj, attribute)
    return value() if callable(value) else value


def _identity_value(obj: Any, attribute: str) -> Any:
    if isinstance(obj, Mapping):
        value = obj.get(attribute)
        if value is not None:
            return value
    return _value_of(obj, attribute)


def runtime_identity(obj: Any) -> Optional[str]:
    """
    Token unique to obj for as long as it is alive.

    Unlike id(), a token is never handed to a later object. Returns None
    when obj cannot be weakly referenced.
    """
    marker = id(obj)
    token = _runtime_tokens.get(marker)
    if token is not None:
        return token
    try:
        weakref.finalize(obj, _runtime_tokens.pop, marker, None)
    except TypeError:
        return None
    token = _runtime_tokens[marker] = uuid.uuid4().hex
    return token


def _flatten(value: Any, tokens: List[str]) -> None:
    if value is None:
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _flatten(item, tokens)
    elif isinstance(value, Mapping):
        tokens.append(json.dumps(value, sort_keys=True, default=str))
    else:
        tokens.append(str(value))


class KeyBuilder:
    """Turns a ResolutionContext into a CacheKey."""

    def __init__(self, config: CacheConfig):
        self.config = config

    def build(self, context: ResolutionContext) -> CacheKey:
        clauses = [
            self.config.namespace,
            self.type_clause(context),
            self.field_clause(context),
            *self.arguments_clause(context),
        ]

        cacheable = True
        if context.has_parent:
            identifier = self.object_identifier(context)
            if identifier is None:
                cacheable = False
                logger.debug(
                    "Parent object has no stable identity",
                    type=context.parent_type_name,
                    field=context.field_name,
                    value_type=type_name(context.parent_object),
                )
            clauses.append(self.object_clause(context.parent_object, identifier))

        key = CacheKey(KEY_SEPARATOR.join(clauses), cacheable=cacheable)
        logger.debug("Built cache key", key=key.value, cacheable=cacheable)
        return key

    def type_clause(self, context: ResolutionContext) -> str:
        return context.parent_type_name

    def field_clause(self, context: ResolutionContext) -> str:
        return context.field_name

    def arguments_clause(self, context: ResolutionContext) -> List[str]:
        """Arguments flattened to [k1, v1, k2, v2, ...] in mapping order."""
        tokens: List[str] = []
        for name, value in context.arguments.items():
            _flatten(name, tokens)
            _flatten(value, tokens)
        return tokens

    def object_clause(self, obj: Any, identifier: Any) -> str:
        identifier = "" if identifier is None else identifier
        return f"{type_name(obj)}{KEY_SEPARATOR}{identifier}"

    def object_identifier(self, context: ResolutionContext) -> Any:
        obj = context.parent_object
        directive = context.directive

        try:
            if directive.key_source is KeySource.ATTRIBUTE:
                return _identity_value(obj, directive.key)
            if directive.key_source is KeySource.DERIVE:
                return directive.key(obj, context.execution_context)
        except Exception as e:
            logger.warning(
                "Cache key identifier failed, using object identity",
                type=context.parent_type_name,
                field=context.field_name,
                key_source=directive.key_source.value,
                error=str(e),
            )
            return self.guess_id(obj)

        if directive.key_source is KeySource.LITERAL:
            return directive.key
        return self.guess_id(obj)

    def guess_id(self, obj: Any) -> Any:
        """
        First identity attribute (or mapping entry) that is not None,
        else the object's runtime token, else None.
        """
        for attribute in IDENTITY_ATTRIBUTES:
            try:
                value = _identity_value(obj, attribute)
            except Exception:
                continue
            if value is not None:
                return value
        return runtime_identity(obj)
