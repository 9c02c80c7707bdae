"""
Value Sanitizer

Recursively reduces arbitrary resolved values to canonical cache values:
primitives, lists, string-keyed dicts and the opaque summary record
`{class, id?, name|title?, updated_at|created_at?}`.

Cleaning is bounded by a maximum depth and by cycle detection over the
current recursion stack. It never raises and never emits callables or
I/O handles.
"""

import dataclasses
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Callable, Dict, List, Optional, Set
from uuid import UUID

import structlog

from ..constants import DEFAULT_MAX_DEPTH
from .shapes import (
    LIST_CONVERSIONS,
    MAP_CONVERSIONS,
    ValueShape,
    classify,
    is_named_tuple,
    type_name,
)

logger = structlog.get_logger(__name__)

SUMMARY_FIELDS = (("id",), ("name", "title"), ("updated_at", "created_at"))


def _never_serializable(value: Any) -> bool:
    return False


def _call_first(value: Any, names) -> Any:
    for name in names:
        method = getattr(value, name, None)
        if callable(method):
            return method()
    raise AttributeError(f"{type_name(value)} has none of {names}")


class Sanitizer:
    """
    Converts values into a cache-safe form.

    `serializable` is the store's trial round trip; values it accepts are
    passed through untouched unless cleaning in strict mode.
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        serializable: Optional[Callable[[Any], bool]] = None,
    ):
        self.max_depth = max_depth
        self.serializable = serializable or _never_serializable

    def clean(
        self,
        value: Any,
        max_depth: Optional[int] = None,
        visited: Optional[Set[int]] = None,
        strict: bool = False,
    ) -> Any:
        """Return the canonical form of value, or None when nothing is cacheable."""
        depth = self.max_depth if max_depth is None else max_depth
        visited = set() if visited is None else visited
        try:
            return self._clean(value, depth, visited, strict)
        except RecursionError:
            logger.debug("Sanitizer recursion limit hit", value_type=type_name(value))
            return None

    def _clean(self, value: Any, depth: int, visited: Set[int], strict: bool) -> Any:
        if depth <= 0:
            return None

        shape = classify(value)
        if shape is ValueShape.SCALAR:
            return value
        if shape in (ValueShape.HANDLE, ValueShape.DEFERRED):
            return None

        marker = id(value)
        if marker in visited:
            return None

        visited.add(marker)
        try:
            return self._dispatch(shape, value, depth, visited, strict)
        except Exception as e:
            logger.debug(
                "Dropping value that failed to sanitize",
                value_type=type_name(value),
                error=str(e),
            )
            return None
        finally:
            visited.discard(marker)

    def _dispatch(
        self, shape: ValueShape, value: Any, depth: int, visited: Set[int], strict: bool
    ) -> Any:
        if shape is ValueShape.LIST:
            return self._clean_list(value, depth, visited, strict)
        if shape is ValueShape.MAP:
            items = value._asdict().items() if is_named_tuple(value) else value.items()
            return self._clean_items(items, depth, visited, strict)
        if shape is ValueShape.DANGEROUS:
            return self._summary(value, depth, visited)
        if shape is ValueShape.ENTITY:
            return self._clean_entity(value, depth, visited, strict)

        try:
            converted = self._convert(shape, value)
        except Exception as e:
            logger.debug(
                "Value conversion failed",
                value_type=type_name(value),
                shape=shape.value,
                error=str(e),
            )
            return self._summary(value, depth, visited)

        if converted is not value:
            # Same node in another form, so it keeps the current depth.
            return self._clean(converted, depth, visited, strict)

        if not strict and self._round_trips(value):
            return value
        return self._summary(value, depth, visited)

    def _convert(self, shape: ValueShape, value: Any) -> Any:
        if shape is ValueShape.MAPPABLE:
            if dataclasses.is_dataclass(value):
                return {
                    f.name: getattr(value, f.name) for f in dataclasses.fields(value)
                }
            return _call_first(value, MAP_CONVERSIONS)
        if shape is ValueShape.LISTABLE:
            return _call_first(value, LIST_CONVERSIONS)
        if shape is ValueShape.REPRESENTABLE:
            return self._representation(value)
        return value

    def _representation(self, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (UUID, Decimal, PurePath)):
            return str(value)
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8", errors="replace")
        return value.isoformat()

    def _round_trips(self, value: Any) -> bool:
        try:
            return bool(self.serializable(value))
        except Exception:
            return False

    def _clean_list(
        self, value: Any, depth: int, visited: Set[int], strict: bool
    ) -> List[Any]:
        cleaned = []
        for item in list(value):
            result = self._clean(item, depth - 1, visited, strict)
            if result is not None:
                cleaned.append(result)
        return cleaned

    def _clean_items(
        self, items, depth: int, visited: Set[int], strict: bool
    ) -> Dict[str, Any]:
        cleaned = {}
        for key, item in items:
            result = self._clean(item, depth - 1, visited, strict)
            if result is not None:
                cleaned[key if isinstance(key, str) else str(key)] = result
        return cleaned

    def _attributes(self, value: Any) -> Dict[str, Any]:
        if dataclasses.is_dataclass(value):
            return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        model_fields = getattr(type(value), "model_fields", None)
        if model_fields:
            return {name: getattr(value, name) for name in model_fields}
        return {
            name: item
            for name, item in vars(value).items()
            if not name.startswith("_")
        }

    def _clean_entity(
        self, value: Any, depth: int, visited: Set[int], strict: bool
    ) -> Any:
        try:
            attributes = self._attributes(value)
            identity = value.id
        except Exception as e:
            logger.debug(
                "Entity introspection failed",
                value_type=type_name(value),
                error=str(e),
            )
            return self._summary(value, depth, visited)

        cleaned = self._clean_items(attributes.items(), depth, visited, strict)
        identity = self._clean(identity, depth - 1, visited, True)
        if identity is not None:
            cleaned["id"] = identity
        cleaned["class"] = type_name(value)
        return cleaned

    def _summary(self, value: Any, depth: int, visited: Set[int]) -> Optional[Dict[str, Any]]:
        """Opaque summary record, or None when no identifying field is readable."""
        summary = {"class": type_name(value)}
        for candidates in SUMMARY_FIELDS:
            for name in candidates:
                try:
                    field_value = getattr(value, name, None)
                except Exception:
                    continue
                if field_value is None or callable(field_value):
                    continue
                field_value = self._clean(field_value, depth - 1, visited, True)
                if field_value is not None:
                    summary[name] = field_value
                    break

        if len(summary) == 1:
            return None
        return summary
