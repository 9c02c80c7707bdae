"""
Value Shapes

Classifies arbitrary resolved values into a closed set of semantic shapes
so the sanitizer and deconstructor dispatch on one tag per value instead of
probing capabilities ad hoc.
"""

import asyncio
import collections
import dataclasses
import inspect
import io
import re
import socket
import threading
import types
from collections.abc import Iterable, Iterator, Mapping, Sequence, Set, Sized
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, FrozenSet, Optional, Tuple
from uuid import UUID

import structlog

logger = structlog.get_logger(__name__)


class ValueShape(str, Enum):
    """Semantic shape of a value, most specific first."""

    SCALAR = "scalar"
    DEFERRED = "deferred"
    HANDLE = "handle"
    LIST = "list"
    MAP = "map"
    DANGEROUS = "dangerous"
    ENTITY = "entity"
    MAPPABLE = "mappable"
    LISTABLE = "listable"
    REPRESENTABLE = "representable"
    OPAQUE = "opaque"


SCALAR_TYPES = (type(None), bool, int, float, str)

_LOCK_TYPES = (type(threading.Lock()), type(threading.RLock()))

HANDLE_TYPES = _LOCK_TYPES + (
    io.IOBase,
    socket.socket,
    threading.Thread,
    threading.Condition,
    threading.Semaphore,
    threading.Event,
    asyncio.AbstractEventLoop,
    types.ModuleType,
    types.FrameType,
    types.TracebackType,
)

# Class-name tokens of query builders, relations and live resources.
DANGEROUS_TOKENS: FrozenSet[str] = frozenset(
    {
        "query",
        "relation",
        "connection",
        "session",
        "engine",
        "mutex",
        "lock",
        "thread",
        "io",
        "file",
        "socket",
        "cursor",
        "pool",
        "stream",
        "transaction",
    }
)

MAP_CONVERSIONS: Tuple[str, ...] = ("model_dump", "to_dict")
LIST_CONVERSIONS: Tuple[str, ...] = ("to_list", "tolist")
WRAPPED_OBJECT_ATTRIBUTES: Tuple[str, ...] = ("object",)

_CAMEL_TOKEN = re.compile(r"[A-Z]+(?=[A-Z][a-z]|\d|\b|_)|[A-Z]?[a-z]+|[A-Z]+|\d+")


def type_name(value: Any) -> str:
    """Concrete class name used in keys and opaque summaries."""
    return type(value).__qualname__


def class_tokens(cls: type) -> FrozenSet[str]:
    """Lower-cased CamelCase tokens of every class name in the hierarchy."""
    tokens = set()
    for klass in inspect.getmro(cls):
        if klass is object:
            continue
        tokens.update(t.lower() for t in _CAMEL_TOKEN.findall(klass.__name__))
    return frozenset(tokens)


def is_deferred(value: Any) -> bool:
    """Awaitables (coroutines, futures, tasks) and promise-like `then` objects."""
    if isinstance(value, (type, Mapping) + SCALAR_TYPES):
        return False
    if inspect.isawaitable(value) or isinstance(value, asyncio.Future):
        return True
    return callable(getattr(type(value), "then", None))


def is_named_tuple(value: Any) -> bool:
    return isinstance(value, tuple) and hasattr(type(value), "_fields")


def is_list_like(value: Any) -> bool:
    if isinstance(value, (str, bytes, bytearray, memoryview)):
        return False
    if is_named_tuple(value):
        return False
    return isinstance(value, (list, tuple, Set, collections.deque, Sequence))


def is_collection(value: Any) -> bool:
    """List-like values plus sized iterables such as ORM collection proxies."""
    if is_list_like(value):
        return True
    if isinstance(value, (str, bytes, bytearray, Mapping, type)) or is_named_tuple(
        value
    ):
        return False
    if is_deferred(value) or isinstance(value, Iterator):
        return False
    return isinstance(value, Sized) and isinstance(value, Iterable)


def is_connection(value: Any) -> bool:
    """Paginated connection wrappers (`UserConnection`, relay `Connection`)."""
    if isinstance(value, (Mapping, type) + SCALAR_TYPES):
        return False
    return any(
        klass.__name__.endswith("Connection") for klass in inspect.getmro(type(value))
    )


def _wrapped_attribute(value: Any) -> Optional[str]:
    if isinstance(value, (Mapping, type) + SCALAR_TYPES) or is_list_like(value):
        return None
    for attr in WRAPPED_OBJECT_ATTRIBUTES:
        if attr in getattr(value, "__dict__", {}):
            return attr
        if inspect.isdatadescriptor(getattr(type(value), attr, None)):
            return attr
    return None


def is_object_wrapper(value: Any) -> bool:
    """Typed wrappers exposing the domain object they present."""
    return _wrapped_attribute(value) is not None


def unwrap_object(value: Any) -> Any:
    """Return the wrapped domain object, or value itself when it is not a wrapper."""
    attr = _wrapped_attribute(value)
    return value if attr is None else getattr(value, attr)


def _is_handle(value: Any) -> bool:
    if isinstance(value, HANDLE_TYPES):
        return True
    if isinstance(value, Iterator) or inspect.isgenerator(value):
        return True
    return callable(value)


def _has_identity(value: Any) -> bool:
    identity = getattr(value, "id", None)
    return identity is not None and not callable(identity)


def _has_attributes(value: Any) -> bool:
    if dataclasses.is_dataclass(value):
        return True
    if getattr(type(value), "model_fields", None):
        return True
    return any(not name.startswith("_") for name in getattr(value, "__dict__", {}))


def _has_method(value: Any, names: Tuple[str, ...]) -> bool:
    return any(callable(getattr(value, name, None)) for name in names)


def _is_representable(value: Any) -> bool:
    if isinstance(value, (Enum, UUID, Decimal, PurePath, bytes, bytearray)):
        return True
    return callable(getattr(value, "isoformat", None))


def _classify(value: Any) -> ValueShape:
    if isinstance(value, SCALAR_TYPES):
        return ValueShape.SCALAR
    if is_deferred(value):
        return ValueShape.DEFERRED
    if _is_handle(value):
        return ValueShape.HANDLE
    if isinstance(value, Mapping) or is_named_tuple(value):
        return ValueShape.MAP
    if is_list_like(value):
        return ValueShape.LIST
    if class_tokens(type(value)) & DANGEROUS_TOKENS:
        return ValueShape.DANGEROUS
    if _has_identity(value) and _has_attributes(value):
        return ValueShape.ENTITY
    if _has_method(value, MAP_CONVERSIONS) or dataclasses.is_dataclass(value):
        return ValueShape.MAPPABLE
    if _has_method(value, LIST_CONVERSIONS):
        return ValueShape.LISTABLE
    if _is_representable(value):
        return ValueShape.REPRESENTABLE
    return ValueShape.OPAQUE


def classify(value: Any) -> ValueShape:
    """Return the shape of value. Probing errors classify the value as opaque."""
    try:
        return _classify(value)
    except Exception as e:
        logger.debug("Shape check failed", value_type=type_name(value), error=str(e))
        return ValueShape.OPAQUE
