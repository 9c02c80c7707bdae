"""
Value Deconstructor

Resolved GraphQL values arrive wrapped in engine envelopes (typed object
wrappers, paginated connections, awaitables) that mean nothing outside a
live execution. The deconstructor reduces them to plain data and hands
that to the sanitizer. Deferred inputs produce a Deferred canonical value
rather than a blocking wait.
"""

from typing import Any, List

import structlog

from .deferred import Deferred
from .sanitizer import Sanitizer
from .shapes import (
    is_collection,
    is_connection,
    is_deferred,
    is_object_wrapper,
    type_name,
    unwrap_object,
)

logger = structlog.get_logger(__name__)

NODE_ACCESSORS = ("nodes", "edge_nodes")


class _Uncacheable:
    """Document marker for a value that sanitizes to nothing.

    Storing None for it would turn a later hit into a null field.
    """

    def __repr__(self) -> str:
        return "UNCACHEABLE"


UNCACHEABLE = _Uncacheable()


class Deconstructor:
    """Turns a raw resolved value into a canonical value or a Deferred of one."""

    def __init__(self, sanitizer: Sanitizer):
        self.sanitizer = sanitizer

    def deconstruct(self, raw: Any) -> Any:
        if is_deferred(raw):
            return Deferred.from_awaitable(raw).then(self.deconstruct)

        if is_connection(raw):
            nodes = self.connection_nodes(raw)
            if nodes is not raw:
                return self.deconstruct(nodes)
            logger.debug("Connection exposes no nodes", value_type=type_name(raw))

        if is_collection(raw):
            return self.deconstruct_collection(list(raw))

        if is_object_wrapper(raw):
            return self.clean(raw, unwrap_object(raw))

        return self.clean(raw, raw)

    def clean(self, raw: Any, value: Any) -> Any:
        """Sanitize value, or UNCACHEABLE when a non-None raw value cleans to None."""
        document = self.sanitizer.clean(value)
        if document is None and raw is not None:
            logger.debug("Value has no cacheable form", value_type=type_name(raw))
            return UNCACHEABLE
        return document

    def deconstruct_collection(self, items: List[Any]) -> Any:
        if not items:
            return []

        if all(is_object_wrapper(item) for item in items):
            return self.sanitizer.clean([unwrap_object(item) for item in items])

        if any(is_deferred(item) for item in items):
            return Deferred.all(items).then(self.deconstruct_collection)

        return self.sanitizer.clean(items)

    def connection_nodes(self, connection: Any) -> Any:
        """
        Node sequence of a paginated connection: the materialized `nodes`,
        then `edge_nodes`, then the `node` of each edge. Falls back to the
        connection itself.
        """
        for accessor in NODE_ACCESSORS:
            nodes = getattr(connection, accessor, None)
            if nodes is None:
                continue
            return nodes() if callable(nodes) else nodes

        edges = getattr(connection, "edges", None)
        if edges is not None:
            return [getattr(edge, "node", edge) for edge in edges]

        return connection
