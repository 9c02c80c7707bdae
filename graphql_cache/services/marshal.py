"""
Marshal - Read-Through Engine

Reads a key from the cache store, or runs the resolution thunk and writes
its deconstructed, sanitized result. Deferred results are written by a
continuation while the raw value goes back to the engine immediately.

Caching fails open: serialization problems are recovered or skipped and
never change what the caller receives. Thunk errors and store outages
propagate unchanged.
"""

import asyncio
import pickle
import re
from collections.abc import Iterator
from typing import Any, Callable, Optional, Union

from opentelemetry import trace

from ..core.config import CacheConfig
from ..core.exceptions import CacheSerializationException
from ..domain.deconstructor import UNCACHEABLE, Deconstructor
from ..domain.deferred import Deferred, share_awaitables
from ..domain.repository_interfaces import MISSING, CacheStore
from ..domain.sanitizer import Sanitizer
from ..domain.value_objects import CacheDirective, CacheKey

tracer = trace.get_tracer(__name__)

_SERIALIZATION_MESSAGE = re.compile(
    r"serializ|pickl|circular reference|_dump_data", re.IGNORECASE
)


def materialize(value: Any) -> Any:
    """Turn one-shot iterators into lists so the engine and the cache both see every item."""
    if isinstance(value, Iterator):
        return list(value)
    return value


def is_serialization_error(error: BaseException) -> bool:
    """True for store errors caused by the value rather than the store."""
    if isinstance(error, CacheSerializationException):
        return True
    if isinstance(error, (TypeError, ValueError, pickle.PickleError)):
        return bool(_SERIALIZATION_MESSAGE.search(str(error)))
    return False


class Marshal:
    """
    Read-or-compute-and-write around a single cache key.

    Concurrent misses on one key are not de-duplicated: each computes and
    writes, and the store keeps the last write.
    """

    def __init__(
        self,
        config: CacheConfig,
        deconstructor: Deconstructor,
        sanitizer: Sanitizer,
    ):
        self.config = config
        self.deconstructor = deconstructor
        self.sanitizer = sanitizer

    @property
    def cache(self) -> CacheStore:
        return self.config.require_cache()

    @property
    def logger(self) -> Any:
        return self.config.logger

    def read(
        self,
        key: Union[str, CacheKey],
        directive: Any = None,
        force: bool = False,
        thunk: Optional[Callable[[], Any]] = None,
    ) -> Any:
        """
        Return the cached value for key, or compute it with thunk.

        Args:
            key: Cache key
            directive: CacheDirective or the raw `cache` field config
            force: Skip the lookup and overwrite the stored value
            thunk: Zero-argument callable producing the resolved value

        Returns:
            The stored canonical value on a hit, otherwise the raw value
            returned by thunk
        """
        cacheable = key.cacheable if isinstance(key, CacheKey) else True
        key = str(key)
        directive = CacheDirective.parse(True if directive is None else directive)

        with tracer.start_as_current_span("marshal.read") as span:
            span.set_attribute("cache.key", key)

            if not cacheable:
                span.set_attribute("cache.skipped", True)
                self.logger.debug(
                    "Cache skip", key=key, reason="parent object has no stable identity"
                )
                return thunk()

            if force:
                span.set_attribute("cache.forced", True)
                return self.write(key, directive, thunk)

            try:
                cached = self.cache.read(key)
            except Exception as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                raise

            if cached is MISSING:
                span.set_attribute("cache.hit", False)
                self.logger.debug("Cache miss", key=key)
                return self.write(key, directive, thunk)

            span.set_attribute("cache.hit", True)
            self.logger.debug("Cache hit", key=key)
            return cached

    def write(
        self, key: str, directive: CacheDirective, thunk: Callable[[], Any]
    ) -> Any:
        """Run thunk, cache its deconstructed result and return the raw value."""
        resolved = share_awaitables(materialize(thunk()))

        try:
            document = self.deconstructor.deconstruct(resolved)
        except Exception as e:
            self.logger.debug(
                "Cache skip", key=key, reason="deconstruction failed", error=str(e)
            )
            return resolved

        expiry = self.expiry(directive)
        if isinstance(document, Deferred):
            self._write_when_resolved(key, document, expiry)
        else:
            self.cache_document(key, document, expiry)

        return resolved

    def _write_when_resolved(self, key: str, document: Deferred, expiry: int) -> None:
        def on_resolved(future: asyncio.Future) -> None:
            if future.cancelled():
                self.logger.debug("Cache skip", key=key, reason="deferred cancelled")
                return
            error = future.exception()
            if error is not None:
                self.logger.debug(
                    "Cache skip", key=key, reason="deferred failed", error=str(error)
                )
                return
            try:
                self.cache_document(key, future.result(), expiry)
            except Exception as e:
                self.logger.error(
                    "Deferred cache write failed", key=key, error=str(e)
                )

        document.future.add_done_callback(on_resolved)

    def cache_document(self, key: str, document: Any, expiry: int) -> bool:
        """
        Write document; on a serialization error re-clean it strictly and
        retry once.

        Returns:
            True if a value was stored, False if caching was skipped
        """
        with tracer.start_as_current_span("marshal.cache_document") as span:
            span.set_attribute("cache.key", key)
            span.set_attribute("cache.expiry", expiry)

            if document is UNCACHEABLE:
                self.logger.debug(
                    "Cache skip", key=key, reason="value has no cacheable form"
                )
                span.set_attribute("cache.skipped", True)
                return False

            try:
                self.cache.write(key, document, expiry)
                return True
            except Exception as e:
                if not is_serialization_error(e):
                    span.record_exception(e)
                    span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                    raise
                span.add_event("serialization_failed", {"error": str(e)})

            cleaned = self.sanitizer.clean(
                document, max_depth=self.config.strict_max_depth, strict=True
            )

            try:
                self.cache.write(key, cleaned, expiry)
            except Exception as e:
                if not is_serialization_error(e):
                    span.record_exception(e)
                    span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                    raise
                self.logger.debug(
                    "Cache skip",
                    key=key,
                    reason="failed to serialize even after cleaning",
                    error=str(e),
                )
                span.set_attribute("cache.skipped", True)
                return False

            self.logger.debug("Cache write successful after cleaning", key=key)
            return True

    def expiry(self, directive: CacheDirective) -> int:
        if directive.expiry:
            return directive.expiry
        return self.config.expiry
