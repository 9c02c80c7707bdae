"""
Deferred Values

Explicit `Value | Deferred[Value]` result type for values that are not
available yet. A Deferred wraps an asyncio future; `then` registers a
continuation without blocking, `all` joins several deferred values.
"""

import asyncio
import inspect
from typing import Any, Callable, Iterable

from .shapes import is_deferred


def _transfer(source: asyncio.Future, target: asyncio.Future) -> None:
    """Copy the outcome of source into target."""
    if target.done():
        return
    if source.cancelled():
        target.cancel()
        return
    error = source.exception()
    if error is not None:
        target.set_exception(error)
    else:
        target.set_result(source.result())


def share_awaitables(value: Any) -> Any:
    """
    Replace coroutines (top level or list elements) with tasks.

    A coroutine can be awaited once, so both the engine and a cache
    continuation must wait on the same task instead.
    """
    if inspect.iscoroutine(value):
        return asyncio.ensure_future(value)
    if isinstance(value, list) and any(inspect.iscoroutine(item) for item in value):
        return [
            asyncio.ensure_future(item) if inspect.iscoroutine(item) else item
            for item in value
        ]
    return value


class Deferred:
    """A value resolved later, chained through continuations."""

    __slots__ = ("_future",)

    def __init__(self, future: asyncio.Future):
        self._future = future

    @classmethod
    def resolved(cls, value: Any) -> "Deferred":
        """Create an already resolved deferred value."""
        future = asyncio.get_running_loop().create_future()
        future.set_result(value)
        return cls(future)

    @classmethod
    def from_awaitable(cls, value: Any) -> "Deferred":
        """
        Adapt futures, tasks, coroutines and promise-like `then` objects.

        Coroutines are scheduled as tasks; callers that also need the result
        must await the returned Deferred (or `future`), never the coroutine.
        """
        if isinstance(value, Deferred):
            return value
        if isinstance(value, asyncio.Future):
            return cls(value)
        if inspect.isawaitable(value):
            return cls(asyncio.ensure_future(value))
        if is_deferred(value):
            future = asyncio.get_running_loop().create_future()

            def on_fulfilled(result):
                if not future.done():
                    future.set_result(result)
                return result

            def on_rejected(error):
                if not future.done():
                    future.set_exception(error)

            value.then(on_fulfilled, on_rejected)
            return cls(future)
        return cls.resolved(value)

    @classmethod
    def all(cls, values: Iterable[Any]) -> "Deferred":
        """Resolve to the list of every value once all deferred ones resolved."""
        loop = asyncio.get_running_loop()
        awaitables = []
        for value in values:
            if is_deferred(value):
                awaitables.append(cls.from_awaitable(value).future)
            else:
                ready = loop.create_future()
                ready.set_result(value)
                awaitables.append(ready)
        gathered = asyncio.gather(*awaitables)
        return cls(gathered).then(list)

    @property
    def future(self) -> asyncio.Future:
        return self._future

    def then(self, callback: Callable[[Any], Any]) -> "Deferred":
        """
        Register callback for the resolved value and return a new Deferred
        for its result. Errors from the source or the callback propagate to
        the returned Deferred; a callback returning a deferred value is
        flattened.
        """
        target = self._future.get_loop().create_future()

        def on_done(source: asyncio.Future) -> None:
            if target.done():
                return
            if source.cancelled():
                target.cancel()
                return
            error = source.exception()
            if error is not None:
                target.set_exception(error)
                return
            try:
                result = callback(source.result())
            except Exception as e:
                target.set_exception(e)
                return
            if is_deferred(result):
                inner = Deferred.from_awaitable(result).future
                inner.add_done_callback(lambda done: _transfer(done, target))
            else:
                target.set_result(result)

        self._future.add_done_callback(on_done)
        return Deferred(target)

    def done(self) -> bool:
        return self._future.done()

    def result(self) -> Any:
        return self._future.result()

    def __await__(self):
        return self._future.__await__()

    def __repr__(self) -> str:
        state = "resolved" if self._future.done() else "pending"
        return f"<Deferred {state}>"
