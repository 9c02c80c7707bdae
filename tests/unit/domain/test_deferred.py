"""
Unit tests for Deferred values and awaitable sharing.
"""

import asyncio

import pytest

from graphql_cache.domain.deferred import Deferred, share_awaitables


class ManualPromise:
    """Promise-like object settled by the test."""

    def __init__(self):
        self.callbacks = []

    def then(self, on_fulfilled, on_rejected=None):
        self.callbacks.append((on_fulfilled, on_rejected))
        return self

    def fulfill(self, value):
        for on_fulfilled, _ in self.callbacks:
            on_fulfilled(value)

    def reject(self, error):
        for _, on_rejected in self.callbacks:
            on_rejected(error)


async def compute(value):
    await asyncio.sleep(0)
    return value


class TestDeferred:
    """Test Deferred construction and chaining."""

    @pytest.mark.asyncio
    async def test_resolved(self):
        """Test already resolved values."""
        deferred = Deferred.resolved(5)

        assert deferred.done()
        assert deferred.result() == 5
        assert await deferred == 5

    @pytest.mark.asyncio
    async def test_then_chains(self):
        """Test continuations receive the resolved value."""
        result = Deferred.resolved(2).then(lambda v: v + 1).then(lambda v: v * 10)
        assert await result == 30

    @pytest.mark.asyncio
    async def test_then_flattens_deferred_results(self):
        """Test a continuation returning a deferred value is flattened."""
        result = Deferred.resolved(2).then(lambda v: Deferred.resolved(v * 2))
        assert await result == 4

    @pytest.mark.asyncio
    async def test_from_coroutine(self):
        """Test coroutines are scheduled and adapted."""
        assert await Deferred.from_awaitable(compute("x")) == "x"

    @pytest.mark.asyncio
    async def test_from_plain_value(self):
        """Test non-deferred values become resolved Deferreds."""
        assert await Deferred.from_awaitable(7) == 7

    @pytest.mark.asyncio
    async def test_from_promise(self):
        """Test promise-like then objects are bridged."""
        promise = ManualPromise()
        deferred = Deferred.from_awaitable(promise)

        assert not deferred.done()
        promise.fulfill("done")
        assert await deferred == "done"

    @pytest.mark.asyncio
    async def test_rejected_promise(self):
        """Test promise rejection propagates."""
        promise = ManualPromise()
        deferred = Deferred.from_awaitable(promise)

        promise.reject(ValueError("nope"))

        with pytest.raises(ValueError, match="nope"):
            await deferred

    @pytest.mark.asyncio
    async def test_errors_propagate_through_then(self):
        """Test source errors skip the continuation."""
        future = asyncio.get_running_loop().create_future()
        calls = []
        chained = Deferred(future).then(calls.append)

        future.set_exception(RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            await chained
        assert calls == []

    @pytest.mark.asyncio
    async def test_callback_errors_propagate(self):
        """Test continuation errors fail the returned Deferred."""

        def explode(value):
            raise KeyError(value)

        with pytest.raises(KeyError):
            await Deferred.resolved("k").then(explode)

    @pytest.mark.asyncio
    async def test_all(self):
        """Test joining deferred and plain values keeps order."""
        result = Deferred.all([compute(1), 2, Deferred.resolved(3)])
        assert await result == [1, 2, 3]


class TestShareAwaitables:
    """Test coroutine sharing."""

    @pytest.mark.asyncio
    async def test_coroutine_becomes_task(self):
        """Test a coroutine is replaced by a task awaitable twice."""
        shared = share_awaitables(compute("v"))

        assert isinstance(shared, asyncio.Task)
        assert await shared == "v"
        assert await shared == "v"

    @pytest.mark.asyncio
    async def test_list_elements(self):
        """Test coroutine list elements are replaced in place order."""
        shared = share_awaitables([compute(1), 2])

        assert isinstance(shared[0], asyncio.Task)
        assert shared[1] == 2
        assert await shared[0] == 1

    def test_plain_values_untouched(self):
        """Test non-awaitables are returned unchanged."""
        value = {"a": 1}
        assert share_awaitables(value) is value
