"""
Unit tests for the middleware chain.
"""

import asyncio

import pytest

from cacheman import Cacheman, DoubleCompletionError, MISSING, MiddlewareError, StageResult
from cacheman.middleware import MiddlewareChain


class TestMiddlewareChain:
    """Test cases for MiddlewareChain."""

    @pytest.fixture
    def chain(self):
        """Create an empty chain."""
        return MiddlewareChain()

    @pytest.mark.asyncio
    async def test_empty_chain_no_override(self, chain):
        """Empty chain completes immediately with no override."""
        result = await chain.run("k", "data", 10)
        assert result == StageResult(MISSING, MISSING, False)

    @pytest.mark.asyncio
    async def test_callback_stage_pass_through(self, chain):
        """Stage calling next() with no arguments overrides nothing."""
        chain.append(lambda key, data, ttl, next: next())
        result = await chain.run("k", "data", 10)
        assert result.data is MISSING
        assert result.ttl is MISSING
        assert result.force is False

    @pytest.mark.asyncio
    async def test_callback_stage_override(self, chain):
        """Stage overrides are returned."""
        chain.append(lambda key, data, ttl, next: next(None, "X", 5))
        result = await chain.run("k", "data", 10)
        assert result.data == "X"
        assert result.ttl == 5

    @pytest.mark.asyncio
    async def test_stages_see_current_values(self, chain):
        """Each stage receives the values produced by earlier stages."""
        seen = []

        def first(key, data, ttl, next):
            seen.append((data, ttl))
            next(None, "first", 1)

        def second(key, data, ttl, next):
            seen.append((data, ttl))
            next()

        chain.append(first)
        chain.append(second)
        result = await chain.run("k", "seed", 10)

        assert seen == [("seed", 10), ("first", 1)]
        assert result.data == "first"
        assert result.ttl == 1

    @pytest.mark.asyncio
    async def test_later_stage_keeps_earlier_override(self, chain):
        """A later stage leaving a field MISSING keeps the earlier override."""
        chain.append(lambda key, data, ttl, next: next(None, "first"))
        chain.append(lambda key, data, ttl, next: next(None, MISSING, 30))
        result = await chain.run("k", "seed", 10)
        assert result.data == "first"
        assert result.ttl == 30

    @pytest.mark.asyncio
    async def test_runs_in_registration_order(self, chain):
        """Stages run strictly in the order they were appended."""
        order = []
        for index in range(3):
            chain.append(lambda key, data, ttl, next, i=index: (order.append(i), next())[1])
        await chain.run("k", None, None)
        assert order == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_error_short_circuits(self, chain):
        """An error stops the chain and propagates verbatim."""
        error = ValueError("not")
        calls = []
        chain.append(lambda key, data, ttl, next: next(error))
        chain.append(lambda key, data, ttl, next: (calls.append(1), next())[1])

        with pytest.raises(ValueError) as exc_info:
            await chain.run("k", None, None)

        assert exc_info.value is error
        assert calls == []

    @pytest.mark.asyncio
    async def test_non_exception_error_wrapped(self, chain):
        """Non-exception error signals become MiddlewareError."""
        chain.append(lambda key, data, ttl, next: next("nope"))
        with pytest.raises(MiddlewareError) as exc_info:
            await chain.run("k", None, None)
        assert exc_info.value.cause == "nope"
        assert exc_info.value.code == "MIDDLEWARE_ERROR"

    @pytest.mark.asyncio
    async def test_async_callback_stage(self, chain):
        """Callback-style stages may be coroutines calling next later."""

        async def stage(key, data, ttl, next):
            await asyncio.sleep(0)
            next(None, "late")

        chain.append(stage)
        result = await chain.run("k", None, None)
        assert result.data == "late"

    @pytest.mark.asyncio
    async def test_deferred_next(self, chain):
        """next may be called from a later loop iteration."""
        loop = asyncio.get_running_loop()
        chain.append(lambda key, data, ttl, next: loop.call_soon(next, None, "deferred"))
        result = await chain.run("k", None, None)
        assert result.data == "deferred"

    @pytest.mark.asyncio
    async def test_next_called_twice(self, chain):
        """Calling next twice is reported."""

        def stage(key, data, ttl, next):
            next()
            next()

        chain.append(stage)
        with pytest.raises(DoubleCompletionError):
            await chain.run("k", None, None)

    @pytest.mark.asyncio
    async def test_return_style_stages(self, chain):
        """Callback-free stages return None, a StageResult or a tuple."""

        async def override_ttl(key, data, ttl):
            return StageResult(ttl=99)

        chain.append(lambda key, data, ttl: None)
        chain.append(override_ttl)
        chain.append(lambda key, data, ttl: ("tuple", MISSING, True))
        result = await chain.run("k", None, None)

        assert result == StageResult("tuple", 99, True)

    @pytest.mark.asyncio
    async def test_return_style_raises(self, chain):
        """Exceptions from callback-free stages propagate."""

        def stage(key, data, ttl):
            raise KeyError("boom")

        chain.append(stage)
        with pytest.raises(KeyError):
            await chain.run("k", None, None)

    @pytest.mark.asyncio
    async def test_return_style_bad_value(self, chain):
        """Unsupported return values are rejected."""
        chain.append(lambda key, data, ttl: "bare string")
        with pytest.raises(TypeError):
            await chain.run("k", None, None)

    def test_append_requires_callable(self, chain):
        """Non-callable stages are refused."""
        with pytest.raises(TypeError):
            chain.append("not a stage")


class TestCachemanMiddleware:
    """Middleware through the façade."""

    def test_use_is_fluent(self):
        """use() returns the instance."""
        cache = Cacheman("testing")
        assert cache.use(lambda key, data, ttl: None) is cache

    @pytest.mark.asyncio
    async def test_run_awaitable(self):
        """run() delivers the merged result."""
        cache = Cacheman("testing")
        cache.use(lambda key, data, ttl, next: next(None, "data", 1))
        result = await cache.run("k", None, 10)
        assert result == StageResult("data", 1, False)

    @pytest.mark.asyncio
    async def test_run_callback(self):
        """run() supports the callback channel."""
        cache = Cacheman("testing")
        done = asyncio.get_running_loop().create_future()
        cache.run("k", "v", 10, callback=lambda err, result: done.set_result((err, result)))
        err, result = await done
        assert err is None
        assert result == StageResult()
