"""
Cache façade: namespaced keys, TTL handling and middleware over a bound engine.
"""

import inspect
from typing import Any, Callable, Mapping, Optional, Tuple

from shared.config import CachemanSettings
from shared.errors import CachemanError
from shared.logging import get_logger
from .callables import Completion, required_positional_count
from .engines import DEFAULT_ENGINES, engine_spec, resolve_engine
from .engines.base import EngineFactory
from .invoker import Callback, DualModeInvoker, PromiseFactory
from .keys import KeyNamer, LogicalKey, validate_key
from .middleware import MiddlewareChain, Stage
from .ttl import Duration, TTLNormalizer
from .types import MISSING, StageResult, StoreCapability


def _pick(explicit: Any, from_options: Any) -> Any:
    return from_options if explicit is None else explicit


def _callback_in_slot(value: Any, callback: Optional[Callback]) -> Tuple[Any, Optional[Callback]]:
    # set(key, value, fn) passes the callback where the TTL goes
    if callback is None and callable(value):
        return None, value
    return value, callback


class Cacheman:
    """Single entry point for cache reads, writes and compute-or-fetch.

    Every asynchronous operation takes an optional trailing ``callback``.
    With a callback it is called as ``callback(err, result)`` once the work
    settles and the instance is returned; without one an awaitable is
    returned instead.

    Concurrent calls on the same key are not serialized. Two ``wrap`` misses
    for one key may both run ``work``.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
        *,
        engine: Any = None,
        engines: Optional[Mapping[str, EngineFactory]] = None,
        promise: Optional[PromiseFactory] = None,
        settings: Optional[CachemanSettings] = None,
        **overrides: Any,
    ):
        if isinstance(name, Mapping):
            options, name = name, None

        merged = dict(options or {})
        merged.update(overrides)
        engine = _pick(engine, merged.pop("engine", None))
        engines = _pick(engines, merged.pop("engines", None))
        promise = _pick(promise, merged.pop("promise", None))

        if isinstance(engine, str):
            merged["engine"] = engine
        if settings is not None:
            merged = {**settings.model_dump(), **merged}

        self.options = CachemanSettings(**merged)
        self.name = name
        self.logger = get_logger("cacheman.core")

        self._namer = KeyNamer(self.options.prefix, name, self.options.delimiter)
        self._ttl = TTLNormalizer(self.options.ttl)
        self._middleware = MiddlewareChain()
        self._invoke = DualModeInvoker(self, promise)

        spec = engine_spec(self.options.engine if engine is None or isinstance(engine, str) else engine)
        registry = DEFAULT_ENGINES if engines is None else engines
        self._engine = resolve_engine(spec, registry, self.options, self)

        self.logger.debug(
            "Cache engine bound",
            prefix=self.prefix,
            engine=type(self._engine).__name__,
            default_ttl=self.ttl,
        )

    @property
    def prefix(self) -> str:
        """Physical key prefix: ``<prefix><delimiter><namespace><delimiter>``."""
        return self._namer.prefix

    @property
    def ttl(self) -> int:
        """Default TTL in seconds."""
        return self._ttl.default

    @property
    def engine(self) -> StoreCapability:
        return self._engine

    def key(self, key: LogicalKey) -> str:
        """Wrap a logical key with the namespace prefix."""
        return self._namer(key)

    def use(self, stage: Stage) -> "Cacheman":
        """Append a middleware stage run by ``cache`` before writing."""
        self._middleware.append(stage)
        return self

    def run(self, key: LogicalKey, data: Any, ttl: Any, callback: Optional[Callback] = None) -> Any:
        """Execute the middleware chain and deliver the merged StageResult."""
        return self._invoke(lambda: self._middleware.run(key, data, ttl), callback)

    def get(self, key: LogicalKey, callback: Optional[Callback] = None) -> Any:
        """Get an entry, or ``MISSING`` when absent."""
        validate_key(key)
        return self._invoke(lambda: self._get(key), callback)

    def set(
        self,
        key: LogicalKey,
        value: Any = MISSING,
        ttl: Optional[Duration] = None,
        callback: Optional[Callback] = None,
    ) -> Any:
        """Set an entry. Setting ``MISSING`` succeeds without writing."""
        ttl, callback = _callback_in_slot(ttl, callback)
        validate_key(key)
        seconds = self._ttl(ttl)
        return self._invoke(lambda: self._set(key, value, seconds), callback)

    def delete(self, key: LogicalKey = "", callback: Optional[Callback] = None) -> Any:
        """Delete an entry; the empty key addresses the namespace root."""
        if callback is None and callable(key):
            key, callback = "", key
        validate_key(key)
        return self._invoke(lambda: self._delete(key), callback)

    def clear(self, callback: Optional[Callback] = None) -> Any:
        """Clear all entries held by the engine."""
        return self._invoke(self._clear, callback)

    def cache(
        self,
        key: LogicalKey,
        data: Any,
        ttl: Optional[Duration] = None,
        callback: Optional[Callback] = None,
    ) -> Any:
        """Write ``data`` unless the key is already cached.

        Middleware runs on every call and may veto the write with an error or
        force it with new data or TTL.
        """
        ttl, callback = _callback_in_slot(ttl, callback)
        validate_key(key)
        self._ttl(ttl)
        return self._invoke(lambda: self._cache(key, data, ttl), callback)

    def wrap(
        self,
        key: LogicalKey,
        work: Any,
        ttl: Any = None,
        callback: Optional[Callback] = None,
    ) -> Any:
        """Wraps a function in cache.

        The first time the function is run its result is stored, so later
        calls read from the cache instead of calling it again. ``work`` is
        either ``work(done)`` calling ``done(err, value)``, or ``work()``
        returning a value or an awaitable. ``work`` and ``ttl`` may be passed
        in either order.
        """
        if not callable(work) and callable(ttl):
            work, ttl = ttl, work
        if not callable(work):
            raise TypeError("work must be callable")
        ttl, callback = _callback_in_slot(ttl, callback)

        validate_key(key)
        seconds = self._ttl(ttl)
        return self._invoke(lambda: self._wrap(key, work, seconds), callback)

    async def close(self) -> None:
        """Release engine resources where the engine holds any."""
        close = getattr(self._engine, "close", None)
        if callable(close):
            result = close()
            if inspect.isawaitable(result):
                await result

    async def _get(self, key: LogicalKey) -> Any:
        physical = self.key(key)
        value = await self._engine.get(physical)
        self.logger.debug("Cache lookup", key=physical, hit=value is not MISSING)
        return value

    async def _set(self, key: LogicalKey, value: Any, ttl: int) -> Any:
        if value is MISSING:
            return MISSING
        return await self._engine.set(self.key(key), value, ttl)

    async def _delete(self, key: LogicalKey) -> None:
        await self._engine.delete(self.key(key))

    async def _clear(self) -> None:
        await self._engine.clear()
        self.logger.debug("Cache cleared", prefix=self.prefix)

    async def _cache(self, key: LogicalKey, data: Any, ttl: Optional[Duration]) -> Any:
        get_error = None
        try:
            cached = await self._get(key)
        except Exception as exc:
            get_error, cached = exc, MISSING

        # Middleware runs even when the read failed; the read error wins.
        try:
            result: StageResult = await self._middleware.run(key, cached, ttl)
        except Exception:
            if get_error is not None:
                raise get_error
            raise
        if get_error is not None:
            raise get_error

        force = result.force
        if result.data is not MISSING:
            data = result.data
            force = True
        if result.ttl is not MISSING:
            ttl = result.ttl
            force = True

        if cached is MISSING or force:
            return await self._set(key, data, self._ttl(ttl))

        return cached

    async def _wrap(self, key: LogicalKey, work: Callable, ttl: int) -> Any:
        if self.options.disabled:
            return await self._produce(work)

        cached = await self._get(key)
        if cached is not MISSING:
            return cached

        value = await self._produce(work)
        await self._set(key, value, ttl)
        return value

    async def _produce(self, work: Callable) -> Any:
        if required_positional_count(work) >= 1:
            done = Completion("wrap")
            returned = work(done)
            if inspect.isawaitable(returned):
                returned = await returned
            if returned is not None:
                done.consume()
                raise CachemanError(
                    "WRAP_RETURN_VALUE",
                    "return value cannot be used when callback argument is used",
                )
            values = await done.wait()
            return values[0] if values else MISSING

        value = work()
        if inspect.isawaitable(value):
            value = await value
        return value
