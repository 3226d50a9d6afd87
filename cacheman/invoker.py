"""
Dual-mode invocation: completion callbacks or awaitables over one coroutine.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Set, Tuple

from shared.errors import PromiseUnavailableError
from shared.logging import get_logger
from .types import MISSING

Operation = Callable[[], Awaitable[Any]]
Callback = Callable[[Optional[BaseException], Any], Any]
PromiseFactory = Callable[[Awaitable[Any]], Awaitable[Any]]


def _ambient_promise_factory() -> Optional[PromiseFactory]:
    """Return ``asyncio.ensure_future`` when an event loop is running."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return None
    return asyncio.ensure_future


class DualModeInvoker:
    """Presents an operation either through ``callback(err, result)`` or as an awaitable.

    The work runs through the same coroutine in both modes. Callbacks fire
    exactly once, after the operation has settled; ``err`` is ``None`` on
    success and ``result`` is ``MISSING`` on failure.
    """

    def __init__(self, owner: Any, promise: Optional[PromiseFactory] = None):
        self.owner = owner
        self.promise = promise
        self.logger = get_logger("cacheman.invoker")
        self._pending: Set[asyncio.Task] = set()

    def __call__(self, operation: Operation, callback: Optional[Callback] = None) -> Any:
        if callback is not None:
            if not callable(callback):
                raise TypeError("callback must be callable")
            self._dispatch(operation, callback)
            return self.owner

        factory = self.promise or _ambient_promise_factory()
        if factory is None:
            raise PromiseUnavailableError()
        return factory(operation())

    def _dispatch(self, operation: Operation, callback: Callback) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to schedule on. The private loop is closed before the
            # callback runs, so calls made from the callback get their own.
            callback(*asyncio.run(self._settle(operation)))
            return

        task = loop.create_task(self._deliver(operation, callback))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _settle(self, operation: Operation) -> Tuple[Optional[BaseException], Any]:
        try:
            return None, await operation()
        except Exception as exc:
            self.logger.debug("Operation failed, notifying callback", error=str(exc))
            return exc, MISSING

    async def _deliver(self, operation: Operation, callback: Callback) -> None:
        callback(*await self._settle(operation))

