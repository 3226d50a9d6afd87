"""
Helpers for user-supplied callables: arity probing and one-shot completions.
"""

import asyncio
import inspect
from typing import Any, Callable, Optional, Tuple

from shared.errors import CachemanError, DoubleCompletionError
from shared.logging import get_logger

logger = get_logger("cacheman.callables")

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def _callback_error(err: Any) -> BaseException:
    return CachemanError("CALLBACK_ERROR", str(err), {"error": repr(err)})


def required_positional_count(fn: Callable) -> int:
    """Count positional parameters that have no default.

    Callables whose signature cannot be inspected count as zero.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return 0

    count = 0
    for param in signature.parameters.values():
        if param.kind in _POSITIONAL and param.default is inspect.Parameter.empty:
            count += 1
    return count


class Completion:
    """Node-style ``done(err, *values)`` callback that settles a future once.

    Calling it a second time raises DoubleCompletionError at the call site.
    """

    def __init__(
        self,
        name: str,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        error_factory: Optional[Callable[[Any], BaseException]] = None,
    ):
        self.name = name
        self._error_factory = error_factory or _callback_error
        self._loop = loop or asyncio.get_running_loop()
        self.future: asyncio.Future = self._loop.create_future()
        self._called = False

    def __call__(self, err: Any = None, *values: Any) -> None:
        if self._called:
            logger.error("Completion callback invoked twice", callback=self.name)
            raise DoubleCompletionError(f"{self.name} callback called twice")
        self._called = True

        if err is not None:
            self._loop.call_soon_threadsafe(self._settle_error, err)
        else:
            self._loop.call_soon_threadsafe(self._settle_result, values)

    def _settle_error(self, err: Any) -> None:
        if not isinstance(err, BaseException):
            err = self._error_factory(err)
        if not self.future.done():
            self.future.set_exception(err)

    def _settle_result(self, values: Tuple[Any, ...]) -> None:
        if not self.future.done():
            self.future.set_result(values)

    def consume(self) -> None:
        """Mark the completion used so any later call is reported."""
        self._called = True

    async def wait(self) -> Tuple[Any, ...]:
        return await self.future
