"""
Middleware chain executed before cache-aside writes.
"""

import inspect
from typing import Any, Callable, List

from shared.errors import MiddlewareError
from shared.logging import get_logger
from .callables import Completion, required_positional_count
from .types import MISSING, StageResult

Stage = Callable[..., Any]

# Stages taking (key, data, ttl, next) signal completion through ``next``
CALLBACK_STAGE_ARITY = 4


def _as_stage_result(value: Any) -> StageResult:
    """Coerce a callback-free stage's return value."""
    if value is None:
        return StageResult()
    if isinstance(value, StageResult):
        return value
    if isinstance(value, tuple):
        return StageResult(*value)
    raise TypeError(
        "Middleware must return None, a StageResult or a (data, ttl, force) tuple, "
        f"got {type(value).__name__}"
    )


class MiddlewareChain:
    """Ordered, append-only list of interceptor stages.

    Each stage sees the data and TTL as overridden by the stages before it.
    A stage either signals an error, which aborts the chain, or returns
    optional overrides. Overrides left as ``MISSING`` keep earlier values.

    Stages appended while a run is in flight are not seen by that run.
    """

    def __init__(self):
        self._stages: List[Stage] = []
        self.logger = get_logger("cacheman.middleware")

    def __len__(self) -> int:
        return len(self._stages)

    def append(self, stage: Stage) -> None:
        if not callable(stage):
            raise TypeError("Middleware stage must be callable")
        self._stages.append(stage)

    async def run(self, key: str, data: Any, ttl: Any) -> StageResult:
        """Run all stages in registration order and merge their overrides."""
        stages = list(self._stages)
        if not stages:
            return StageResult()

        override_data = MISSING
        override_ttl = MISSING
        force = False

        for index, stage in enumerate(stages):
            result = await self._invoke(stage, key, data, ttl)

            if result.data is not MISSING:
                override_data = data = result.data
            if result.ttl is not MISSING:
                override_ttl = ttl = result.ttl
            force = force or bool(result.force)

            self.logger.debug(
                "Middleware stage completed",
                stage=index,
                key=key,
                data_override=result.data is not MISSING,
                ttl_override=result.ttl is not MISSING,
            )

        return StageResult(override_data, override_ttl, force)

    async def _invoke(self, stage: Stage, key: str, data: Any, ttl: Any) -> StageResult:
        if required_positional_count(stage) >= CALLBACK_STAGE_ARITY:
            return await self._invoke_callback_stage(stage, key, data, ttl)

        value = stage(key, data, ttl)
        if inspect.isawaitable(value):
            value = await value
        return _as_stage_result(value)

    async def _invoke_callback_stage(self, stage: Stage, key: str, data: Any, ttl: Any) -> StageResult:
        completion = Completion("middleware", error_factory=MiddlewareError)

        def next_(err=None, data=MISSING, ttl=MISSING, force=False):
            completion(err, data, ttl, force)

        returned = stage(key, data, ttl, next_)
        if inspect.isawaitable(returned):
            await returned

        try:
            return StageResult(*await completion.wait())
        except Exception as exc:
            self.logger.debug("Middleware short-circuited", key=key, error=str(exc))
            raise
