"""
Core value types shared across the cache façade.
"""

from typing import Any, NamedTuple, Protocol, runtime_checkable


class _Missing:
    """Marker for "no value", distinct from ``None``, ``0`` and ``False``."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "<MISSING>"

    def __reduce__(self):
        return (_Missing, ())


MISSING: Any = _Missing()


def is_missing(value: Any) -> bool:
    """Check whether a value signals absence."""
    return value is MISSING


class StageResult(NamedTuple):
    """Override emitted by a middleware stage.

    Fields left as ``MISSING`` keep the value from the previous stage.
    """

    data: Any = MISSING
    ttl: Any = MISSING
    force: bool = False


@runtime_checkable
class StoreCapability(Protocol):
    """Four-operation contract every storage engine provides.

    ``get`` returns ``MISSING`` for keys that were never written or have
    expired; it never raises for a miss.
    """

    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any, ttl: int) -> Any: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> None: ...
