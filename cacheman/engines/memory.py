"""
In-process LRU engine with per-entry expiry.
"""

import json
from collections import OrderedDict
from dataclasses import dataclass
from time import monotonic
from typing import Any, Optional

from shared.config import CachemanSettings
from shared.errors import StoreError
from shared.logging import get_logger
from ..types import MISSING


@dataclass
class _Entry:
    """Stored payload with its expiry deadline."""

    payload: str
    expires_at: Optional[float]


class MemoryEngine:
    """LRU map bounded by ``count`` entries.

    Values are stored as JSON so callers never share mutable state with the
    cache. A TTL of 0 stores the entry without expiry.
    """

    def __init__(self, count: int = 1000):
        self._data: "OrderedDict[str, _Entry]" = OrderedDict()
        self._maxsize = count
        self.logger = get_logger("cacheman.engines.memory")

    @classmethod
    def from_settings(cls, settings: CachemanSettings, cache: Any = None) -> "MemoryEngine":
        return cls(count=settings.count)

    def __len__(self) -> int:
        return len(self._data)

    async def get(self, key: str) -> Any:
        entry = self._data.get(key)
        if entry is None:
            return MISSING

        if entry.expires_at is not None and monotonic() >= entry.expires_at:
            del self._data[key]
            return MISSING

        self._data.move_to_end(key)
        return json.loads(entry.payload)

    async def set(self, key: str, value: Any, ttl: int) -> Any:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StoreError("Value is not JSON serializable", {"key": key, "error": str(exc)})

        if key in self._data:
            del self._data[key]
        elif len(self._data) >= self._maxsize:
            evicted, _ = self._data.popitem(last=False)
            self.logger.debug("Evicted least recently used entry", key=evicted)

        expires_at = monotonic() + ttl if ttl else None
        self._data[key] = _Entry(payload=payload, expires_at=expires_at)
        return value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()
