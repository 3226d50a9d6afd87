"""
Redis engine for shared caches.
"""

import json
import re
from typing import Any, Optional

import redis.asyncio as redis

from shared.config import CachemanSettings
from shared.errors import StoreError
from shared.logging import get_logger
from ..types import MISSING

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters."""
    return _GLOB_SPECIAL.sub(r"\\\1", value)


class RedisEngine:
    """Stores JSON-encoded values with ``SETEX``.

    ``clear`` removes only keys under ``prefix``, so several namespaces can
    share a database.
    """

    def __init__(self, redis_url: str, prefix: str = "", client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.prefix = prefix
        self.logger = get_logger("cacheman.engines.redis")
        self._redis: Optional[redis.Redis] = client

    @classmethod
    def from_settings(cls, settings: CachemanSettings, cache: Any = None) -> "RedisEngine":
        prefix = cache.prefix if cache is not None else ""
        return cls(settings.redis_url, prefix=prefix)

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def get(self, key: str) -> Any:
        redis_client = await self._get_redis()
        cached_data = await redis_client.get(key)
        if cached_data is None:
            return MISSING

        try:
            return json.loads(cached_data)
        except ValueError as exc:
            raise StoreError("Cached payload is not valid JSON", {"key": key, "error": str(exc)})

    async def set(self, key: str, value: Any, ttl: int) -> Any:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StoreError("Value is not JSON serializable", {"key": key, "error": str(exc)})

        redis_client = await self._get_redis()
        if ttl:
            await redis_client.setex(key, ttl, payload)
        else:
            await redis_client.set(key, payload)

        self.logger.debug("Cached value", key=key, ttl=ttl)
        return value

    async def delete(self, key: str) -> None:
        redis_client = await self._get_redis()
        await redis_client.delete(key)

    async def clear(self) -> None:
        redis_client = await self._get_redis()
        pattern = f"{escape_glob(self.prefix)}*"
        keys = [key async for key in redis_client.scan_iter(match=pattern)]

        if keys:
            await redis_client.delete(*keys)
            self.logger.info("Cleared cache namespace", pattern=pattern, keys_count=len(keys))

    async def close(self) -> None:
        """Release the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
