"""Redis-backed CacheStore."""

from __future__ import annotations

import logging

from redis.asyncio import Redis

from .cache import CacheStore

logger = logging.getLogger(__name__)


class RedisCacheStore(CacheStore):
    """CacheStore on top of a shared Redis instance.

    Entries expire server-side (``SET key value EX ttl``), so several
    broadcaster processes pointed at the same Redis share one upstream budget.
    """

    def __init__(self, redis_url: str | None = None, client: Redis | None = None) -> None:
        if client is None:
            if not redis_url:
                raise ValueError("Either redis_url or client is required")
            client = Redis.from_url(redis_url, decode_responses=True)
        self._redis = client
        logger.info("Redis cache store created")

    async def get(self, key: str) -> str | None:
        value = await self._redis.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.set(key, value, ex=ttl_seconds)

    async def close(self) -> None:
        await self._redis.aclose()
        logger.info("Redis cache store closed")
