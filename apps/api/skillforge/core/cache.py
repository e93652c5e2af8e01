from __future__ import annotations

import json
import logging
import time
from collections.abc import Awaitable, Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

CacheValue = dict | list | str


class MemoryTTLCache:
    def __init__(self) -> None:
        self._store: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> CacheValue | None:
        entry = self._store.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if time.time() > expires_at:
            self._store.pop(key, None)
            return None
        return json.loads(value)

    async def set(self, key: str, value: CacheValue, ttl_seconds: int) -> None:
        self._store[key] = (time.time() + ttl_seconds, json.dumps(value))

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)


class CacheClient:
    """JSON cache on Redis, degrading to an in-process TTL store when Redis is unreachable."""

    def __init__(self, redis_url: str | None = None) -> None:
        self._redis_url = redis_url
        self._memory = MemoryTTLCache()
        self._redis: Redis | None = None

    @property
    def backend(self) -> str:
        return "redis" if self._redis else "memory"

    async def connect(self) -> None:
        if not self._redis_url:
            return
        try:
            client = Redis.from_url(self._redis_url, decode_responses=True)
            await client.ping()
            self._redis = client
            logger.info("Cache connected to Redis")
        except (RedisError, OSError):
            logger.warning("Redis unavailable at %s, using in-memory cache", self._redis_url)
            self._redis = None

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str):
        if self._redis:
            try:
                value = await self._redis.get(key)
                return json.loads(value) if value else None
            except RedisError:
                logger.warning("Redis get failed for %s", key, exc_info=True)
        return await self._memory.get(key)

    async def set(self, key: str, value: CacheValue, ttl_seconds: int = 300) -> None:
        serialized = json.dumps(value)
        if self._redis:
            try:
                await self._redis.set(name=key, value=serialized, ex=ttl_seconds)
                return
            except RedisError:
                logger.warning("Redis set failed for %s", key, exc_info=True)
        await self._memory.set(key, value, ttl_seconds)

    async def delete(self, key: str) -> None:
        if self._redis:
            try:
                await self._redis.delete(key)
            except RedisError:
                logger.warning("Redis delete failed for %s", key, exc_info=True)
        await self._memory.delete(key)

    async def remember(
        self,
        key: str,
        producer: Callable[[], Awaitable[CacheValue]],
        ttl_seconds: int = 300,
    ):
        cached = await self.get(key)
        if cached is not None:
            return cached
        fresh = await producer()
        await self.set(key, fresh, ttl_seconds)
        return fresh
