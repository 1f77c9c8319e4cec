"""Response cache stores for public Reddit listings.

Two backends share one async interface (``get``, ``set``, ``ping``, ``close``):

- ``RedisCache``: shared across workers and restarts; used whenever
  ``REDIS_URL`` is configured.
- ``TTLCache``: in-process, capped at ``CACHE_MAX_ENTRIES``. Each uvicorn
  worker has its own instance, so with --workers 2 a listing may be fetched
  once per worker. Fine for local development.

Backend failures surface as ``CacheError``; callers decide whether to
absorb them.
"""

import json
import logging
import time
from typing import Any, Protocol

from cachetools import TLRUCache
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from config import Settings
from errors import CacheError

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class TTLCache:
    """Bounded in-process cache. Expired entries are swept on every ``set``;
    past ``maxsize`` an older entry is evicted."""

    def __init__(self, maxsize: int = 1024, clock=time.monotonic):
        self._store = TLRUCache(maxsize=maxsize, ttu=_expires_at, timer=clock)

    def __len__(self) -> int:
        return len(self._store)

    async def get(self, key: str) -> Any | None:
        item = self._store.get(key)
        return item[1] if item is not None else None

    async def set(self, key: str, value: Any, ttl_seconds: int = 60) -> None:
        self._store[key] = (ttl_seconds, value)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._store.clear()


def _expires_at(_key: str, item: tuple[int, Any], now: float) -> float:
    return now + item[0]


class RedisCache:
    """JSON values in Redis with per-key expiry."""

    def __init__(self, client: aioredis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(key)
        except RedisError as e:
            raise CacheError(f"GET {key} failed: {e}") from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise CacheError(f"GET {key} returned undecodable value: {e}") from e

    async def set(self, key: str, value: Any, ttl_seconds: int = 60) -> None:
        try:
            await self._client.set(key, json.dumps(value), ex=ttl_seconds)
        except (RedisError, TypeError) as e:
            raise CacheError(f"SET {key} failed: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            raise CacheError(f"PING failed: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()


def build_cache(settings: Settings) -> CacheStore | None:
    """Pick the cache backend from settings. Returns None when caching is off."""
    backend = settings.cache_backend.lower()
    if backend == "none":
        logger.warning("Response caching disabled (CACHE_BACKEND=none)")
        return None
    if backend == "redis":
        if not settings.redis_url:
            logger.warning("CACHE_BACKEND=redis but REDIS_URL is not set; caching disabled")
            return None
        logger.info("Redis response cache initialized")
        return RedisCache.from_url(settings.redis_url)
    if backend == "memory":
        logger.info("In-memory response cache initialized")
        return TTLCache(maxsize=settings.cache_max_entries)
    raise ValueError(f"Unknown CACHE_BACKEND: {settings.cache_backend}")
