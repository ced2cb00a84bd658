# smis/core/cache.py
"""In-memory TTL cache and the Redis-backed cache manager."""
import asyncio
import json
import logging
import re
import time
from typing import Any, Dict, List, Optional, Tuple, Union
from datetime import timedelta

import redis.asyncio as redis

from .config import settings

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300


class TTLCache:
    """Key/value store where every entry expires after its own TTL.

    Expiry is lazy on read. When an event loop is running, ``set`` also
    schedules a timer that evicts the key at its deadline; re-setting a key
    cancels the previous timer. There is no size bound and no eviction
    policy other than TTL.
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL):
        self.default_ttl = default_ttl
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._cancel_timer(key)
        self._entries[key] = (value, time.monotonic() + ttl)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timers[key] = loop.call_later(ttl, self._expire, key)

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            self.delete(key)
            return default
        return value

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def delete(self, key: str) -> bool:
        self._cancel_timer(key)
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._entries.clear()

    def size(self) -> int:
        self._purge_expired()
        return len(self._entries)

    def keys(self) -> List[str]:
        self._purge_expired()
        return list(self._entries)

    def invalidate_pattern(self, pattern: str) -> int:
        """Drop every key matching the regular expression; returns the count"""
        regex = re.compile(pattern)
        matched = [key for key in self._entries if regex.search(key)]
        for key in matched:
            self.delete(key)
        return len(matched)

    def stats(self) -> Dict[str, Any]:
        keys = self.keys()
        return {"size": len(keys), "keys": keys}

    def _expire(self, key: str) -> None:
        # set() cancels the old handle, so a firing timer always owns the entry
        self._timers.pop(key, None)
        self._entries.pop(key, None)

    def _cancel_timer(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def _purge_expired(self) -> None:
        now = time.monotonic()
        for key in [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]:
            self.delete(key)


_MISSING = object()


class CacheManager:
    """Async cache facade over either the in-memory TTLCache or Redis."""

    def __init__(self, backend: str = "memory", redis_url: Optional[str] = None, default_ttl: int = DEFAULT_TTL):
        self.backend = backend
        self.redis_url = redis_url
        self.default_ttl = default_ttl
        self.memory = TTLCache(default_ttl)
        self.redis: Optional[redis.Redis] = None

    @staticmethod
    def make_key(*parts: Any) -> str:
        return ":".join(str(part) for part in parts)

    async def initialize(self):
        """Open the Redis connection when the redis backend is configured."""
        if self.backend == "redis" and not self.redis:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True
            )
            await self.redis.ping()
            logger.info("Redis cache connected")

    async def close(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.close()
            self.redis = None
        self.memory.clear()

    async def get(self, key: str) -> Optional[Any]:
        if self.backend != "redis":
            return self.memory.get(key)

        await self.initialize()
        try:
            value = await self.redis.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None
        return json.loads(value) if value is not None else None

    async def set(self, key: str, value: Any, ttl: Optional[Union[int, timedelta]] = None) -> bool:
        if isinstance(ttl, timedelta):
            ttl = int(ttl.total_seconds())
        ttl = ttl or self.default_ttl

        if self.backend != "redis":
            self.memory.set(key, value, ttl)
            return True

        await self.initialize()
        try:
            return bool(await self.redis.setex(key, ttl, json.dumps(value, default=str)))
        except redis.RedisError as e:
            logger.warning(f"Cache set failed for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        if self.backend != "redis":
            return self.memory.delete(key)

        await self.initialize()
        try:
            return bool(await self.redis.delete(key))
        except redis.RedisError as e:
            logger.warning(f"Cache delete failed for {key}: {e}")
            return False

    async def exists(self, key: str) -> bool:
        if self.backend != "redis":
            return self.memory.has(key)

        await self.initialize()
        try:
            return bool(await self.redis.exists(key))
        except redis.RedisError as e:
            logger.warning(f"Cache exists failed for {key}: {e}")
            return False

    async def delete_prefix(self, prefix: str) -> int:
        """Remove every key starting with prefix."""
        if self.backend != "redis":
            return self.memory.invalidate_pattern(f"^{re.escape(prefix)}")

        await self.initialize()
        deleted = 0
        try:
            async for key in self.redis.scan_iter(match=f"{prefix}*"):
                deleted += await self.redis.delete(key)
        except redis.RedisError as e:
            logger.warning(f"Cache prefix delete failed for {prefix}: {e}")
        return deleted

    async def clear(self):
        if self.backend != "redis":
            self.memory.clear()
            return
        await self.initialize()
        await self.redis.flushdb()


# Global cache instance
cache_manager = CacheManager(
    backend=settings.cache_backend,
    redis_url=settings.redis_url,
    default_ttl=settings.cache_ttl,
)
