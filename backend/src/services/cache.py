import fnmatch
import json
import time
from typing import Any, Callable, Optional
import redis.asyncio as redis
from redis.exceptions import RedisError
from shared.config import Config
import logging

logger = logging.getLogger(__name__)


class InMemoryCache:
    """Простой in-memory кэш с TTL (временем жизни)"""

    def __init__(self, ttl: int = 300, clock: Callable[[], float] = time.monotonic):
        self._cache: dict = {}
        self._ttl = ttl
        self._clock = clock

    async def get(self, key: str) -> Optional[Any]:
        if key not in self._cache:
            return None
        value, expires_at = self._cache[key]
        if self._clock() >= expires_at:
            del self._cache[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        self._cache[key] = (value, self._clock() + (ttl or self._ttl))
        return True

    async def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    async def clear_pattern(self, pattern: str) -> int:
        keys = [k for k in self._cache if fnmatch.fnmatch(k, pattern)]
        for key in keys:
            del self._cache[key]
        return len(keys)


class RedisCache:
    """Кэш аналитики в Redis; ключи хранятся с префиксом, значения в JSON.

    Ошибки Redis не роняют запрос: промах кэша, статистика считается заново.
    """

    def __init__(self, redis_url: str, ttl: int = 300, prefix: str = "food_reviews"):
        self.redis = redis.from_url(redis_url, decode_responses=True)
        self._ttl = ttl
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.redis.get(self._key(key))
        except RedisError as e:
            logger.error(f"Analytics cache unavailable on get {key}: {e}")
            return None
        return json.loads(raw) if raw else None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            await self.redis.set(self._key(key), json.dumps(value, default=str), ex=ttl or self._ttl)
        except RedisError as e:
            logger.error(f"Analytics cache unavailable on set {key}: {e}")
            return False
        return True

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self.redis.delete(self._key(key)))
        except RedisError as e:
            logger.error(f"Analytics cache unavailable on delete {key}: {e}")
            return False

    async def clear_pattern(self, pattern: str) -> int:
        """Удалить ключи по glob-паттерну (через SCAN)"""
        removed = 0
        try:
            async for full_key in self.redis.scan_iter(match=self._key(pattern)):
                removed += await self.redis.delete(full_key)
        except RedisError as e:
            logger.error(f"Analytics cache unavailable on clear {pattern}: {e}")
        return removed


def build_cache(settings: Config):
    """Кэш аналитики по настройке ANALYTICS_CACHE_BACKEND"""
    if settings.ANALYTICS_CACHE_BACKEND == "redis":
        return RedisCache(settings.REDIS_URL, ttl=settings.ANALYTICS_CACHE_TTL)
    return InMemoryCache(ttl=settings.ANALYTICS_CACHE_TTL)
