"""Caching layer for per-user credit state.

Two interchangeable backends share the same async interface: an in-process
TTL cache for a single worker and a Redis cache for shared deployments. The
cache is never authoritative; every failure is treated as a miss.
"""
import json
import time
from typing import Any, Callable, Optional

import redis.asyncio as redis
import structlog

from styloren.config import settings

logger = structlog.get_logger(__name__)


class InMemoryCache:
    """Process-local cache with per-entry expiry."""

    def __init__(self, default_ttl: int | None = None, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl if default_ttl is not None else settings.credits_cache_ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found/expired
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("cache_miss", key=key)
            return None

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            logger.debug("cache_expired", key=key)
            return None

        logger.debug("cache_hit", key=key)
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (self._clock() + ttl, value)
        logger.debug("cache_set", key=key, ttl=ttl)
        return True

    async def delete(self, key: str) -> bool:
        deleted = self._entries.pop(key, None) is not None
        logger.debug("cache_delete", key=key, deleted=deleted)
        return deleted

    async def close(self) -> None:
        self._entries.clear()


class RedisCache:
    """Redis-based caching layer."""

    def __init__(self, url: str | None = None, default_ttl: int | None = None):
        """Initialize Redis connection settings; the client connects lazily."""
        self.url = url or str(settings.redis_url)
        self.default_ttl = default_ttl if default_ttl is not None else settings.credits_cache_ttl_seconds
        self.redis_client: Optional[redis.Redis] = None
        self._initialized = False

    async def _ensure_connection(self) -> redis.Redis:
        """
        Ensure Redis connection is established.

        Returns:
            Redis client instance
        """
        if not self._initialized or self.redis_client is None:
            try:
                self.redis_client = redis.from_url(
                    self.url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                )
                await self.redis_client.ping()
                self._initialized = True
                logger.info("redis_connected", url=self.url)
            except Exception as e:
                logger.error("redis_connection_failed", error=str(e))
                raise

        return self.redis_client

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found/expired
        """
        try:
            client = await self._ensure_connection()
            value = await client.get(key)

            if value is None:
                logger.debug("cache_miss", key=key)
                return None

            logger.debug("cache_hit", key=key)
            return json.loads(value)

        except Exception as e:
            logger.warning("cache_get_failed", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache as JSON.

        Returns:
            True if successful, False otherwise
        """
        ttl = self.default_ttl if ttl is None else ttl

        try:
            client = await self._ensure_connection()
            await client.setex(key, ttl, json.dumps(value))
            logger.debug("cache_set", key=key, ttl=ttl)
            return True

        except Exception as e:
            logger.warning("cache_set_failed", key=key, error=str(e))
            return False

    async def delete(self, key: str) -> bool:
        try:
            client = await self._ensure_connection()
            result = await client.delete(key)

            logger.debug("cache_delete", key=key, deleted=bool(result))
            return bool(result)

        except Exception as e:
            logger.warning("cache_delete_failed", key=key, error=str(e))
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            self._initialized = False
            logger.info("redis_closed")


def create_cache() -> InMemoryCache | RedisCache:
    """Build the cache backend selected in settings."""
    if settings.cache_backend == "redis":
        return RedisCache()
    return InMemoryCache()


# Global cache instance
cache = create_cache()


def cache_key(entity_type: str, entity_id: str, suffix: str = "") -> str:
    """
    Generate consistent cache key.

    Args:
        entity_type: Entity type (credits, profile, etc.)
        entity_id: Entity ID
        suffix: Optional suffix for variations

    Returns:
        Cache key string
    """
    if suffix:
        return f"{entity_type}:{entity_id}:{suffix}"
    return f"{entity_type}:{entity_id}"
