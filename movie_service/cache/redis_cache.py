"""
Redis cache store for movie data.

Entries are stored as JSON under ``movie:<key>`` with a native Redis
expiry equal to the cache TTL, so stale keys also disappear server-side.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..domain.entities import Movie, MovieKey
from ..domain.exceptions import CacheBackendException
from .cache_store import CacheEntry, ICacheStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "movie:"


class RedisCacheStore(ICacheStore):
    """
    Redis implementation of the movie cache store.

    Shares cached movies between workers that point at the same Redis.
    """

    name = "redis"

    def __init__(self, redis_client: redis.Redis, key_prefix: str = KEY_PREFIX):
        """
        Initialize Redis store.

        Args:
            redis_client: Async Redis client
            key_prefix: Prefix for every cache key
        """
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _build_cache_key(self, key: MovieKey) -> str:
        """
        Build cache key.

        Returns:
            Cache key in format: movie:{key}
        """
        return f"{self.key_prefix}{key}"

    async def get(self, key: MovieKey) -> Optional[CacheEntry]:
        cache_key = self._build_cache_key(key)
        try:
            cached_data = await self.redis.get(cache_key)
        except RedisError as e:
            raise CacheBackendException("get", str(e)) from e

        if not cached_data:
            return None

        try:
            return self._deserialize_entry(json.loads(cached_data))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding undecodable cache payload for {cache_key}: {e}")
            return None

    async def set(self, key: MovieKey, entry: CacheEntry, ttl: timedelta) -> None:
        cache_key = self._build_cache_key(key)
        payload = json.dumps(self._serialize_entry(entry))
        ttl_seconds = max(int(ttl.total_seconds()), 1)

        try:
            await self.redis.set(cache_key, payload, ex=ttl_seconds)
        except RedisError as e:
            raise CacheBackendException("set", str(e)) from e

        logger.debug(f"Saved to Redis: {cache_key} (TTL: {ttl_seconds}s)")

    async def delete(self, key: MovieKey) -> None:
        cache_key = self._build_cache_key(key)
        try:
            await self.redis.delete(cache_key)
        except RedisError as e:
            raise CacheBackendException("delete", str(e)) from e

    async def clear(self) -> None:
        try:
            keys = [k async for k in self.redis.scan_iter(match=f"{self.key_prefix}*")]
            if keys:
                await self.redis.delete(*keys)
        except RedisError as e:
            raise CacheBackendException("clear", str(e)) from e
        logger.info(f"Cleared {len(keys)} keys from Redis")

    async def size(self) -> int:
        try:
            count = 0
            async for _ in self.redis.scan_iter(match=f"{self.key_prefix}*"):
                count += 1
            return count
        except RedisError as e:
            raise CacheBackendException("size", str(e)) from e

    def _serialize_entry(self, entry: CacheEntry) -> dict:
        """Serialize cache entry to dict for JSON storage."""
        return {
            "movie": entry.movie.to_dict(),
            "created_at": entry.created_at.isoformat(),
        }

    def _deserialize_entry(self, data: dict) -> CacheEntry:
        """Deserialize dict to cache entry."""
        return CacheEntry(
            movie=Movie.from_dict(data["movie"]),
            created_at=datetime.fromisoformat(data["created_at"]),
        )
