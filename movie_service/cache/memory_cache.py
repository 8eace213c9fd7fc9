"""
In-process cache store for movie data.

Keeps cache entries in a plain dict guarded by an asyncio lock.
Expired entries are not swept; the caching repository ignores them
and overwrites them on the next successful fetch.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Dict, Optional

from ..domain.entities import MovieKey
from .cache_store import CacheEntry, ICacheStore

logger = logging.getLogger(__name__)


class MemoryCacheStore(ICacheStore):
    """
    In-memory store for movie cache entries.

    The lock is held only for the dict access itself, so a slow upstream
    fetch for one key never blocks lookups for other keys.

    Attributes:
        entries: Mapping of key to cache entry
    """

    name = "memory"

    def __init__(self):
        """Initialize an empty store."""
        self.entries: Dict[MovieKey, CacheEntry] = {}
        self._lock = asyncio.Lock()

        logger.info("Initialized MemoryCacheStore")

    async def get(self, key: MovieKey) -> Optional[CacheEntry]:
        async with self._lock:
            return self.entries.get(key)

    async def set(self, key: MovieKey, entry: CacheEntry, ttl: timedelta) -> None:
        async with self._lock:
            self.entries[key] = entry

    async def delete(self, key: MovieKey) -> None:
        async with self._lock:
            self.entries.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            count = len(self.entries)
            self.entries.clear()
        logger.info(f"Cleared {count} items from cache")

    async def size(self) -> int:
        async with self._lock:
            return len(self.entries)
