"""
Read-through, write-invalidate caching for movie repositories.

CachedMovieRepository wraps any IMovieRepository and implements the same
interface, so callers cannot tell it apart from the wrapped repository
except by latency.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List

from .. import metrics
from ..cache.cache_store import CacheEntry, ICacheStore
from ..domain.entities import Movie, MovieKey
from ..domain.exceptions import CacheBackendException
from .movie_repository import IMovieRepository

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Default clock for entry timestamps."""
    return datetime.now(timezone.utc)


class CachedMovieRepository(IMovieRepository):
    """
    Caching decorator around a movie repository.

    Caching strategy:
    1. Point reads are served from the store while the entry is younger
       than the TTL; otherwise the wrapped repository is called and a
       successful result is stored.
    2. Errors from the wrapped repository are never cached.
    3. A successful update or delete removes the key from the store before
       returning, even when the caller is cancelled part way through.
    4. List reads and creates bypass the store entirely.

    Cache backend faults are logged as warnings and never fail a call.
    """

    def __init__(
        self,
        next_repo: IMovieRepository,
        store: ICacheStore,
        ttl: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize caching repository.

        Args:
            next_repo: Repository holding the source of truth
            store: Cache backend owned by this decorator
            ttl: Maximum age of an entry served from the store
            clock: Time source for entry timestamps
        """
        if ttl <= timedelta(0):
            raise ValueError("Cache TTL must be positive")

        self.next_repo = next_repo
        self.store = store
        self._ttl = ttl
        self._clock = clock

        self.hits = 0
        self.misses = 0

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def fetch_by_key(self, key: MovieKey) -> Movie:
        """Serve a movie from cache, or fetch and cache it on a miss."""
        entry = await self._read_entry(key)

        if entry is not None and entry.is_fresh(self._clock(), self._ttl):
            self.hits += 1
            metrics.cache_hits_total.labels(cache_type=self.store.name).inc()
            logger.info(f"Cache HIT for movie: {key}")
            return entry.movie

        self.misses += 1
        metrics.cache_misses_total.labels(cache_type=self.store.name).inc()
        logger.info(f"Cache MISS for movie: {key}. Fetching from next repository...")

        movie = await self.next_repo.fetch_by_key(key)

        try:
            await self.store.set(key, CacheEntry(movie=movie, created_at=self._clock()), self._ttl)
            logger.debug(f"Stored movie '{key}' in cache")
        except CacheBackendException as e:
            self._record_backend_error("set", key, e)

        return movie

    async def fetch_all(self) -> List[Movie]:
        return await self.next_repo.fetch_all()

    async def create(self, movie: Movie) -> MovieKey:
        return await self.next_repo.create(movie)

    async def update(self, key: MovieKey, movie: Movie) -> None:
        await self._write_and_invalidate(key, self.next_repo.update(key, movie))

    async def delete(self, key: MovieKey) -> None:
        await self._write_and_invalidate(key, self.next_repo.delete(key))

    async def clear(self) -> None:
        """Drop every cached entry and reset the hit/miss counters."""
        await self.store.clear()
        self.hits = 0
        self.misses = 0

    async def get_stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dictionary with hit/miss counters and store details
        """
        total_requests = self.hits + self.misses
        hit_rate = (self.hits / total_requests * 100) if total_requests > 0 else 0.0

        try:
            size = await self.store.size()
        except CacheBackendException as e:
            self._record_backend_error("size", "*", e)
            size = None

        return {
            "backend": self.store.name,
            "ttl_seconds": int(self._ttl.total_seconds()),
            "size": size,
            "hits": self.hits,
            "misses": self.misses,
            "total_requests": total_requests,
            "hit_rate_percent": round(hit_rate, 2),
        }

    async def _read_entry(self, key: MovieKey):
        try:
            return await self.store.get(key)
        except CacheBackendException as e:
            self._record_backend_error("get", key, e)
            return None

    async def _write_and_invalidate(self, key: MovieKey, write: Awaitable[None]) -> None:
        """
        Run an upstream write, then drop the cached entry for its key.

        A write cancelled mid-flight may still have landed upstream, so the
        entry is dropped on cancellation as well. Failed writes leave the
        cache untouched.
        """
        try:
            await write
        except asyncio.CancelledError:
            await self._invalidate_to_completion(key)
            raise
        await self._invalidate_to_completion(key)

    async def _invalidate_to_completion(self, key: MovieKey) -> None:
        # Cancelling the caller must not leave the old entry behind
        invalidation = asyncio.ensure_future(self._invalidate(key))
        try:
            await asyncio.shield(invalidation)
        except asyncio.CancelledError:
            await asyncio.wait([invalidation])
            raise

    async def _invalidate(self, key: MovieKey) -> None:
        try:
            await self.store.delete(key)
        except CacheBackendException as e:
            self._record_backend_error("delete", key, e)
            return

        metrics.cache_invalidations_total.labels(cache_type=self.store.name).inc()
        logger.info(f"Cache invalidated for movie: {key}")

    def _record_backend_error(self, operation: str, key, error: CacheBackendException) -> None:
        metrics.cache_backend_errors_total.labels(
            cache_type=self.store.name, operation=operation
        ).inc()
        logger.warning(f"Warning: cache {operation} failed for movie {key}: {error.message}")
