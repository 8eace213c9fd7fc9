"""
Cache backend interface for the movie repository cache.

A store maps a movie key to a CacheEntry. Stores know nothing about
staleness; the caching repository decides whether an entry is fresh.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..domain.entities import Movie, MovieKey


@dataclass(frozen=True)
class CacheEntry:
    """A cached movie and the instant it was stored."""

    movie: Movie
    created_at: datetime

    def age(self, now: datetime) -> timedelta:
        """Time elapsed since the entry was stored."""
        return now - self.created_at

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        """True while the entry is younger than the TTL."""
        return self.age(now) < ttl


class ICacheStore(ABC):
    """
    Abstract keyed store for cache entries.

    Implementations raise CacheBackendException on backend faults.
    """

    name: str = "cache"

    @abstractmethod
    async def get(self, key: MovieKey) -> Optional[CacheEntry]:
        """
        Get the entry stored under a key.

        Args:
            key: Movie key

        Returns:
            The stored entry, or None if absent
        """
        pass

    @abstractmethod
    async def set(self, key: MovieKey, entry: CacheEntry, ttl: timedelta) -> None:
        """
        Store an entry, overwriting any previous one.

        Args:
            key: Movie key
            entry: Entry to store
            ttl: Lifetime hint for backends with native expiry
        """
        pass

    @abstractmethod
    async def delete(self, key: MovieKey) -> None:
        """
        Remove the entry stored under a key, if any.

        Args:
            key: Movie key
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry."""
        pass

    @abstractmethod
    async def size(self) -> int:
        """Number of stored entries, fresh or stale."""
        pass
