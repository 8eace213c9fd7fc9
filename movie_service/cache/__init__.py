"""Cache module initialization."""

from .cache_store import CacheEntry, ICacheStore
from .memory_cache import MemoryCacheStore
from .redis_cache import RedisCacheStore

__all__ = ["CacheEntry", "ICacheStore", "MemoryCacheStore", "RedisCacheStore"]
