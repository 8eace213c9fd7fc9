"""
Tests for the Redis cache store.
"""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from movie_service.cache.cache_store import CacheEntry
from movie_service.cache.redis_cache import RedisCacheStore
from movie_service.domain.exceptions import CacheBackendException

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
TTL = timedelta(minutes=5)


@pytest.fixture
def redis_mock():
    return AsyncMock()


@pytest.fixture
def redis_store(redis_mock):
    return RedisCacheStore(redis_mock)


@pytest.fixture
def entry(sample_movie):
    return CacheEntry(movie=sample_movie, created_at=NOW)


class TestRedisCacheStore:
    """Test Redis store operations."""

    def test_build_cache_key(self, redis_store):
        assert redis_store._build_cache_key(42) == "movie:42"
        assert redis_store._build_cache_key("Inception") == "movie:Inception"

    @pytest.mark.asyncio
    async def test_set_uses_ttl_expiry(self, redis_store, redis_mock, entry):
        await redis_store.set(7, entry, TTL)

        redis_mock.set.assert_awaited_once()
        args, kwargs = redis_mock.set.call_args
        assert args[0] == "movie:7"
        assert kwargs["ex"] == 300
        payload = json.loads(args[1])
        assert payload["created_at"] == NOW.isoformat()
        assert payload["movie"]["title"] == "Inception"
        assert payload["movie"]["release_date"] == "2010-07-16"

    @pytest.mark.asyncio
    async def test_sub_second_ttl_rounds_up(self, redis_store, redis_mock, entry):
        await redis_store.set(7, entry, timedelta(milliseconds=200))

        assert redis_mock.set.call_args.kwargs["ex"] == 1

    @pytest.mark.asyncio
    async def test_get_round_trip(self, redis_store, redis_mock, entry, sample_movie):
        redis_mock.get.return_value = json.dumps(redis_store._serialize_entry(entry)).encode()

        cached = await redis_store.get(7)

        redis_mock.get.assert_awaited_once_with("movie:7")
        assert cached.movie == sample_movie
        assert cached.created_at == NOW

    @pytest.mark.asyncio
    async def test_get_missing(self, redis_store, redis_mock):
        redis_mock.get.return_value = None

        assert await redis_store.get(7) is None

    @pytest.mark.asyncio
    async def test_undecodable_payload_is_treated_as_absent(self, redis_store, redis_mock):
        redis_mock.get.return_value = b"not-json"

        assert await redis_store.get(7) is None

    @pytest.mark.asyncio
    async def test_get_error_raises_backend_exception(self, redis_store, redis_mock):
        redis_mock.get.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(CacheBackendException) as exc_info:
            await redis_store.get(7)

        assert exc_info.value.details["operation"] == "get"

    @pytest.mark.asyncio
    async def test_set_error_raises_backend_exception(self, redis_store, redis_mock, entry):
        redis_mock.set.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(CacheBackendException):
            await redis_store.set(7, entry, TTL)

    @pytest.mark.asyncio
    async def test_delete(self, redis_store, redis_mock):
        await redis_store.delete(7)

        redis_mock.delete.assert_awaited_once_with("movie:7")

    @pytest.mark.asyncio
    async def test_delete_error_raises_backend_exception(self, redis_store, redis_mock):
        redis_mock.delete.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(CacheBackendException):
            await redis_store.delete(7)

    @pytest.mark.asyncio
    async def test_size_and_clear_scan_prefix(self, redis_store, redis_mock):
        async def scan_iter(match):
            assert match == "movie:*"
            for key in (b"movie:1", b"movie:2"):
                yield key

        redis_mock.scan_iter = MagicMock(side_effect=scan_iter)

        assert await redis_store.size() == 2

        await redis_store.clear()
        redis_mock.delete.assert_awaited_once_with(b"movie:1", b"movie:2")
