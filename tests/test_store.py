"""
Unit Tests for expiring stores
==============================
In-memory TTL semantics and the Redis store's error mapping.
"""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from otp_core.exceptions import StoreDataError, StoreError, StoreUnavailableError
from otp_core.store import InMemoryStore, RedisStore


class TestInMemoryStore:
    """Tests for the in-memory store."""

    @pytest.mark.asyncio
    async def test_put_get_delete(self, store):
        """Basic key operations."""
        await store.put("otp:+1555", {"code": "1234"}, 60)

        assert await store.get("otp:+1555") == {"code": "1234"}
        assert await store.exists("otp:+1555") is True

        await store.delete("otp:+1555")
        await store.delete("otp:+1555")

        assert await store.get("otp:+1555") is None
        assert await store.exists("otp:+1555") is False

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, store, clock):
        """Keys read as absent once their TTL has elapsed."""
        await store.put("k", 1, 60)

        clock.advance(seconds=59)
        assert await store.exists("k") is True
        assert store.ttl("k") == 1

        clock.advance(seconds=1)
        assert await store.exists("k") is False
        assert store.ttl("k") is None

    @pytest.mark.asyncio
    async def test_put_replaces_ttl(self, store, clock):
        """Rewriting a key starts a fresh TTL."""
        await store.put("k", 1, 60)
        clock.advance(seconds=50)
        await store.put("k", 2, 60)
        clock.advance(seconds=50)

        assert await store.get("k") == 2

    @pytest.mark.asyncio
    async def test_zero_ttl_is_not_stored(self, store):
        """A zero TTL means the key is never visible."""
        await store.put("k", 1, 0)

        assert await store.exists("k") is False

    @pytest.mark.asyncio
    async def test_values_are_copied(self, store):
        """Mutating a read value must not change the stored one."""
        await store.put("k", {"attempts": 0}, 60)

        value = await store.get("k")
        value["attempts"] = 5

        assert (await store.get("k"))["attempts"] == 0

    @pytest.mark.asyncio
    async def test_flush(self, store):
        """flush() drops everything."""
        await store.put("a", 1, 60)
        await store.put("b", 2, 60)

        store.flush()

        assert await store.exists("a") is False
        assert await store.exists("b") is False

    def test_default_clock(self):
        """Without a clock the store uses the system clock."""
        from otp_core.clock import SystemClock

        assert isinstance(InMemoryStore().clock, SystemClock)


class TestRedisStore:
    """Tests for the Redis store with a mocked client."""

    @pytest.mark.asyncio
    async def test_get_decodes_json(self):
        """Values are JSON decoded, bytes or str."""
        redis = AsyncMock()
        redis.get.return_value = b'{"code": "1234", "attempts": 1}'
        store = RedisStore(redis)

        assert await store.get("otp:+1555") == {"code": "1234", "attempts": 1}
        redis.get.assert_awaited_once_with("otp:+1555")

    @pytest.mark.asyncio
    async def test_get_missing(self):
        """Missing keys read as None."""
        redis = AsyncMock()
        redis.get.return_value = None

        assert await RedisStore(redis).get("k") is None

    @pytest.mark.asyncio
    async def test_put_sets_expiry(self):
        """put() should SET with EX seconds."""
        redis = AsyncMock()
        store = RedisStore(redis, namespace="auth")

        await store.put("otp_requests:+1555", [1.0, 2.0], 86400)

        redis.set.assert_awaited_once_with(
            "auth:otp_requests:+1555", json.dumps([1.0, 2.0]), ex=86400
        )

    @pytest.mark.asyncio
    async def test_put_zero_ttl_deletes(self):
        """A zero TTL removes the key instead of writing it."""
        redis = AsyncMock()

        await RedisStore(redis).put("k", 1, 0)

        redis.delete.assert_awaited_once_with("k")
        redis.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exists(self):
        """exists() maps the integer reply to a bool."""
        redis = AsyncMock()
        redis.exists.return_value = 1

        assert await RedisStore(redis).exists("k") is True

    @pytest.mark.asyncio
    async def test_connection_error_retried_then_raised(self):
        """Connection faults are retried, then surface as StoreUnavailableError."""
        redis = AsyncMock()
        redis.get.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(StoreUnavailableError):
            await RedisStore(redis).get("k")

        assert redis.get.await_count == 3

    @pytest.mark.asyncio
    async def test_command_error_not_retried(self):
        """Other Redis errors surface as StoreError without retries."""
        redis = AsyncMock()
        redis.exists.side_effect = ResponseError("WRONGTYPE")

        with pytest.raises(StoreError) as exc_info:
            await RedisStore(redis).exists("k")

        assert not isinstance(exc_info.value, StoreUnavailableError)
        assert redis.exists.await_count == 1

    @pytest.mark.asyncio
    async def test_bad_json(self):
        """Undecodable values raise StoreDataError."""
        redis = AsyncMock()
        redis.get.return_value = "not-json{"

        with pytest.raises(StoreDataError):
            await RedisStore(redis).get("k")
