"""
Redis Expiring Store
====================
Redis-backed store shared by every process issuing OTPs.
"""

import json
import logging
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..exceptions import StoreDataError, StoreError, StoreUnavailableError
from .base import ExpiringStore

logger = logging.getLogger(__name__)

_store_retry = retry(
    retry=retry_if_exception_type(StoreUnavailableError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


class RedisStore(ExpiringStore):
    """
    Expiring store on top of redis.asyncio.

    Values are stored as JSON strings with SET ... EX. Connection faults are
    retried here, inside the store client; once retries run out they surface
    as StoreUnavailableError.
    """

    def __init__(self, redis: Redis, namespace: str = ""):
        self.redis = redis
        self.namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "", **kwargs) -> "RedisStore":
        return cls(Redis.from_url(url, decode_responses=True, **kwargs), namespace=namespace)

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self.redis.aclose()

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def _map_exception(self, exc: RedisError, key: str) -> StoreError:
        if isinstance(exc, (RedisConnectionError, RedisTimeoutError)):
            return StoreUnavailableError(f"Redis unavailable: {exc}", key=key)
        return StoreError(f"Redis error: {exc}", key=key)

    @_store_retry
    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.redis.get(self._key(key))
        except RedisError as e:
            raise self._map_exception(e, key) from e

        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            return json.loads(raw)
        except ValueError as e:
            raise StoreDataError(f"Undecodable value: {e}", key=key) from e

    @_store_retry
    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            if ttl_seconds <= 0:
                await self.redis.delete(self._key(key))
                return
            await self.redis.set(self._key(key), json.dumps(value), ex=int(ttl_seconds))
        except RedisError as e:
            raise self._map_exception(e, key) from e

    @_store_retry
    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(self._key(key))
        except RedisError as e:
            raise self._map_exception(e, key) from e

    @_store_retry
    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.redis.exists(self._key(key)))
        except RedisError as e:
            raise self._map_exception(e, key) from e
