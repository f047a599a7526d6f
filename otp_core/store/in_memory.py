"""
In-Memory Expiring Store
========================
Dictionary-backed store for development and testing.
"""

import copy
from typing import Any, Dict, Optional, Tuple

import structlog

from ..clock import Clock, SystemClock
from .base import ExpiringStore

logger = structlog.get_logger(__name__)


class InMemoryStore(ExpiringStore):
    """
    Simple in-memory expiring store.

    For development and testing only.
    Use RedisStore when several processes share OTP state.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self._data: Dict[str, Tuple[Any, float]] = {}

    def _live(self, key: str) -> Optional[Tuple[Any, float]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry[1] <= self.clock.timestamp():
            del self._data[key]
            return None
        return entry

    async def get(self, key: str) -> Optional[Any]:
        entry = self._live(key)
        if entry is None:
            return None
        # Callers mutate what they read; hand out copies
        return copy.deepcopy(entry[0])

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            self._data.pop(key, None)
            return
        self._data[key] = (copy.deepcopy(value), self.clock.timestamp() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    def ttl(self, key: str) -> Optional[float]:
        """Seconds until key expires, or None when absent."""
        entry = self._live(key)
        if entry is None:
            return None
        return entry[1] - self.clock.timestamp()

    def flush(self) -> None:
        """Drop every key."""
        count = len(self._data)
        self._data.clear()
        logger.debug("In-memory store flushed", keys=count)
