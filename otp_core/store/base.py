"""
Expiring Store Interface
========================
Key-value store with per-key time-to-live.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class ExpiringStore(ABC):
    """
    Abstract expiring key-value store.

    Values are JSON-compatible (dicts, lists, strings, numbers). A key whose
    TTL has elapsed reads as absent. Implementations raise
    StoreUnavailableError when the backend cannot be reached.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the value for key, or None when absent or expired."""
        pass

    @abstractmethod
    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store value under key, replacing any previous value and TTL."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """True when key holds an unexpired value."""
        pass
