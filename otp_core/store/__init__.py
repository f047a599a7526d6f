"""
Expiring Stores
===============
Store interface plus in-memory and Redis implementations.
"""

from .base import ExpiringStore
from .in_memory import InMemoryStore
from .redis_store import RedisStore

__all__ = [
    "ExpiringStore",
    "InMemoryStore",
    "RedisStore",
]
