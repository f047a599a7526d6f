"""
Per-Phone Locks
===============
In-process asyncio locks keyed by phone number.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class PhoneLocks:
    """
    Serializes coroutines working on the same phone number.

    A lock lives only while at least one coroutine holds or waits on it,
    so idle phone numbers do not accumulate.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, phone: str) -> AsyncIterator[None]:
        lock = self._locks.get(phone)
        if lock is None:
            lock = self._locks[phone] = asyncio.Lock()
        self._users[phone] = self._users.get(phone, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[phone] -= 1
            if self._users[phone] == 0:
                del self._users[phone]
                del self._locks[phone]

    def __len__(self) -> int:
        return len(self._locks)
