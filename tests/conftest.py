"""
Shared fixtures for otp_core tests.
"""

import asyncio
from typing import List, Optional, Tuple

import pytest

from otp_core.clock import FrozenClock
from otp_core.config import OTPConfig, RateLimitConfig
from otp_core.providers.base import DeliveryChannel
from otp_core.service import OtpService
from otp_core.store.in_memory import InMemoryStore


class RecordingChannel(DeliveryChannel):
    """Delivery channel that records sends instead of performing them."""

    name = "recording"

    def __init__(self, result: bool = True, delay: float = 0.0, error: Optional[Exception] = None):
        self.result = result
        self.delay = delay
        self.error = error
        self.calls: List[Tuple[str, str, str]] = []

    async def send(self, phone: str, code: str, message: str) -> bool:
        self.calls.append((phone, code, message))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def store(clock):
    return InMemoryStore(clock=clock)


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def make_service(store, channel, clock):
    """Build an OtpService; rate limiting is off unless passed in."""

    def _make(**overrides) -> OtpService:
        overrides.setdefault("rate_limit", RateLimitConfig(enabled=False))
        return OtpService(OTPConfig(**overrides), store, channel, clock=clock)

    return _make
