"""
Phone Rate Limiter
==================
Rolling one-hour request quota per phone number with its own block.
"""

import math
from typing import List, Optional

import structlog

from .clock import Clock, SystemClock
from .config import RateLimitConfig
from .keys import mask_phone, rate_block_key, request_log_key
from .models import RateLimitDecision
from .store.base import ExpiringStore

logger = structlog.get_logger(__name__)

WINDOW_SECONDS = 60 * 60
LOG_RETENTION_SECONDS = 24 * 60 * 60


def seconds_until(expires_at: Optional[float], now: float) -> int:
    """Whole seconds from now until expires_at, never negative."""
    if expires_at is None:
        return 0
    return max(0, int(math.ceil(float(expires_at) - now)))


class PhoneRateLimiter:
    """
    Sliding one-hour window over a per-phone request log.

    check_and_admit() never records anything; the caller invokes
    record_request() once it has decided a code will be issued.
    """

    def __init__(
        self,
        store: ExpiringStore,
        config: RateLimitConfig,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.config = config
        self.clock = clock or SystemClock()

    async def check_and_admit(self, phone: str) -> RateLimitDecision:
        """
        Decide whether a new code may be requested for phone.

        Args:
            phone: Phone number the request is for

        Returns:
            RateLimitDecision; denied decisions carry retry_after
        """
        now = self.clock.timestamp()

        blocked_until = await self.store.get(rate_block_key(phone))
        if blocked_until is not None:
            return RateLimitDecision.deny(seconds_until(blocked_until, now))

        recent = self._within(await self._load(phone), now - WINDOW_SECONDS)
        if len(recent) >= self.config.max_requests_per_hour:
            duration = self.config.block_duration_seconds
            await self.store.put(rate_block_key(phone), now + duration, duration)
            logger.warning(
                "Hourly OTP quota exceeded",
                phone=mask_phone(phone),
                requests=len(recent),
                limit=self.config.max_requests_per_hour,
                blocked_for=duration,
            )
            return RateLimitDecision.deny(duration)

        return RateLimitDecision.admit()

    async def record_request(self, phone: str) -> None:
        """Append the current time to the phone's request log."""
        now = self.clock.timestamp()
        entries = self._within(await self._load(phone), now - LOG_RETENTION_SECONDS)
        entries.append(now)
        await self.store.put(request_log_key(phone), entries, LOG_RETENTION_SECONDS)

    async def requests_in_window(self, phone: str) -> int:
        """Number of requests logged for phone within the trailing hour."""
        now = self.clock.timestamp()
        return len(self._within(await self._load(phone), now - WINDOW_SECONDS))

    async def _load(self, phone: str) -> List[float]:
        entries = await self.store.get(request_log_key(phone))
        return [float(ts) for ts in entries] if entries else []

    @staticmethod
    def _within(entries: List[float], since: float) -> List[float]:
        return [ts for ts in entries if ts > since]
