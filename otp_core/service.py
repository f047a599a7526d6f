"""
OTP Service
===========
Lifecycle engine for issuing and verifying phone OTPs.

Generate checks run in a fixed order and the first denial wins:
rate limit, verification block, resend delay. Verify tracks failed
attempts on the stored record and blocks the phone once they run out.
"""

import asyncio
import secrets
from typing import Any, Mapping, Optional

import structlog

from .clock import Clock, SystemClock
from .config import OTPConfig
from .keys import block_key, mask_phone, otp_key, resend_key
from .locks import PhoneLocks
from .messages import MessageCatalog
from .models import MessageKind, OtpOutcome, OtpRecord, OtpResponseType
from .providers.base import DeliveryChannel
from .providers.registry import ProviderRegistry, default_registry
from .rate_limit import PhoneRateLimiter, seconds_until
from .store.base import ExpiringStore

logger = structlog.get_logger(__name__)


def generate_numeric_code(length: int) -> str:
    """Uniformly random numeric code, left-padded with zeros."""
    return str(secrets.randbelow(10 ** length)).zfill(length)


class OtpService:
    """
    OTP lifecycle engine.

    All per-phone state lives in the expiring store. Calls for the same
    phone are serialized in-process so attempt counting and the
    check-then-set around resend/block markers cannot interleave.
    """

    def __init__(
        self,
        config: OTPConfig,
        store: ExpiringStore,
        channel: DeliveryChannel,
        clock: Optional[Clock] = None,
        messages: Optional[MessageCatalog] = None,
    ):
        self.config = config.validate()
        self.store = store
        self.channel = channel
        self.clock = clock or SystemClock()
        self.messages = messages or MessageCatalog()
        self.rate_limiter = PhoneRateLimiter(store, config.rate_limit, self.clock)
        self._locks = PhoneLocks()

    @classmethod
    def from_config(
        cls,
        config: OTPConfig,
        store: ExpiringStore,
        registry: Optional[ProviderRegistry] = None,
        provider_settings: Optional[Mapping[str, Any]] = None,
        clock: Optional[Clock] = None,
        messages: Optional[MessageCatalog] = None,
    ) -> "OtpService":
        """Build a service whose channel is config.default_provider."""
        registry = registry or default_registry()
        channel = registry.create(config.default_provider, provider_settings)
        return cls(config, store, channel, clock=clock, messages=messages)

    async def close(self) -> None:
        await self.channel.close()

    # =========================================================================
    # Generate
    # =========================================================================

    async def generate(self, phone: str) -> OtpOutcome:
        """
        Issue a new code for phone and deliver it.

        Returns:
            OtpOutcome; denials carry retry_after
        """
        async with self._locks.hold(phone):
            denial = await self._check_generate(phone)
            if denial is not None:
                return denial

            record = await self._issue(phone)

            if self.config.rate_limit.enabled:
                await self.rate_limiter.record_request(phone)

        if record.is_test:
            logger.info("Test OTP issued", phone=mask_phone(phone))
            return self._sent_outcome()

        if not await self._deliver(phone, record.code):
            return OtpOutcome(
                success=False,
                message_kind=MessageKind.SEND_FAILED,
                message=self.messages.render(MessageKind.SEND_FAILED),
                response_type=OtpResponseType.SEND_FAILED,
            )

        logger.info(
            "OTP sent",
            phone=mask_phone(phone),
            provider=self.channel.name,
            expires_in=self.config.expiry_seconds,
        )
        return self._sent_outcome()

    async def _check_generate(self, phone: str) -> Optional[OtpOutcome]:
        if self.config.rate_limit.enabled:
            decision = await self.rate_limiter.check_and_admit(phone)
            if not decision.allowed:
                return OtpOutcome(
                    success=False,
                    message_kind=MessageKind.RATE_LIMIT_EXCEEDED,
                    message=self.messages.render(
                        MessageKind.RATE_LIMIT_EXCEEDED,
                        minutes=self.config.rate_limit.block_duration_minutes,
                    ),
                    response_type=OtpResponseType.RATE_LIMITED,
                    retry_after=decision.retry_after,
                )

        now = self.clock.timestamp()

        blocked_until = await self.store.get(block_key(phone))
        if blocked_until is not None:
            logger.warning("OTP generation blocked", phone=mask_phone(phone))
            return self._blocked_outcome(
                MessageKind.TOO_MANY_ATTEMPTS, seconds_until(blocked_until, now)
            )

        last_sent = await self.store.get(resend_key(phone))
        if last_sent is not None:
            elapsed = int(now - float(last_sent))
            remaining = max(0, self.config.resend_delay_seconds - elapsed)
            return OtpOutcome(
                success=False,
                message_kind=MessageKind.RESEND_DELAY_ACTIVE,
                message=self.messages.render(MessageKind.RESEND_DELAY_ACTIVE, seconds=remaining),
                response_type=OtpResponseType.RESEND_DELAY,
                retry_after=remaining,
            )

        return None

    async def _issue(self, phone: str) -> OtpRecord:
        is_test = self.config.uses_test_mode(phone)
        code = self.config.test_otp_code if is_test else generate_numeric_code(self.config.otp_length)
        record = OtpRecord(code=code, attempts=0, is_test=is_test)

        await self.store.put(otp_key(phone), record.to_dict(), self.config.expiry_seconds)
        await self.store.put(
            resend_key(phone), self.clock.timestamp(), self.config.resend_delay_seconds
        )
        return record

    async def _deliver(self, phone: str, code: str) -> bool:
        message = self.messages.sms_body(code, self.config.otp_expiry_minutes)
        try:
            sent = await asyncio.wait_for(
                self.channel.send(phone, code, message),
                timeout=self.config.delivery_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                "OTP delivery timed out",
                phone=mask_phone(phone),
                provider=self.channel.name,
                timeout=self.config.delivery_timeout_seconds,
            )
            return False
        except Exception:
            # Channels are expected to swallow transport errors; treat a
            # leaked one as a failed send.
            logger.exception(
                "OTP delivery raised", phone=mask_phone(phone), provider=self.channel.name
            )
            return False

        if not sent:
            logger.error("OTP delivery failed", phone=mask_phone(phone), provider=self.channel.name)
        return bool(sent)

    # =========================================================================
    # Verify
    # =========================================================================

    async def verify(self, phone: str, code: str) -> OtpOutcome:
        """
        Check a submitted code against the outstanding one.

        Returns:
            OtpOutcome; wrong codes carry remaining_attempts
        """
        async with self._locks.hold(phone):
            return await self._verify(phone, code)

    async def _verify(self, phone: str, code: str) -> OtpOutcome:
        now = self.clock.timestamp()
        data = await self.store.get(otp_key(phone))
        record = OtpRecord.from_dict(data) if data is not None else None
        blocked_until = await self.store.get(block_key(phone))

        if blocked_until is not None:
            return self._blocked_outcome(
                MessageKind.TOO_MANY_ATTEMPTS, seconds_until(blocked_until, now)
            )

        if record is not None and record.attempts >= self.config.max_attempts:
            return await self._block(phone, now)

        if record is None:
            return OtpOutcome(
                success=False,
                message_kind=MessageKind.EXPIRED_OR_NOT_FOUND,
                message=self.messages.render(MessageKind.EXPIRED_OR_NOT_FOUND),
            )

        if record.code == code:
            await self.store.delete(otp_key(phone))
            await self.store.delete(resend_key(phone))
            logger.info("OTP verified", phone=mask_phone(phone), test=record.is_test)
            return OtpOutcome(
                success=True,
                message_kind=MessageKind.OTP_VERIFIED,
                message=self.messages.render(MessageKind.OTP_VERIFIED),
                response_type=OtpResponseType.SUCCESS,
            )

        record.attempts += 1
        if record.attempts >= self.config.max_attempts:
            return await self._block(phone, now)

        await self.store.put(otp_key(phone), record.to_dict(), self.config.expiry_seconds)
        remaining = self.config.max_attempts - record.attempts
        logger.warning("Invalid OTP attempt", phone=mask_phone(phone), remaining=remaining)
        return OtpOutcome(
            success=False,
            message_kind=MessageKind.INVALID_OTP,
            message=self.messages.render(MessageKind.INVALID_OTP),
            remaining_attempts=remaining,
        )

    async def _block(self, phone: str, now: float) -> OtpOutcome:
        duration = self.config.block_duration_seconds
        await self.store.put(block_key(phone), now + duration, duration)
        await self.store.delete(otp_key(phone))
        logger.warning(
            "OTP attempts exhausted, phone blocked",
            phone=mask_phone(phone),
            blocked_for=duration,
        )
        return self._blocked_outcome(MessageKind.MAX_ATTEMPTS_EXCEEDED, duration)

    # =========================================================================
    # Outcomes
    # =========================================================================

    def _sent_outcome(self) -> OtpOutcome:
        return OtpOutcome(
            success=True,
            message_kind=MessageKind.OTP_SENT,
            message=self.messages.render(MessageKind.OTP_SENT),
            response_type=OtpResponseType.SUCCESS,
            expires_in=self.config.expiry_seconds,
        )

    def _blocked_outcome(self, kind: MessageKind, retry_after: int) -> OtpOutcome:
        return OtpOutcome(
            success=False,
            message_kind=kind,
            message=self.messages.render(kind),
            response_type=OtpResponseType.BLOCKED,
            retry_after=retry_after,
        )
