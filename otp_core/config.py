"""
OTP Configuration
=================
Immutable configuration for the OTP lifecycle engine.
"""

import os
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, Optional

from .exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _split_numbers(raw: Optional[str]) -> FrozenSet[str]:
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class RateLimitConfig:
    """Hourly request quota per phone number."""
    enabled: bool = True
    max_requests_per_hour: int = 5
    block_duration_minutes: int = 60

    @property
    def block_duration_seconds(self) -> int:
        return self.block_duration_minutes * 60


@dataclass(frozen=True)
class OTPConfig:
    """Configuration for OTP generation, verification and throttling."""
    default_provider: str = "twilio"
    otp_length: int = 4
    otp_expiry_minutes: int = 5
    max_attempts: int = 3
    resend_delay_seconds: int = 60
    block_duration_minutes: int = 30  # after max attempts
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    # Test mode
    test_mode: bool = False
    test_otp_code: str = "8888"
    test_numbers: FrozenSet[str] = frozenset()

    delivery_timeout_seconds: float = 10.0

    def __post_init__(self):
        # Accept any iterable of numbers but keep the dataclass hashable
        if not isinstance(self.test_numbers, frozenset):
            object.__setattr__(self, "test_numbers", frozenset(self.test_numbers))

    @property
    def expiry_seconds(self) -> int:
        return self.otp_expiry_minutes * 60

    @property
    def block_duration_seconds(self) -> int:
        return self.block_duration_minutes * 60

    def is_test_number(self, phone: str) -> bool:
        return phone in self.test_numbers

    def uses_test_mode(self, phone: str) -> bool:
        """True when codes for this phone bypass the delivery channel."""
        return self.test_mode or self.is_test_number(phone)

    def validate(self) -> "OTPConfig":
        """
        Check value ranges.

        Returns:
            self, so it can be chained after construction

        Raises:
            ConfigurationError: on the first invalid value
        """
        if self.otp_length <= 0:
            raise ConfigurationError("otp_length must be positive")
        if self.otp_expiry_minutes <= 0:
            raise ConfigurationError("otp_expiry_minutes must be positive")
        if self.max_attempts <= 0:
            raise ConfigurationError("max_attempts must be positive")
        if self.resend_delay_seconds < 0:
            raise ConfigurationError("resend_delay_seconds cannot be negative")
        if self.block_duration_minutes <= 0:
            raise ConfigurationError("block_duration_minutes must be positive")
        if self.delivery_timeout_seconds <= 0:
            raise ConfigurationError("delivery_timeout_seconds must be positive")
        if self.rate_limit.enabled:
            if self.rate_limit.max_requests_per_hour <= 0:
                raise ConfigurationError("rate_limit.max_requests_per_hour must be positive")
            if self.rate_limit.block_duration_minutes <= 0:
                raise ConfigurationError("rate_limit.block_duration_minutes must be positive")
        if not self.default_provider:
            raise ConfigurationError("default_provider is required")
        return self

    @classmethod
    def from_env(cls, prefix: str = "OTP_") -> "OTPConfig":
        """
        Build a config from environment variables.

        Unset variables fall back to the dataclass defaults.
        """
        defaults = cls()
        rate_defaults = defaults.rate_limit
        rate_limit = RateLimitConfig(
            enabled=_env_bool(f"{prefix}RATE_LIMIT_ENABLED", rate_defaults.enabled),
            max_requests_per_hour=_env_int(
                f"{prefix}RATE_LIMIT_MAX_REQUESTS", rate_defaults.max_requests_per_hour
            ),
            block_duration_minutes=_env_int(
                f"{prefix}RATE_LIMIT_BLOCK_DURATION", rate_defaults.block_duration_minutes
            ),
        )
        return cls(
            default_provider=os.getenv(f"{prefix}PROVIDER", defaults.default_provider),
            otp_length=_env_int(f"{prefix}LENGTH", defaults.otp_length),
            otp_expiry_minutes=_env_int(f"{prefix}EXPIRY", defaults.otp_expiry_minutes),
            max_attempts=_env_int(f"{prefix}MAX_ATTEMPTS", defaults.max_attempts),
            resend_delay_seconds=_env_int(f"{prefix}RESEND_DELAY", defaults.resend_delay_seconds),
            block_duration_minutes=_env_int(
                f"{prefix}BLOCK_DURATION", defaults.block_duration_minutes
            ),
            rate_limit=rate_limit,
            test_mode=_env_bool(f"{prefix}TEST_MODE", defaults.test_mode),
            test_otp_code=os.getenv(f"{prefix}TEST_CODE", defaults.test_otp_code),
            test_numbers=_split_numbers(os.getenv(f"{prefix}TEST_NUMBERS")),
            delivery_timeout_seconds=_env_float(
                f"{prefix}DELIVERY_TIMEOUT", defaults.delivery_timeout_seconds
            ),
        )

    def with_test_numbers(self, numbers: Iterable[str]) -> "OTPConfig":
        """Return a copy with the given test numbers added."""
        return replace(self, test_numbers=self.test_numbers | frozenset(numbers))
