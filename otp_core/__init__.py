"""
OTP Core Library
================
Phone OTP issuing and verification with resend delay, attempt
limits, blocking and hourly rate limiting.
"""

__version__ = "0.1.0"

# Configuration
from otp_core.config import OTPConfig, RateLimitConfig

# Engine
from otp_core.service import OtpService, generate_numeric_code

# Models
from otp_core.models import (
    MessageKind,
    OtpOutcome,
    OtpRecord,
    OtpResponseType,
    RateLimitDecision,
)

# Messages
from otp_core.messages import MessageCatalog, DEFAULT_TEMPLATES

# Rate Limiting
from otp_core.rate_limit import PhoneRateLimiter

# Clock
from otp_core.clock import Clock, SystemClock, FrozenClock

# Stores
from otp_core.store import ExpiringStore, InMemoryStore, RedisStore

# Providers
from otp_core.providers import (
    DeliveryChannel,
    HttpDeliveryChannel,
    ProviderRegistry,
    default_registry,
    TwilioConfig,
    TwilioProvider,
    UnifonicConfig,
    UnifonicProvider,
)

# Errors
from otp_core.exceptions import (
    OTPError,
    ConfigurationError,
    ProviderNotFoundError,
    StoreError,
    StoreUnavailableError,
    StoreDataError,
)

# Logging
from otp_core.logging_setup import setup_logging

__all__ = [
    # Configuration
    "OTPConfig",
    "RateLimitConfig",
    # Engine
    "OtpService",
    "generate_numeric_code",
    # Models
    "MessageKind",
    "OtpOutcome",
    "OtpRecord",
    "OtpResponseType",
    "RateLimitDecision",
    # Messages
    "MessageCatalog",
    "DEFAULT_TEMPLATES",
    # Rate Limiting
    "PhoneRateLimiter",
    # Clock
    "Clock",
    "SystemClock",
    "FrozenClock",
    # Stores
    "ExpiringStore",
    "InMemoryStore",
    "RedisStore",
    # Providers
    "DeliveryChannel",
    "HttpDeliveryChannel",
    "ProviderRegistry",
    "default_registry",
    "TwilioConfig",
    "TwilioProvider",
    "UnifonicConfig",
    "UnifonicProvider",
    # Errors
    "OTPError",
    "ConfigurationError",
    "ProviderNotFoundError",
    "StoreError",
    "StoreUnavailableError",
    "StoreDataError",
    # Logging
    "setup_logging",
]
