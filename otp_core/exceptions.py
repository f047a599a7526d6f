"""
OTP Exceptions
==============
Exception classes for configuration, provider and storage faults.

Policy denials (blocked, rate limited, wrong code...) are never raised;
they come back as OtpOutcome values.
"""

from typing import Optional


class OTPError(Exception):
    """Base exception for otp_core."""
    pass


class ConfigurationError(OTPError):
    """Raised when an OTPConfig holds invalid values."""
    pass


class ProviderNotFoundError(OTPError):
    """Raised when a provider name is not registered."""

    def __init__(self, name: str, available: Optional[list] = None):
        self.name = name
        self.available = available or []
        super().__init__(
            f"Unknown OTP provider '{name}'. Available: {', '.join(self.available) or 'none'}"
        )


class StoreError(OTPError):
    """Base exception for expiring store failures."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.message = message
        self.key = key
        super().__init__(message if key is None else f"{message} (key={key})")


class StoreUnavailableError(StoreError):
    """Raised when the store backend is unreachable or timing out."""
    pass


class StoreDataError(StoreError):
    """Raised when a stored value cannot be decoded."""
    pass
