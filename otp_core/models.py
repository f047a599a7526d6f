"""
OTP Models
==========
Stored records, outcome payloads and the enums that tag them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class OtpResponseType(str, Enum):
    """Type tag carried by generate/verify outcomes."""
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    BLOCKED = "blocked"
    RESEND_DELAY = "resend_delay"
    SEND_FAILED = "send_failed"


class MessageKind(str, Enum):
    """Which user-facing message an outcome maps to."""
    OTP_SENT = "otp_sent_successfully"
    OTP_VERIFIED = "otp_verified_successfully"
    SEND_FAILED = "otp_send_failed"
    EXPIRED_OR_NOT_FOUND = "otp_expired_or_not_found"
    INVALID_OTP = "invalid_otp"
    MAX_ATTEMPTS_EXCEEDED = "max_attempts_exceeded"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    RESEND_DELAY_ACTIVE = "resend_delay_active"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"


@dataclass
class OtpRecord:
    """An outstanding code for one phone number."""
    code: str
    attempts: int = 0
    is_test: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "attempts": self.attempts, "is_test": self.is_test}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OtpRecord":
        return cls(
            code=str(data["code"]),
            attempts=int(data.get("attempts", 0)),
            is_test=bool(data.get("is_test", False)),
        )


@dataclass
class RateLimitDecision:
    """Result of an hourly quota check."""
    allowed: bool
    retry_after: Optional[int] = None  # Seconds until the rate limit block lifts
    reason: Optional[OtpResponseType] = None

    @classmethod
    def admit(cls) -> "RateLimitDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, retry_after: int) -> "RateLimitDecision":
        return cls(allowed=False, retry_after=retry_after, reason=OtpResponseType.RATE_LIMITED)


@dataclass
class OtpOutcome:
    """
    Structured result of generate() and verify().

    `response_type` is None for verify outcomes that are neither a success
    nor a block (invalid or missing code); `message_kind` tells those apart.
    """
    success: bool
    message_kind: MessageKind
    message: str
    response_type: Optional[OtpResponseType] = None
    retry_after: Optional[int] = None
    remaining_attempts: Optional[int] = None
    expires_in: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Caller-facing mapping; absent optionals are omitted."""
        data: Dict[str, Any] = {
            "success": self.success,
            "message_kind": self.message_kind.value,
            "message": self.message,
        }
        if self.response_type is not None:
            data["type"] = self.response_type.value
        if self.retry_after is not None:
            data["retry_after"] = self.retry_after
        if self.remaining_attempts is not None:
            data["remaining_attempts"] = self.remaining_attempts
        if self.expires_in is not None:
            data["expires_in"] = self.expires_in
        return data
