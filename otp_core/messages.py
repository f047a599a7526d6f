"""
OTP Messages
============
English message templates for outcomes and the SMS body.
"""

from typing import Dict, Optional, Union

from .models import MessageKind

SMS_BODY_KEY = "otp_message"

DEFAULT_TEMPLATES: Dict[str, str] = {
    # Success messages
    MessageKind.OTP_SENT.value: "OTP sent successfully.",
    MessageKind.OTP_VERIFIED.value: "OTP verified successfully.",
    # Error messages
    MessageKind.SEND_FAILED.value: "Failed to send OTP.",
    MessageKind.EXPIRED_OR_NOT_FOUND.value: "OTP expired or not found.",
    MessageKind.INVALID_OTP.value: "Invalid OTP.",
    MessageKind.MAX_ATTEMPTS_EXCEEDED.value: (
        "Maximum verification attempts exceeded. Please request a new OTP."
    ),
    MessageKind.TOO_MANY_ATTEMPTS.value: "Too many attempts. Please try again later.",
    MessageKind.RESEND_DELAY_ACTIVE.value: (
        "Please wait {seconds} seconds before requesting a new OTP."
    ),
    MessageKind.RATE_LIMIT_EXCEEDED.value: (
        "Rate limit exceeded. Blocked for {minutes} minutes."
    ),
    SMS_BODY_KEY: "Your verification code is: {otp}. Valid for {minutes} minutes.",
}


class MessageCatalog:
    """Renders outcome messages and the delivered SMS body."""

    def __init__(self, overrides: Optional[Dict[str, str]] = None):
        self.templates = dict(DEFAULT_TEMPLATES)
        if overrides:
            self.templates.update(overrides)

    def render(self, key: Union[MessageKind, str], **params) -> str:
        name = key.value if isinstance(key, MessageKind) else key
        template = self.templates[name]
        return template.format(**params) if params else template

    def sms_body(self, otp: str, minutes: int) -> str:
        return self.render(SMS_BODY_KEY, otp=otp, minutes=minutes)
