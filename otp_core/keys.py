"""
Store Keys
==========
Key namespaces for per-phone state, plus log-safe phone masking.
"""

OTP_PREFIX = "otp"
RESEND_PREFIX = "otp_last_sent"
BLOCK_PREFIX = "otp_blocked"
RATE_BLOCK_PREFIX = "otp_rate_blocked"
REQUEST_LOG_PREFIX = "otp_requests"


def otp_key(phone: str) -> str:
    return f"{OTP_PREFIX}:{phone}"


def resend_key(phone: str) -> str:
    return f"{RESEND_PREFIX}:{phone}"


def block_key(phone: str) -> str:
    return f"{BLOCK_PREFIX}:{phone}"


def rate_block_key(phone: str) -> str:
    return f"{RATE_BLOCK_PREFIX}:{phone}"


def request_log_key(phone: str) -> str:
    return f"{REQUEST_LOG_PREFIX}:{phone}"


def mask_phone(phone: str) -> str:
    """
    Mask a phone number for logging.

    Keeps the leading '+' and first two digits plus the last two digits,
    e.g. "+201120305686" -> "+20********86".
    """
    if len(phone) <= 5:
        return "*" * len(phone)
    head = 3 if phone.startswith("+") else 2
    return phone[:head] + "*" * (len(phone) - head - 2) + phone[-2:]
