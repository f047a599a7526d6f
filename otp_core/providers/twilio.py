"""
Twilio OTP Provider
===================
Delivers codes through Twilio, either as a plain SMS or through Verify.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import httpx
import structlog

from .base import HttpDeliveryChannel

logger = structlog.get_logger(__name__)

SERVICE_TYPE_SMS = "sms"
SERVICE_TYPE_VERIFY = "verify"

API_BASE_URL = "https://api.twilio.com/2010-04-01"
VERIFY_BASE_URL = "https://verify.twilio.com/v2"


@dataclass(frozen=True)
class TwilioConfig:
    """Twilio credentials and delivery mode."""
    account_sid: str
    auth_token: str
    from_number: Optional[str] = None
    service_type: str = SERVICE_TYPE_SMS
    verification_sid: Optional[str] = None

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> "TwilioConfig":
        return cls(
            account_sid=settings["account_sid"],
            auth_token=settings["auth_token"],
            from_number=settings.get("from") or settings.get("from_number"),
            service_type=settings.get("service_type") or SERVICE_TYPE_SMS,
            verification_sid=settings.get("verification_sid"),
        )

    @classmethod
    def from_env(cls) -> "TwilioConfig":
        return cls(
            account_sid=os.environ.get("TWILIO_ACCOUNT_SID", ""),
            auth_token=os.environ.get("TWILIO_AUTH_TOKEN", ""),
            from_number=os.environ.get("TWILIO_FROM"),
            service_type=os.environ.get("TWILIO_SERVICE_TYPE", SERVICE_TYPE_SMS),
            verification_sid=os.environ.get("TWILIO_VERIFICATION_SID"),
        )


class TwilioProvider(HttpDeliveryChannel):
    """
    Twilio delivery channel.

    Service types:
    - sms: send the rendered message through the Messages API
    - verify: register the code with Verify v2 as a custom code; Twilio
      renders and sends its own text
    """

    name = "twilio"

    def __init__(self, config: TwilioConfig, client: Optional[httpx.AsyncClient] = None):
        super().__init__(client)
        self.config = config
        self.messages_url = f"{API_BASE_URL}/Accounts/{config.account_sid}/Messages.json"
        self.verify_url = (
            f"{VERIFY_BASE_URL}/Services/{config.verification_sid}/Verifications"
            if config.verification_sid else None
        )

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=(self.config.account_sid, self.config.auth_token),
            timeout=self.timeout,
        )

    async def send(self, phone: str, code: str, message: str) -> bool:
        """Send a code via the configured Twilio service."""
        try:
            if self.config.service_type == SERVICE_TYPE_SMS:
                return await self._send_via_sms(phone, message)
            if self.config.service_type == SERVICE_TYPE_VERIFY:
                return await self._send_via_verify(phone, code)
            logger.error("Twilio OTP error: invalid service type", service_type=self.config.service_type)
            return False
        except httpx.HTTPError as e:
            logger.error("Twilio send failed", error=str(e))
            return False

    async def _send_via_sms(self, phone: str, message: str) -> bool:
        client = await self._get_client()
        payload: Dict[str, str] = {"To": phone, "Body": message}
        if self.config.from_number:
            payload["From"] = self.config.from_number

        response = await client.post(self.messages_url, data=payload)
        if response.status_code == 201:
            return True

        self._log_error(response)
        return False

    async def _send_via_verify(self, phone: str, code: str) -> bool:
        if not self.verify_url:
            logger.error("Twilio OTP error: verify service requires verification_sid")
            return False

        client = await self._get_client()
        response = await client.post(
            self.verify_url,
            data={"To": phone, "Channel": SERVICE_TYPE_SMS, "CustomCode": code},
        )
        if response.status_code in (200, 201):
            return True

        self._log_error(response)
        return False

    def _log_error(self, response: httpx.Response) -> None:
        try:
            error_data = response.json()
        except ValueError:
            error_data = {}
        logger.error(
            "Twilio rejected OTP",
            status_code=response.status_code,
            error_code=error_data.get("code"),
            error_message=error_data.get("message", "Unknown error"),
        )
