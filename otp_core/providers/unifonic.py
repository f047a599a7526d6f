"""
Unifonic OTP Provider
=====================
Delivers codes as SMS through the Unifonic REST API.
"""

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx
import structlog

from .base import HttpDeliveryChannel

logger = structlog.get_logger(__name__)

MESSAGES_URL = "https://api.unifonic.com/rest/SMS/messages"


@dataclass(frozen=True)
class UnifonicConfig:
    """Unifonic application credentials."""
    app_sid: str
    sender_id: str
    base_url: str = MESSAGES_URL

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> "UnifonicConfig":
        return cls(
            app_sid=settings["app_sid"],
            sender_id=settings["sender_id"],
            base_url=settings.get("base_url") or MESSAGES_URL,
        )

    @classmethod
    def from_env(cls) -> "UnifonicConfig":
        return cls(
            app_sid=os.environ.get("UNIFONIC_APP_SID", ""),
            sender_id=os.environ.get("UNIFONIC_SENDER_ID", ""),
        )


class UnifonicProvider(HttpDeliveryChannel):
    """Unifonic SMS delivery channel."""

    name = "unifonic"

    def __init__(self, config: UnifonicConfig, client: Optional[httpx.AsyncClient] = None):
        super().__init__(client)
        self.config = config

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout)

    async def send(self, phone: str, code: str, message: str) -> bool:
        """Send the rendered message; only HTTP 200 counts as delivered."""
        payload = {
            "AppSid": self.config.app_sid,
            "SenderID": self.config.sender_id,
            "Recipient": phone,
            "Body": message,
        }
        try:
            client = await self._get_client()
            response = await client.post(self.config.base_url, data=payload)
        except httpx.HTTPError as e:
            logger.error("Unifonic send failed", error=str(e))
            return False

        if response.status_code != 200:
            logger.error("Unifonic rejected OTP", status_code=response.status_code)
            return False
        return True
