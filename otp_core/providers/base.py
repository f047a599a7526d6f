"""
Delivery Channel Base
=====================
Base class for the transports that deliver OTP codes.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx
import structlog

logger = structlog.get_logger(__name__)


class DeliveryChannel(ABC):
    """
    Abstract base class for OTP delivery channels.

    send() reports failure by returning False; transport errors are caught
    and logged by the implementation, never raised to the engine.
    """

    name: str = "base"

    @abstractmethod
    async def send(self, phone: str, code: str, message: str) -> bool:
        """
        Deliver a code.

        Args:
            phone: Recipient phone number (E.164 format)
            code: The plain OTP code
            message: Rendered SMS body containing the code

        Returns:
            True if the provider accepted the message
        """
        pass

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def __aenter__(self) -> "DeliveryChannel":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class HttpDeliveryChannel(DeliveryChannel):
    """Delivery channel backed by an httpx.AsyncClient."""

    timeout: float = 30.0

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client
        self._owns_client = client is None

    @abstractmethod
    def _build_client(self) -> httpx.AsyncClient:
        """Create the HTTP client with provider auth applied."""
        pass

    async def initialize(self) -> None:
        """Create HTTP client."""
        if self._client is None:
            self._client = self._build_client()
            self._owns_client = True
        logger.info("Delivery channel initialized", provider=self.name)

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.info("Delivery channel closed", provider=self.name)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            await self.initialize()
        return self._client
