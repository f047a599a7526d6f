"""
Provider Registry
=================
Maps provider names to factories that build delivery channels.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from ..exceptions import ProviderNotFoundError
from .base import DeliveryChannel
from .twilio import TwilioConfig, TwilioProvider
from .unifonic import UnifonicConfig, UnifonicProvider

logger = structlog.get_logger(__name__)

ProviderFactory = Callable[[Optional[Mapping[str, Any]]], DeliveryChannel]


def _twilio_factory(settings: Optional[Mapping[str, Any]]) -> DeliveryChannel:
    config = TwilioConfig.from_mapping(settings) if settings else TwilioConfig.from_env()
    return TwilioProvider(config)


def _unifonic_factory(settings: Optional[Mapping[str, Any]]) -> DeliveryChannel:
    config = UnifonicConfig.from_mapping(settings) if settings else UnifonicConfig.from_env()
    return UnifonicProvider(config)


class ProviderRegistry:
    """
    Registry of delivery channel factories keyed by provider name.

    Factories receive the provider's settings mapping, or None to read
    credentials from the environment.
    """

    def __init__(self):
        self._factories: Dict[str, ProviderFactory] = {}

    def register(self, name: str, factory: ProviderFactory) -> None:
        key = name.lower()
        if key in self._factories:
            logger.info("Replacing OTP provider factory", provider=key)
        self._factories[key] = factory

    def create(self, name: str, settings: Optional[Mapping[str, Any]] = None) -> DeliveryChannel:
        """
        Build a delivery channel.

        Raises:
            ProviderNotFoundError: if no factory is registered under name
        """
        factory = self._factories.get(name.lower())
        if factory is None:
            raise ProviderNotFoundError(name, self.names())
        return factory(settings)

    def names(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._factories


def default_registry() -> ProviderRegistry:
    """Registry with the built-in Twilio and Unifonic providers."""
    registry = ProviderRegistry()
    registry.register(TwilioProvider.name, _twilio_factory)
    registry.register(UnifonicProvider.name, _unifonic_factory)
    return registry
