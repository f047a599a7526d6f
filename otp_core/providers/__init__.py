"""
OTP Delivery Providers
======================
Delivery channels for SMS gateways and the registry that builds them.
"""

from .base import DeliveryChannel, HttpDeliveryChannel
from .registry import ProviderRegistry, default_registry
from .twilio import TwilioConfig, TwilioProvider
from .unifonic import UnifonicConfig, UnifonicProvider

__all__ = [
    "DeliveryChannel",
    "HttpDeliveryChannel",
    "ProviderRegistry",
    "default_registry",
    "TwilioConfig",
    "TwilioProvider",
    "UnifonicConfig",
    "UnifonicProvider",
]
