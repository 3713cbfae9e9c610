"""
Shipping Module

- BaseCarrier interface for all carrier implementations
- CarrierFactory for dependency injection
"""
from checkout_rates.modules.shipping.carriers import CarrierFactory
from checkout_rates.modules.shipping.carriers.base import BaseCarrier

__all__ = [
    "CarrierFactory",
    "BaseCarrier",
]
