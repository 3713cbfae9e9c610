"""
Carrier Registry and Factory

- Carrier implementations register themselves with @register_carrier
- CarrierFactory creates the configured carrier by CarrierCode
"""
from typing import Dict, List, Type, Union
import logging

from checkout_rates.core.exceptions import InvalidConfiguration
from checkout_rates.modules.shipping.carriers.base import BaseCarrier, CarrierCode

logger = logging.getLogger(__name__)

# Registry of carrier implementations
_CARRIER_REGISTRY: Dict[CarrierCode, Type[BaseCarrier]] = {}


def register_carrier(carrier_code: CarrierCode):
    """
    Decorator to register a carrier implementation.

    Usage:
        @register_carrier(CarrierCode.FEDEX)
        class FedExCarrier(BaseCarrier):
            ...
    """
    def decorator(cls: Type[BaseCarrier]):
        _CARRIER_REGISTRY[carrier_code] = cls
        logger.debug(f"Registered carrier: {carrier_code.value} -> {cls.__name__}")
        return cls
    return decorator


class CarrierFactory:
    """Factory for creating carrier instances."""

    @classmethod
    def create(cls, carrier_code: Union[CarrierCode, str], **kwargs) -> BaseCarrier:
        """
        Create a carrier instance.

        Args:
            carrier_code: The carrier to create (enum or its string value)
            **kwargs: Passed to the carrier constructor

        Raises:
            InvalidConfiguration: if the code is unknown or not registered
        """
        try:
            code = CarrierCode(carrier_code)
        except ValueError:
            raise InvalidConfiguration(f"Unknown carrier: {carrier_code}")

        carrier_cls = _CARRIER_REGISTRY.get(code)
        if not carrier_cls:
            raise InvalidConfiguration(f"No implementation registered for carrier: {code.value}")

        return carrier_cls(**kwargs)

    @classmethod
    def get_registered_carriers(cls) -> List[CarrierCode]:
        """Get list of all registered carrier codes."""
        return list(_CARRIER_REGISTRY.keys())


# Import carriers to trigger registration
# These imports must be at the bottom to avoid circular imports
from checkout_rates.modules.shipping.carriers.fedex import FedExCarrier  # noqa: E402, F401
