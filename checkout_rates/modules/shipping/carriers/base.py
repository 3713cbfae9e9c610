"""
Base Carrier Interface

All rate-quoting carriers implement this interface. The quote service only
talks to BaseCarrier; carrier-specific request and response formats stay in
the carrier's client.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class CarrierCode(str, Enum):
    FEDEX = "fedex"


# =============================================================================
# Carrier-Agnostic Data Classes
# =============================================================================

@dataclass
class AddressInput:
    """Shipper or recipient address."""
    city: str
    state_province: str
    postal_code: str
    country_code: str = "US"
    street_lines: List[str] = field(default_factory=list)
    recipient_name: Optional[str] = None
    residential: bool = True


@dataclass
class Package:
    """Package dimensions and weight."""
    weight: float  # pounds
    length: float = 0.0  # inches
    width: float = 0.0  # inches
    height: float = 0.0  # inches
    description: Optional[str] = None


@dataclass
class ParsedCarrierRate:
    """One service offering returned by a carrier."""
    service_type: str
    service_name: str
    total_charge_cents: int
    transit_days: int = 1
    delivery_date: Optional[str] = None


# =============================================================================
# Base Carrier Interface
# =============================================================================

class BaseCarrier(ABC):
    """
    Abstract base class for rate-quoting carriers.

    get_rates raises CarrierError subclasses on upstream failure; an empty
    list means the carrier offered no usable service for the shipment.
    """

    @property
    @abstractmethod
    def carrier_code(self) -> CarrierCode:
        """Return the carrier code enum value."""
        pass

    @property
    @abstractmethod
    def carrier_name(self) -> str:
        """Return the human-readable carrier name."""
        pass

    @abstractmethod
    async def get_rates(
        self,
        origin: AddressInput,
        destination: AddressInput,
        packages: List[Package],
        is_international: bool = False,
        ship_date: Optional[date] = None,
    ) -> List[ParsedCarrierRate]:
        """
        Get shipping rates from the carrier.

        Args:
            origin: Shipper address
            destination: Recipient address
            packages: List of packages to ship
            is_international: Whether the destination is outside the home country
            ship_date: Pickup date to quote for; carriers default to today (UTC)

        Returns:
            List of ParsedCarrierRate for allowed services
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        return None
