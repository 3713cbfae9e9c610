"""
Route Classification

Picks exactly one pricing path for a cart, first match wins:
1. home country + local-delivery zip -> LOCAL_DELIVERY (no carrier call)
2. home country                      -> DOMESTIC (carrier quote)
3. international_military customer   -> INTERNATIONAL_MILITARY (carrier quote)
4. anything else                     -> FREIGHT_FORWARDING (no carrier call)
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Iterable, Optional

from checkout_rates.services.cart_items import CartItem, CustomerType

logger = logging.getLogger(__name__)

DEFAULT_HOME_COUNTRY = "US"


class RouteType(str, Enum):
    LOCAL_DELIVERY = "local_delivery"
    DOMESTIC = "domestic"
    INTERNATIONAL_MILITARY = "international_military"
    FREIGHT_FORWARDING = "freight_forwarding"

    @property
    def needs_carrier_quote(self) -> bool:
        return self in (RouteType.DOMESTIC, RouteType.INTERNATIONAL_MILITARY)


@dataclass(frozen=True)
class RouteDecision:
    route_type: RouteType
    customer_type: CustomerType
    is_international: bool


def normalize_postal_code(postal_code: Optional[str]) -> str:
    """First five significant characters: "33172-1234" and " 33172 " -> "33172"."""
    if not postal_code:
        return ""
    return "".join(postal_code.split())[:5]


def normalize_country(country_code: Optional[str]) -> str:
    return (country_code or "").strip().upper()


def is_local_delivery_zip(postal_code: Optional[str], local_zips: AbstractSet[str]) -> bool:
    return normalize_postal_code(postal_code) in local_zips


def is_domestic_destination(country_code: Optional[str], home_country: str = DEFAULT_HOME_COUNTRY) -> bool:
    return normalize_country(country_code) == normalize_country(home_country)


def derive_customer_type(items: Iterable[CartItem]) -> CustomerType:
    """The first recognized customer type among the cart lines, else STANDARD."""
    for item in items:
        if item.customer_type is not None:
            return item.customer_type
    return CustomerType.STANDARD


def classify(
    destination_country: Optional[str],
    destination_postal_code: Optional[str],
    items: Iterable[CartItem],
    local_zips: AbstractSet[str],
    home_country: str = DEFAULT_HOME_COUNTRY,
) -> RouteDecision:
    customer_type = derive_customer_type(items)

    if is_domestic_destination(destination_country, home_country):
        if is_local_delivery_zip(destination_postal_code, local_zips):
            return RouteDecision(RouteType.LOCAL_DELIVERY, customer_type, False)
        return RouteDecision(RouteType.DOMESTIC, customer_type, False)

    if customer_type is CustomerType.INTERNATIONAL_MILITARY:
        return RouteDecision(RouteType.INTERNATIONAL_MILITARY, customer_type, True)

    return RouteDecision(RouteType.FREIGHT_FORWARDING, customer_type, True)


def has_shippable_items(items: Iterable[CartItem]) -> bool:
    return any(item.requires_shipping for item in items)
