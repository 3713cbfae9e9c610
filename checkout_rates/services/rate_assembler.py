"""
Rate Assembly

Turns carrier rates into the priced offers shown at checkout. Every carrier
rate yields two offers: the standard one (carrier charge + handling fee) and
a priority-handling variant (+ priority fee, shorter lead time).

Also builds the fixed offers that need no carrier call: local delivery,
freight forwarding and the test-mode rates.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Mapping, Optional

from checkout_rates.modules.shipping.carriers.base import ParsedCarrierRate
from checkout_rates.services.cart_items import CartItem
from checkout_rates.services.fedex_client import is_ground_service
from checkout_rates.services.lead_times import (
    add_business_days,
    calculate_delivery_dates,
    format_date,
    next_business_day,
)

logger = logging.getLogger(__name__)

PRIORITY_NAME_SUFFIX = " — Priority Handling"
PRIORITY_CODE_SUFFIX = "_PRIORITY"
PRIORITY_DESCRIPTION = "Order moved to front of fulfillment queue — ships within 1 business day"

LOCAL_DELIVERY_CODE = "LOCAL_DELIVERY"
LOCAL_DELIVERY_NAME = "Local Delivery"

FREIGHT_FORWARDING_CODE = "FREIGHT_FORWARDING"
FREIGHT_FORWARDING_NAME = "International Freight Forwarding"
FREIGHT_FORWARDING_DESCRIPTION = (
    "Our team will contact you to confirm freight details and final shipping cost"
)
FREIGHT_MIN_BUSINESS_DAYS = 14
FREIGHT_MAX_BUSINESS_DAYS = 21

TEST_RATE_DESCRIPTION = "Test rate - not a real quote"
# (name, code, price in cents, business days to delivery)
TEST_RATES = (
    ("FedEx Ground (TEST)", "FEDEX_GROUND_TEST", 5500, 5),
    ("FedEx 2Day (TEST)", "FEDEX_2_DAY_TEST", 17000, 2),
    ("FedEx Priority Overnight (TEST)", "PRIORITY_OVERNIGHT_TEST", 21000, 1),
)


@dataclass
class HandlingFees:
    """Per-order handling fees in dollars."""
    ground_per_order: Decimal
    air_per_order: Decimal


@dataclass
class PricedOffer:
    service_name: str
    service_code: str
    total_price_cents: int
    currency: str
    min_delivery_date: str
    max_delivery_date: str
    description: Optional[str] = None

    @property
    def total_price(self) -> str:
        return str(self.total_price_cents)

    def to_dict(self) -> dict:
        data = {
            "service_name": self.service_name,
            "service_code": self.service_code,
            "total_price": self.total_price,
            "currency": self.currency,
            "min_delivery_date": self.min_delivery_date,
            "max_delivery_date": self.max_delivery_date,
        }
        if self.description is not None:
            data["description"] = self.description
        return data


def dollars_to_cents(amount) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def handling_fee_cents(service_type: str, fees: HandlingFees) -> int:
    if is_ground_service(service_type):
        return dollars_to_cents(fees.ground_per_order)
    return dollars_to_cents(fees.air_per_order)


def assemble_offers(
    carrier_rates: Iterable[ParsedCarrierRate],
    items: List[CartItem],
    handling_fees: HandlingFees,
    priority_fee_cents: int,
    lead_times: Mapping[str, int],
    from_date: date,
    currency: str = "USD",
) -> List[PricedOffer]:
    """Standard and priority offers for each carrier rate, in carrier order."""
    offers: List[PricedOffer] = []

    for rate in carrier_rates:
        total_cents = rate.total_charge_cents + handling_fee_cents(rate.service_type, handling_fees)

        standard = calculate_delivery_dates(
            items, rate.transit_days, lead_times, priority=False, from_date=from_date
        )
        offers.append(PricedOffer(
            service_name=rate.service_name,
            service_code=rate.service_type,
            total_price_cents=total_cents,
            currency=currency,
            min_delivery_date=standard.min_delivery_date,
            max_delivery_date=standard.max_delivery_date,
        ))

        priority = calculate_delivery_dates(
            items, rate.transit_days, lead_times, priority=True, from_date=from_date
        )
        offers.append(PricedOffer(
            service_name=f"{rate.service_name}{PRIORITY_NAME_SUFFIX}",
            service_code=f"{rate.service_type}{PRIORITY_CODE_SUFFIX}",
            total_price_cents=total_cents + priority_fee_cents,
            currency=currency,
            min_delivery_date=priority.min_delivery_date,
            max_delivery_date=priority.max_delivery_date,
            description=PRIORITY_DESCRIPTION,
        ))

    return offers


def build_local_delivery_offer(from_date: date, currency: str, description: str) -> PricedOffer:
    delivery_on = format_date(next_business_day(from_date))
    return PricedOffer(
        service_name=LOCAL_DELIVERY_NAME,
        service_code=LOCAL_DELIVERY_CODE,
        total_price_cents=0,
        currency=currency,
        min_delivery_date=delivery_on,
        max_delivery_date=delivery_on,
        description=description,
    )


def build_freight_forwarding_offer(from_date: date, currency: str) -> PricedOffer:
    """Zero-priced; the freight cost is invoiced after the team confirms it."""
    return PricedOffer(
        service_name=FREIGHT_FORWARDING_NAME,
        service_code=FREIGHT_FORWARDING_CODE,
        total_price_cents=0,
        currency=currency,
        min_delivery_date=format_date(add_business_days(from_date, FREIGHT_MIN_BUSINESS_DAYS)),
        max_delivery_date=format_date(add_business_days(from_date, FREIGHT_MAX_BUSINESS_DAYS)),
        description=FREIGHT_FORWARDING_DESCRIPTION,
    )


def build_test_offers(from_date: date, currency: str = "USD") -> List[PricedOffer]:
    offers = []
    for name, code, price_cents, days in TEST_RATES:
        delivery_on = format_date(add_business_days(from_date, days))
        offers.append(PricedOffer(
            service_name=name,
            service_code=code,
            total_price_cents=price_cents,
            currency=currency,
            min_delivery_date=delivery_on,
            max_delivery_date=delivery_on,
            description=TEST_RATE_DESCRIPTION,
        ))
    return offers
