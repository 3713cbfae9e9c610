"""
Lead Times and Delivery Dates

Business days are Monday-Friday on the UTC calendar. All functions take the
reference date explicitly; callers derive it from an injected "now".
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Mapping

from checkout_rates.services.cart_items import CartItem

DEFAULT_LEAD_TIME_KEY = "default"
FALLBACK_LEAD_TIME_DAYS = 1
PRIORITY_LEAD_TIME_REDUCTION_DAYS = 2


def default_lead_time(lead_times: Mapping[str, int]) -> int:
    return lead_times.get(DEFAULT_LEAD_TIME_KEY, FALLBACK_LEAD_TIME_DAYS)


def max_lead_time(items: Iterable[CartItem], lead_times: Mapping[str, int]) -> int:
    """
    Longest fulfillment lead time among the cart's SKUs.

    SKUs missing from the table use its default. An empty cart, or a cart
    whose lead times are all zero or less, gets the default.
    """
    default = default_lead_time(lead_times)
    longest = max((lead_times.get(item.sku, default) for item in items), default=0)
    return longest if longest > 0 else default


def priority_lead_time(standard_days: int) -> int:
    return max(1, standard_days - PRIORITY_LEAD_TIME_REDUCTION_DAYS)


def to_utc_date(moment: datetime) -> date:
    """Calendar date of a moment in UTC. Naive datetimes are taken as UTC."""
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(timezone.utc).date()


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def add_business_days(start: date, business_days: int) -> date:
    result = start
    added = 0
    while added < business_days:
        result += timedelta(days=1)
        if not is_weekend(result):
            added += 1
    return result


def next_business_day(day: date) -> date:
    result = day + timedelta(days=1)
    while is_weekend(result):
        result += timedelta(days=1)
    return result


def ship_date(lead_days: int, from_date: date) -> date:
    if lead_days <= 0:
        return next_business_day(from_date)
    return add_business_days(from_date, lead_days)


def delivery_date(shipped_on: date, transit_days: int) -> date:
    if transit_days <= 0:
        return shipped_on
    return add_business_days(shipped_on, transit_days)


def format_date(day: date) -> str:
    return day.isoformat()


@dataclass(frozen=True)
class DeliveryDates:
    ship_date: date
    delivery_date: date

    @property
    def min_delivery_date(self) -> str:
        return format_date(self.delivery_date)

    @property
    def max_delivery_date(self) -> str:
        # Single-point window
        return format_date(self.delivery_date)


def calculate_delivery_dates(
    items: Iterable[CartItem],
    transit_days: int,
    lead_times: Mapping[str, int],
    priority: bool,
    from_date: date,
) -> DeliveryDates:
    lead_days = max_lead_time(items, lead_times)
    if priority:
        lead_days = priority_lead_time(lead_days)

    shipped_on = ship_date(lead_days, from_date)
    return DeliveryDates(
        ship_date=shipped_on,
        delivery_date=delivery_date(shipped_on, transit_days),
    )
