"""
Tests for lead times and business-day date math.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from checkout_rates.services.lead_times import (
    add_business_days,
    calculate_delivery_dates,
    delivery_date,
    max_lead_time,
    next_business_day,
    priority_lead_time,
    ship_date,
    to_utc_date,
)

WEDNESDAY = date(2025, 6, 11)
FRIDAY = date(2025, 6, 13)
SATURDAY = date(2025, 6, 14)
SUNDAY = date(2025, 6, 15)
MONDAY = date(2025, 6, 16)


class TestLeadTimes:

    def test_longest_sku_wins(self, make_item):
        lead_times = {"default": 1, "LONG": 14}
        assert max_lead_time([make_item(sku="A"), make_item(sku="LONG")], lead_times) == 14

    def test_unknown_sku_uses_default(self, make_item):
        assert max_lead_time([make_item(sku="A")], {"default": 3}) == 3

    def test_empty_cart_uses_default(self):
        assert max_lead_time([], {"default": 2}) == 2

    def test_non_positive_uses_default(self, make_item):
        assert max_lead_time([make_item(sku="X")], {"default": 1, "X": 0}) == 1

    def test_missing_default_falls_back_to_one(self, make_item):
        assert max_lead_time([make_item(sku="A")], {}) == 1

    @pytest.mark.parametrize("standard,expected", [(5, 3), (3, 1), (2, 1), (1, 1), (0, 1)])
    def test_priority_lead_time(self, standard, expected):
        assert priority_lead_time(standard) == expected


class TestBusinessDays:

    @pytest.mark.parametrize("start", [WEDNESDAY, FRIDAY, SATURDAY, SUNDAY])
    def test_zero_days_is_identity(self, start):
        assert add_business_days(start, 0) == start

    def test_skips_weekend(self):
        assert add_business_days(FRIDAY, 1) == MONDAY
        assert add_business_days(WEDNESDAY, 5) == date(2025, 6, 18)

    @pytest.mark.parametrize("start", [SATURDAY, SUNDAY])
    def test_weekend_start_lands_on_monday(self, start):
        assert add_business_days(start, 1) == MONDAY

    def test_never_lands_on_weekend(self):
        for offset in range(7):
            start = MONDAY + timedelta(days=offset)
            for days in range(1, 12):
                assert add_business_days(start, days).weekday() < 5

    def test_next_business_day(self):
        assert next_business_day(WEDNESDAY) == date(2025, 6, 12)
        assert next_business_day(FRIDAY) == MONDAY
        assert next_business_day(SATURDAY) == MONDAY


class TestShipAndDelivery:

    def test_ship_date(self):
        assert ship_date(0, WEDNESDAY) == date(2025, 6, 12)
        assert ship_date(1, WEDNESDAY) == date(2025, 6, 12)
        assert ship_date(3, FRIDAY) == date(2025, 6, 18)

    def test_delivery_date(self):
        assert delivery_date(date(2025, 6, 12), 3) == date(2025, 6, 17)
        assert delivery_date(date(2025, 6, 12), 0) == date(2025, 6, 12)

    def test_standard_and_priority_dates(self, make_item):
        items = [make_item(sku="A"), make_item(sku="DRUM")]
        lead_times = {"default": 1, "DRUM": 5}

        standard = calculate_delivery_dates(items, 3, lead_times, priority=False, from_date=WEDNESDAY)
        priority = calculate_delivery_dates(items, 3, lead_times, priority=True, from_date=WEDNESDAY)

        assert standard.ship_date == date(2025, 6, 18)
        assert standard.min_delivery_date == "2025-06-23"
        assert standard.max_delivery_date == "2025-06-23"
        assert priority.ship_date == MONDAY
        assert priority.min_delivery_date == "2025-06-19"

    def test_priority_never_later_than_standard(self, make_item):
        for lead in range(0, 10):
            lead_times = {"default": lead}
            standard = calculate_delivery_dates([make_item()], 2, lead_times, False, WEDNESDAY)
            priority = calculate_delivery_dates([make_item()], 2, lead_times, True, WEDNESDAY)
            assert priority.delivery_date <= standard.delivery_date


class TestUtcDate:

    def test_aware_datetime_converted_to_utc(self):
        evening_miami = datetime(2025, 6, 11, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert to_utc_date(evening_miami) == date(2025, 6, 12)

    def test_naive_datetime_taken_as_utc(self):
        assert to_utc_date(datetime(2025, 6, 11, 23, 30)) == WEDNESDAY
