"""
Tests for route classification.
"""
import pytest

from checkout_rates.services.cart_items import CustomerType
from checkout_rates.services.routing import (
    RouteType,
    classify,
    derive_customer_type,
    has_shippable_items,
    is_domestic_destination,
    is_local_delivery_zip,
    normalize_postal_code,
)

LOCAL_ZIPS = frozenset({"33172", "33301"})


class TestPostalCode:

    @pytest.mark.parametrize("raw,expected", [
        ("33172", "33172"),
        ("33172-1234", "33172"),
        (" 33172 ", "33172"),
        ("331 72", "33172"),
        ("", ""),
        (None, ""),
        ("SW1A 1AA", "SW1A1"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_postal_code(raw) == expected

    @pytest.mark.parametrize("raw", ["33172-1234", " 33172 ", "M5V 2T6", "12"])
    def test_normalize_idempotent(self, raw):
        once = normalize_postal_code(raw)
        assert normalize_postal_code(once) == once

    def test_zip_plus_four_is_local(self):
        assert is_local_delivery_zip("33172-1234", LOCAL_ZIPS)
        assert not is_local_delivery_zip("33173", LOCAL_ZIPS)


class TestCountry:

    @pytest.mark.parametrize("country", ["US", "us", " Us "])
    def test_domestic_case_insensitive(self, country):
        assert is_domestic_destination(country)

    def test_other_home_country(self):
        assert is_domestic_destination("ca", home_country="CA")
        assert not is_domestic_destination("US", home_country="CA")

    def test_missing_country_is_not_domestic(self):
        assert not is_domestic_destination(None)
        assert not is_domestic_destination("")


class TestCustomerType:

    def test_first_recognized_type_wins(self, make_item):
        items = [
            make_item(),
            make_item(customer_type=CustomerType.FREIGHT_FORWARDING),
            make_item(customer_type=CustomerType.INTERNATIONAL_MILITARY),
        ]
        assert derive_customer_type(items) is CustomerType.FREIGHT_FORWARDING

    def test_defaults_to_standard(self, make_item):
        assert derive_customer_type([make_item()]) is CustomerType.STANDARD
        assert derive_customer_type([]) is CustomerType.STANDARD


class TestClassify:
    """First-match routing."""

    def test_local_delivery(self, make_item):
        decision = classify("US", "33172-1234", [make_item()], LOCAL_ZIPS)
        assert decision.route_type is RouteType.LOCAL_DELIVERY
        assert decision.is_international is False

    def test_domestic(self, make_item):
        decision = classify("us", "10001", [make_item()], LOCAL_ZIPS)
        assert decision.route_type is RouteType.DOMESTIC
        assert decision.route_type.needs_carrier_quote

    def test_local_zip_abroad_is_not_local(self, make_item):
        decision = classify("CA", "33172", [make_item()], LOCAL_ZIPS)
        assert decision.route_type is RouteType.FREIGHT_FORWARDING

    def test_international_military(self, make_item):
        items = [make_item(customer_type=CustomerType.INTERNATIONAL_MILITARY)]
        decision = classify("DE", "10115", items, LOCAL_ZIPS)

        assert decision.route_type is RouteType.INTERNATIONAL_MILITARY
        assert decision.customer_type is CustomerType.INTERNATIONAL_MILITARY
        assert decision.is_international is True
        assert decision.route_type.needs_carrier_quote

    def test_military_customer_at_home_is_domestic(self, make_item):
        items = [make_item(customer_type=CustomerType.INTERNATIONAL_MILITARY)]
        decision = classify("US", "10001", items, LOCAL_ZIPS)
        assert decision.route_type is RouteType.DOMESTIC

    def test_international_defaults_to_freight(self, make_item):
        decision = classify("MX", "06600", [make_item()], LOCAL_ZIPS)
        assert decision.route_type is RouteType.FREIGHT_FORWARDING
        assert not decision.route_type.needs_carrier_quote

    def test_missing_country_is_freight(self, make_item):
        decision = classify(None, None, [make_item()], LOCAL_ZIPS)
        assert decision.route_type is RouteType.FREIGHT_FORWARDING

    @pytest.mark.parametrize("country", ["US", "CA", "", None, "zz"])
    @pytest.mark.parametrize("customer_type", [None, *CustomerType])
    def test_always_exactly_one_route(self, make_item, country, customer_type):
        decision = classify(country, "33172", [make_item(customer_type=customer_type)], LOCAL_ZIPS)
        assert decision.route_type in set(RouteType)


class TestShippable:

    def test_has_shippable_items(self, make_item):
        assert has_shippable_items([make_item(requires_shipping=False), make_item()])
        assert not has_shippable_items([make_item(requires_shipping=False)])
        assert not has_shippable_items([])
