"""
Tests for ShippingQuoteService orchestration.
"""
import logging
from datetime import date, datetime, timedelta, timezone

import pytest

from checkout_rates.core.exceptions import CarrierRateError, ConfigLoadError
from checkout_rates.schemas.shipping import RateRequestBody, ShopifyAddress
from checkout_rates.services.quote_service import ShippingQuoteService, destination_to_address


def make_request(destination, lines):
    return RateRequestBody(destination=destination, items=lines)


@pytest.fixture
def service(mock_carrier, config_provider):
    return ShippingQuoteService(mock_carrier, config_provider)


class TestDestinationAddress:

    def test_maps_shopify_address(self, sample_destination):
        address = destination_to_address(ShopifyAddress(**sample_destination))

        assert address.street_lines == ["123 Main Street", "Apt 4B"]
        assert address.city == "New York"
        assert address.state_province == "NY"
        assert address.postal_code == "10001"
        assert address.country_code == "US"
        assert address.recipient_name == "John Doe"

    def test_missing_optional_fields(self):
        address = destination_to_address(ShopifyAddress(country="de", postal_code="10115"))
        assert address.street_lines == []
        assert address.city == ""
        assert address.country_code == "DE"


class TestQuoteService:
    """End-to-end pricing paths with a mocked carrier."""

    @pytest.mark.asyncio
    async def test_domestic_carrier_quote(self, service, mock_carrier, sample_destination, sample_cart_line, now):
        offers = await service.get_rates(make_request(sample_destination, [sample_cart_line]), now)

        assert [o.service_code for o in offers] == [
            "FEDEX_GROUND", "FEDEX_GROUND_PRIORITY", "FEDEX_2_DAY", "FEDEX_2_DAY_PRIORITY",
        ]
        assert offers[0].total_price == "5550"
        assert offers[1].total_price == "8550"

        kwargs = mock_carrier.get_rates.await_args.kwargs
        assert kwargs["origin"].city == "Miami"
        assert kwargs["destination"].postal_code == "10001"
        assert kwargs["is_international"] is False
        assert kwargs["ship_date"] == date(2025, 6, 11)
        assert len(kwargs["packages"]) == 1
        # 2000 g jug in a 2 lb box
        assert kwargs["packages"][0].weight == pytest.approx(6.41, abs=0.01)

    @pytest.mark.asyncio
    async def test_local_delivery_skips_carrier(
        self, service, mock_carrier, sample_destination, sample_cart_line, now
    ):
        sample_destination["postal_code"] = "33172-1234"
        offers = await service.get_rates(make_request(sample_destination, [sample_cart_line]), now)

        assert len(offers) == 1
        assert offers[0].service_code == "LOCAL_DELIVERY"
        assert offers[0].total_price == "0"
        assert offers[0].min_delivery_date == "2025-06-12"
        assert offers[0].description == "Free local delivery to Miami-Dade and Broward County"
        mock_carrier.get_rates.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_international_freight_skips_carrier(
        self, service, mock_carrier, sample_destination, sample_cart_line, now
    ):
        sample_destination.update(country="GB", postal_code="SW1A 1AA")
        offers = await service.get_rates(make_request(sample_destination, [sample_cart_line]), now)

        assert [o.service_code for o in offers] == ["FREIGHT_FORWARDING"]
        assert offers[0].total_price == "0"
        mock_carrier.get_rates.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_international_military_quotes_carrier(
        self, service, mock_carrier, sample_destination, sample_cart_line, now
    ):
        sample_destination.update(country="DE", postal_code="66877")
        sample_cart_line["properties"] = {"_customer_type": "international_military"}

        offers = await service.get_rates(make_request(sample_destination, [sample_cart_line]), now)

        assert len(offers) == 4
        assert mock_carrier.get_rates.await_args.kwargs["is_international"] is True

    @pytest.mark.asyncio
    async def test_test_sku_short_circuits(
        self, service, mock_carrier, config_provider, sample_destination, sample_cart_line, now
    ):
        sample_cart_line["sku"] = "test-shipping"
        offers = await service.get_rates(make_request(sample_destination, [sample_cart_line]), now)

        assert [o.service_code for o in offers] == [
            "FEDEX_GROUND_TEST", "FEDEX_2_DAY_TEST", "PRIORITY_OVERNIGHT_TEST",
        ]
        mock_carrier.get_rates.assert_not_awaited()
        config_provider.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nothing_to_ship(
        self, service, mock_carrier, config_provider, sample_destination, sample_cart_line, now
    ):
        sample_cart_line["requires_shipping"] = False
        offers = await service.get_rates(make_request(sample_destination, [sample_cart_line]), now)

        assert offers == []
        config_provider.get.assert_not_awaited()
        mock_carrier.get_rates.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_cart(self, service, sample_destination, now):
        assert await service.get_rates(make_request(sample_destination, []), now) == []

    @pytest.mark.asyncio
    async def test_no_carrier_rates(self, service, mock_carrier, sample_destination, sample_cart_line, now, caplog):
        mock_carrier.get_rates.return_value = []

        with caplog.at_level(logging.WARNING, logger="checkout_rates.services.quote_service"):
            offers = await service.get_rates(make_request(sample_destination, [sample_cart_line]), now)

        assert offers == []
        assert "No valid carrier rates" in caplog.text

    @pytest.mark.asyncio
    async def test_carrier_errors_propagate(self, service, mock_carrier, sample_destination, sample_cart_line, now):
        mock_carrier.get_rates.side_effect = CarrierRateError("FedEx API error", carrier="fedex")

        with pytest.raises(CarrierRateError):
            await service.get_rates(make_request(sample_destination, [sample_cart_line]), now)

    @pytest.mark.asyncio
    async def test_config_errors_propagate(
        self, service, config_provider, sample_destination, sample_cart_line, now
    ):
        config_provider.get.side_effect = ConfigLoadError("Cannot read rate config", path="/missing.json")

        with pytest.raises(ConfigLoadError):
            await service.get_rates(make_request(sample_destination, [sample_cart_line]), now)

    @pytest.mark.asyncio
    async def test_routing_decision_logged(self, service, sample_destination, sample_cart_line, now, caplog):
        with caplog.at_level(logging.INFO, logger="checkout_rates.services.quote_service"):
            await service.get_rates(make_request(sample_destination, [sample_cart_line]), now)

        assert "route=domestic" in caplog.text
        assert "customer_type=standard" in caplog.text

    @pytest.mark.asyncio
    async def test_lead_time_from_config(self, service, sample_destination, sample_cart_line, now):
        sample_cart_line["sku"] = "DRUM-55GAL"
        offers = await service.get_rates(make_request(sample_destination, [sample_cart_line]), now)

        # 5 business days lead + 3 transit from Wednesday; priority cuts lead to 3
        assert offers[0].min_delivery_date == "2025-06-23"
        assert offers[1].min_delivery_date == "2025-06-19"

    @pytest.mark.asyncio
    async def test_carrier_quoted_for_request_utc_date(
        self, service, mock_carrier, sample_destination, sample_cart_line
    ):
        # 01:00 on the 12th at UTC+5 is still the 11th in UTC
        moment = datetime(2025, 6, 12, 1, 0, tzinfo=timezone(timedelta(hours=5)))
        await service.get_rates(make_request(sample_destination, [sample_cart_line]), moment)

        assert mock_carrier.get_rates.await_args.kwargs["ship_date"] == date(2025, 6, 11)
