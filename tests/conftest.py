"""
Pytest configuration and fixtures for checkout rates tests.
"""
import os
import pytest
from datetime import datetime, timezone
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SHOPIFY_SHARED_SECRET"] = ""
os.environ["RATE_CONFIG_PATH"] = ""


@pytest.fixture
def now() -> datetime:
    """Wednesday 2025-06-11, mid-afternoon UTC."""
    return datetime(2025, 6, 11, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_item() -> Callable:
    """Factory for CartItem values with sensible defaults."""
    from checkout_rates.services.cart_items import CartItem, ItemDimensions

    def _make(sku="GAL-1", quantity=1, weight_lbs=10.0, dims=None, **kwargs):
        dimensions = ItemDimensions(*dims) if dims else None
        return CartItem(
            sku=sku,
            quantity=quantity,
            weight_lbs=weight_lbs,
            dimensions=dimensions,
            **kwargs,
        )

    return _make


@pytest.fixture
def box_catalog() -> list:
    """The default 2/4/6-gallon boxes."""
    from checkout_rates.services.rate_config import DEFAULT_BOX_SIZES
    return list(DEFAULT_BOX_SIZES)


@pytest.fixture
def rate_config():
    """Default tables with a couple of local zips and one long lead time."""
    from checkout_rates.services.rate_config import RateConfig
    return RateConfig(
        local_delivery_zips=frozenset({"33172", "33301"}),
        lead_times={"default": 1, "DRUM-55GAL": 5},
    )


@pytest.fixture
def config_provider(rate_config) -> MagicMock:
    """Config provider serving rate_config without touching the filesystem."""
    provider = MagicMock()
    provider.get = AsyncMock(return_value=rate_config)
    provider.invalidate = MagicMock()
    return provider


@pytest.fixture
def carrier_rates() -> list:
    """One ground and one air rate, as a carrier returns them."""
    from checkout_rates.modules.shipping.carriers.base import ParsedCarrierRate
    return [
        ParsedCarrierRate(
            service_type="FEDEX_GROUND",
            service_name="FedEx Ground",
            total_charge_cents=2550,
            transit_days=3,
        ),
        ParsedCarrierRate(
            service_type="FEDEX_2_DAY",
            service_name="FedEx 2Day",
            total_charge_cents=6400,
            transit_days=2,
        ),
    ]


@pytest.fixture
def mock_carrier(carrier_rates) -> AsyncMock:
    """Create mock carrier returning carrier_rates."""
    from checkout_rates.modules.shipping.carriers.base import CarrierCode

    carrier = AsyncMock()
    carrier.carrier_code = CarrierCode.FEDEX
    carrier.carrier_name = "FedEx"
    carrier.get_rates = AsyncMock(return_value=carrier_rates)
    carrier.close = AsyncMock()
    return carrier


@pytest.fixture
def sample_destination() -> dict:
    """Domestic, non-local destination as Shopify sends it."""
    return {
        "country": "US",
        "postal_code": "10001",
        "province": "NY",
        "city": "New York",
        "name": "John Doe",
        "address1": "123 Main Street",
        "address2": "Apt 4B",
        "address3": None,
        "phone": "212-555-1234",
        "fax": None,
        "email": None,
        "address_type": None,
        "company_name": None,
    }


@pytest.fixture
def sample_cart_line() -> dict:
    """A 2 kg gallon jug as a Shopify cart line."""
    return {
        "name": "Acid Cleaner 1 Gallon",
        "sku": "GAL-1",
        "quantity": 1,
        "grams": 2000,
        "price": 2999,
        "vendor": "JDL",
        "requires_shipping": True,
        "taxable": True,
        "fulfillment_service": "manual",
        "properties": None,
        "product_id": 111,
        "variant_id": 222,
    }


@pytest.fixture
def rate_request_payload(sample_destination, sample_cart_line) -> dict:
    return {
        "rate": {
            "origin": {"country": "US", "postal_code": "33172", "province": "FL", "city": "Miami"},
            "destination": sample_destination,
            "items": [sample_cart_line],
            "currency": "USD",
            "locale": "en",
        }
    }
