"""
Shipping Quote Service

Orchestrates one rate request:
1. Test-mode lines short-circuit to fixed test rates
2. Carts with nothing to ship get no rates
3. The route decides between a fixed offer and a carrier quote
4. Carrier-quoted carts are packed, quoted and priced with fees and dates

Carrier and configuration failures propagate as exceptions; an empty offer
list always means "no options", never "upstream failed".
"""
import logging
from datetime import datetime
from typing import List

from checkout_rates.modules.shipping.carriers.base import AddressInput, BaseCarrier
from checkout_rates.schemas.shipping import RateRequestBody, ShopifyAddress
from checkout_rates.services.cart_items import has_test_trigger, parse_cart_items
from checkout_rates.services.lead_times import to_utc_date
from checkout_rates.services.packaging import packages_for_cart
from checkout_rates.services.rate_assembler import (
    PricedOffer,
    assemble_offers,
    build_freight_forwarding_offer,
    build_local_delivery_offer,
    build_test_offers,
)
from checkout_rates.services.rate_config import RateConfigProvider
from checkout_rates.services.routing import RouteType, classify, has_shippable_items

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_DELIVERY_DESCRIPTION = "Free local delivery to Miami-Dade and Broward County"


def destination_to_address(destination: ShopifyAddress) -> AddressInput:
    return AddressInput(
        street_lines=[line for line in (destination.address1, destination.address2) if line],
        city=destination.city or "",
        state_province=destination.province or "",
        postal_code=destination.postal_code,
        country_code=destination.country.strip().upper(),
        recipient_name=destination.name,
    )


class ShippingQuoteService:
    """
    Computes the offers for a cart.

    The rate config is fetched from the provider only once the cart is known
    to need it, so test-mode and non-shippable carts never touch the store.

    Usage:
        service = ShippingQuoteService(carrier, config_provider)
        offers = await service.get_rates(payload.rate, now=datetime.now(timezone.utc))
    """

    def __init__(
        self,
        carrier: BaseCarrier,
        config_provider: RateConfigProvider,
        home_country: str = "US",
        currency: str = "USD",
        local_delivery_description: str = DEFAULT_LOCAL_DELIVERY_DESCRIPTION,
    ):
        self.carrier = carrier
        self.config_provider = config_provider
        self.home_country = home_country
        self.currency = currency
        self.local_delivery_description = local_delivery_description

    async def get_rates(self, request: RateRequestBody, now: datetime) -> List[PricedOffer]:
        today = to_utc_date(now)
        items = parse_cart_items(request.items)
        destination = request.destination

        if has_test_trigger(items):
            logger.info("Test mode triggered by cart item (SKU or property)")
            return build_test_offers(today, self.currency)

        if not has_shippable_items(items):
            return []

        config = await self.config_provider.get()

        route = classify(
            destination.country,
            destination.postal_code,
            items,
            config.local_delivery_zips,
            home_country=self.home_country,
        )

        logger.info(
            f"Rate request routing decision: zip={destination.postal_code} "
            f"country={destination.country} items={len(items)} "
            f"route={route.route_type.value} customer_type={route.customer_type.value}"
        )

        if route.route_type is RouteType.LOCAL_DELIVERY:
            return [build_local_delivery_offer(today, self.currency, self.local_delivery_description)]

        if route.route_type is RouteType.FREIGHT_FORWARDING:
            return [build_freight_forwarding_offer(today, self.currency)]

        packages = packages_for_cart(items, config.boxes)
        if not packages:
            return []

        carrier_rates = await self.carrier.get_rates(
            origin=config.shipper_address,
            destination=destination_to_address(destination),
            packages=packages,
            is_international=route.is_international,
            ship_date=today,
        )

        if not carrier_rates:
            logger.warning(
                f"No valid carrier rates returned: zip={destination.postal_code} "
                f"route={route.route_type.value}"
            )
            return []

        return assemble_offers(
            carrier_rates,
            items,
            config.handling_fees,
            config.priority_fee_cents,
            config.lead_times,
            today,
            self.currency,
        )
