"""
FedEx Carrier Implementation

- Implements BaseCarrier interface
- Wraps FedExClient
- Registered via @register_carrier decorator
"""
import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

import httpx

from checkout_rates.core.cache import ExpiringCache
from checkout_rates.core.config import settings
from checkout_rates.modules.shipping.carriers import register_carrier
from checkout_rates.modules.shipping.carriers.base import (
    AddressInput,
    BaseCarrier,
    CarrierCode,
    Package,
    ParsedCarrierRate,
)
from checkout_rates.services.fedex_client import (
    DangerousGoodsSignatory,
    FedExAddress,
    FedExClient,
    FedExCredentials,
    FedExPackage,
)

logger = logging.getLogger(__name__)


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


@register_carrier(CarrierCode.FEDEX)
class FedExCarrier(BaseCarrier):
    """
    FedEx shipping carrier implementation.

    Credentials and hazmat declaration default to application settings.
    """

    def __init__(
        self,
        token_cache: ExpiringCache,
        credentials: Optional[FedExCredentials] = None,
        dangerous_goods: Optional[DangerousGoodsSignatory] = None,
        declare_dangerous_goods: Optional[bool] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        today: Callable[[], date] = _utc_today,
        currency: Optional[str] = None,
    ):
        self.credentials = credentials or FedExCredentials(
            client_id=settings.FEDEX_CLIENT_ID,
            client_secret=settings.FEDEX_CLIENT_SECRET,
            account_number=settings.FEDEX_ACCOUNT_NUMBER,
            use_sandbox=settings.FEDEX_USE_SANDBOX,
        )

        if declare_dangerous_goods is None:
            declare_dangerous_goods = settings.FEDEX_DANGEROUS_GOODS
        if declare_dangerous_goods and dangerous_goods is None:
            dangerous_goods = DangerousGoodsSignatory(
                contact_name=settings.FEDEX_DG_SIGNATORY_NAME,
                title=settings.FEDEX_DG_SIGNATORY_TITLE,
                place=settings.FEDEX_DG_SIGNATORY_PLACE,
            )
        self.dangerous_goods = dangerous_goods if declare_dangerous_goods else None

        self.currency = currency or settings.CURRENCY
        self._today = today
        self._client = FedExClient(
            self.credentials,
            token_cache=token_cache,
            timeout=timeout if timeout is not None else settings.FEDEX_API_TIMEOUT_SECONDS,
            token_expiry_buffer_seconds=settings.FEDEX_TOKEN_EXPIRY_BUFFER_SECONDS,
            http_client=http_client,
        )

    @property
    def carrier_code(self) -> CarrierCode:
        return CarrierCode.FEDEX

    @property
    def carrier_name(self) -> str:
        return "FedEx"

    @property
    def client(self) -> FedExClient:
        return self._client

    def _to_fedex_address(self, address: AddressInput) -> FedExAddress:
        return FedExAddress(
            city=address.city,
            state_province=address.state_province,
            postal_code=address.postal_code,
            country_code=address.country_code,
            street_lines=list(address.street_lines),
        )

    def _to_fedex_package(self, package: Package) -> FedExPackage:
        return FedExPackage(
            weight=package.weight,
            length=package.length,
            width=package.width,
            height=package.height,
            dangerous_goods=self.dangerous_goods,
        )

    async def get_rates(
        self,
        origin: AddressInput,
        destination: AddressInput,
        packages: List[Package],
        is_international: bool = False,
        ship_date: Optional[date] = None,
    ) -> List[ParsedCarrierRate]:
        """Get FedEx rates. CarrierError subclasses propagate to the caller."""
        if not packages:
            return []

        fedex_rates = await self._client.get_rates(
            shipper=self._to_fedex_address(origin),
            recipient=self._to_fedex_address(destination),
            packages=[self._to_fedex_package(p) for p in packages],
            ship_date=ship_date or self._today(),
            currency=self.currency,
        )

        if not fedex_rates:
            logger.warning(
                f"No valid FedEx rates returned for {destination.postal_code} "
                f"{destination.country_code} (international={is_international})"
            )

        return [
            ParsedCarrierRate(
                service_type=rate.service_type,
                service_name=rate.service_name,
                total_charge_cents=rate.total_charge_cents,
                transit_days=rate.transit_days,
                delivery_date=rate.delivery_date,
            )
            for rate in fedex_rates
        ]

    async def close(self) -> None:
        await self._client.close()
