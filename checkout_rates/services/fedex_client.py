"""
FedEx API Client for checkout rate quotes

Implements FedEx OAuth 2.0 (client credentials) and the Rate API v1:
- Token is kept in an injected ExpiringCache and refreshed before expiry
- Rate quotes are requested with LIST and ACCOUNT rate types, transit times included
- Responses are reduced to the allowed services, account rate preferred

All external API calls are logged and mapped to CarrierError subclasses.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

import httpx

from checkout_rates.core.cache import ExpiringCache
from checkout_rates.core.exceptions import (
    CarrierAuthError,
    CarrierError,
    CarrierRateError,
    CarrierTimeoutError,
)

logger = logging.getLogger(__name__)

CARRIER_NAME = "fedex"

# FedEx API URLs
FEDEX_PRODUCTION_URL = "https://apis.fedex.com"
FEDEX_SANDBOX_URL = "https://apis-sandbox.fedex.com"

OAUTH_TOKEN_PATH = "/oauth/token"
RATE_QUOTE_PATH = "/rate/v1/rates/quotes"

DEFAULT_TIMEOUT_SECONDS = 8.0
DEFAULT_TOKEN_EXPIRY_BUFFER_SECONDS = 60

DOMESTIC_GROUND_SERVICES = (
    "FEDEX_GROUND",
    "GROUND_HOME_DELIVERY",
)

DOMESTIC_AIR_SERVICES = (
    "FEDEX_2_DAY",
    "FEDEX_2_DAY_AM",
    "FEDEX_EXPRESS_SAVER",
    "STANDARD_OVERNIGHT",
    "PRIORITY_OVERNIGHT",
    "FIRST_OVERNIGHT",
)

INTERNATIONAL_SERVICES = (
    "INTERNATIONAL_PRIORITY",
    "INTERNATIONAL_ECONOMY",
    "INTERNATIONAL_FIRST",
)

ALLOWED_SERVICES = frozenset(DOMESTIC_GROUND_SERVICES + DOMESTIC_AIR_SERVICES + INTERNATIONAL_SERVICES)
GROUND_SERVICE_SET = frozenset(DOMESTIC_GROUND_SERVICES)

SERVICE_DISPLAY_NAMES = {
    "FEDEX_GROUND": "FedEx Ground",
    "GROUND_HOME_DELIVERY": "FedEx Home Delivery",
    "FEDEX_2_DAY": "FedEx 2Day",
    "FEDEX_2_DAY_AM": "FedEx 2Day AM",
    "FEDEX_EXPRESS_SAVER": "FedEx Express Saver",
    "STANDARD_OVERNIGHT": "FedEx Standard Overnight",
    "PRIORITY_OVERNIGHT": "FedEx Priority Overnight",
    "FIRST_OVERNIGHT": "FedEx First Overnight",
    "INTERNATIONAL_PRIORITY": "FedEx International Priority",
    "INTERNATIONAL_ECONOMY": "FedEx International Economy",
    "INTERNATIONAL_FIRST": "FedEx International First",
}

ACCOUNT_RATE_TYPES = ("PAYOR_ACCOUNT_PACKAGE", "PAYOR_ACCOUNT_SHIPMENT")
LIST_RATE_TYPES = ("PAYOR_LIST_PACKAGE", "PAYOR_LIST_SHIPMENT")

# Checked in order; the first word contained in the text wins
TRANSIT_TIME_WORDS = (
    ("ONE", 1),
    ("TWO", 2),
    ("THREE", 3),
    ("FOUR", 4),
    ("FIVE", 5),
    ("SIX", 6),
    ("SEVEN", 7),
    ("EIGHT", 8),
    ("NINE", 9),
    ("TEN", 10),
)
DEFAULT_TRANSIT_DAYS = 1

_DIGITS = re.compile(r"(\d+)")


@dataclass
class FedExCredentials:
    """FedEx API credentials."""
    client_id: str
    client_secret: str
    account_number: str
    use_sandbox: bool = False

    @property
    def base_url(self) -> str:
        return FEDEX_SANDBOX_URL if self.use_sandbox else FEDEX_PRODUCTION_URL


@dataclass
class FedExAddress:
    """Address structure for FedEx APIs."""
    city: str
    state_province: str
    postal_code: str
    country_code: str
    street_lines: List[str] = field(default_factory=list)

    def to_fedex_format(self) -> Dict:
        return {
            "streetLines": [line for line in self.street_lines if line],
            "city": self.city or "",
            "stateOrProvinceCode": self.state_province or "",
            "postalCode": self.postal_code or "",
            "countryCode": self.country_code or "",
        }


@dataclass
class DangerousGoodsSignatory:
    contact_name: str
    title: str
    place: str


@dataclass
class FedExPackage:
    """Package line item for the Rate API."""
    weight: float  # LB
    length: float  # IN
    width: float
    height: float
    dangerous_goods: Optional[DangerousGoodsSignatory] = None

    def to_fedex_format(self) -> Dict:
        package = {
            "weight": {"units": "LB", "value": round(self.weight, 2)},
            "dimensions": {
                "length": self.length,
                "width": self.width,
                "height": self.height,
                "units": "IN",
            },
            "groupPackageCount": 1,
        }

        if self.dangerous_goods:
            package["specialServicesRequested"] = {
                "specialServiceTypes": ["DANGEROUS_GOODS"],
                "dangerousGoodsDetail": {
                    "accessibility": "ACCESSIBLE",
                    "regulationType": "DOT_IATA",
                    "cargo": True,
                    "signatory": {
                        "contactName": self.dangerous_goods.contact_name,
                        "title": self.dangerous_goods.title,
                        "place": self.dangerous_goods.place,
                    },
                },
            }

        return package


@dataclass
class FedExRate:
    """A priced FedEx service."""
    service_type: str
    service_name: str
    total_charge_cents: int
    transit_days: int = DEFAULT_TRANSIT_DAYS
    delivery_date: Optional[str] = None


def is_ground_service(service_type: str) -> bool:
    return service_type in GROUND_SERVICE_SET


def parse_transit_time(transit_time: Optional[str]) -> int:
    """
    Business days from a FedEx transit-time string.

    Digits win ("3", "TRANSIT_3_DAYS"); otherwise the first of ONE..TEN
    contained in the text ("TWO_DAYS" -> 2); otherwise 1.
    """
    if not transit_time:
        return DEFAULT_TRANSIT_DAYS

    match = _DIGITS.search(transit_time)
    if match:
        return int(match.group(1))

    upper = transit_time.upper()
    for word, days in TRANSIT_TIME_WORDS:
        if word in upper:
            return days

    return DEFAULT_TRANSIT_DAYS


def amount_to_cents(amount: Any) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _select_rated_detail(rated_details: List[Dict]) -> Optional[Dict]:
    for rate_types in (ACCOUNT_RATE_TYPES, LIST_RATE_TYPES):
        for detail in rated_details:
            if detail.get("rateType") in rate_types:
                return detail
    return None


def _total_charge(rated_detail: Dict) -> Optional[Any]:
    for key in ("totalNetCharge", "totalNetFedExCharge"):
        value = rated_detail.get(key)
        # Either a bare amount or a list of per-currency amounts
        if isinstance(value, list):
            value = value[0] if value else None
        if isinstance(value, dict):
            value = value.get("amount")
        if value is not None and value != "":
            return value
    return None


def _transit_text(detail: Dict) -> Optional[str]:
    commit = detail.get("commit") or {}
    operational = detail.get("operationalDetail") or {}
    return (
        commit.get("transitTime")
        or (commit.get("transitDays") or {}).get("minimumTransitTime")
        or operational.get("transitTime")
    )


def _delivery_date(detail: Dict) -> Optional[str]:
    commit = detail.get("commit") or {}
    operational = detail.get("operationalDetail") or {}
    return commit.get("deliveryTimestamp") or operational.get("deliveryDate")


def parse_rate_response(response: Dict) -> List[FedExRate]:
    """
    Reduce a Rate API response to allowed, priced services.

    Unknown services are dropped; services without a usable rate detail or
    charge are skipped.
    """
    details = (response.get("output") or {}).get("rateReplyDetails") or []

    rates = []
    for detail in details:
        service_type = detail.get("serviceType")
        if service_type not in ALLOWED_SERVICES:
            continue

        rated = _select_rated_detail(detail.get("ratedShipmentDetails") or [])
        if rated is None:
            logger.debug(f"FedEx {service_type}: no account or list rate, skipping")
            continue

        charge = _total_charge(rated)
        if charge is None:
            logger.debug(f"FedEx {service_type}: rate has no total charge, skipping")
            continue

        try:
            total_charge_cents = amount_to_cents(charge)
        except (InvalidOperation, ValueError, TypeError):
            logger.debug(f"FedEx {service_type}: unusable total charge {charge!r}, skipping")
            continue

        rates.append(FedExRate(
            service_type=service_type,
            service_name=SERVICE_DISPLAY_NAMES.get(service_type) or detail.get("serviceName") or service_type,
            total_charge_cents=total_charge_cents,
            transit_days=parse_transit_time(_transit_text(detail)),
            delivery_date=_delivery_date(detail),
        ))

    return rates


def build_rate_request(
    shipper: FedExAddress,
    recipient: FedExAddress,
    packages: List[FedExPackage],
    account_number: str,
    ship_date: date,
    currency: str = "USD",
) -> Dict:
    return {
        "accountNumber": {"value": account_number},
        "rateRequestControlParameters": {
            "returnTransitTimes": True,
            "servicesNeededOnRateFailure": True,
        },
        "requestedShipment": {
            "shipper": {"address": shipper.to_fedex_format()},
            "recipient": {"address": recipient.to_fedex_format()},
            "preferredCurrency": currency,
            "shipDateStamp": ship_date.isoformat(),
            "pickupType": "DROPOFF_AT_FEDEX_LOCATION",
            "packagingType": "YOUR_PACKAGING",
            "rateRequestType": ["LIST", "ACCOUNT"],
            "requestedPackageLineItems": [pkg.to_fedex_format() for pkg in packages],
        },
    }


class FedExClient:
    """
    FedEx API Client with OAuth 2.0 authentication.

    The bearer token lives in the injected token_cache; one cache may be
    shared by clients with different credentials since entries are keyed by
    client id.
    """

    def __init__(
        self,
        credentials: FedExCredentials,
        token_cache: ExpiringCache,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        token_expiry_buffer_seconds: int = DEFAULT_TOKEN_EXPIRY_BUFFER_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.credentials = credentials
        self.token_cache = token_cache
        self.timeout = timeout
        self.token_expiry_buffer_seconds = token_expiry_buffer_seconds
        self._http_client = http_client

    @property
    def _token_key(self) -> str:
        return f"fedex:token:{self.credentials.client_id}"

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def close(self):
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _ensure_token(self) -> str:
        """Return a cached OAuth token or fetch a new one."""
        token = self.token_cache.get(self._token_key)
        if token:
            return token

        client = await self._get_http_client()
        url = f"{self.credentials.base_url}{OAUTH_TOKEN_PATH}"

        try:
            response = await client.post(
                url,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.credentials.client_id,
                    "client_secret": self.credentials.client_secret,
                },
            )
        except httpx.TimeoutException as e:
            logger.error(f"FedEx OAuth request timed out: {e}")
            raise CarrierTimeoutError("FedEx OAuth request timed out", carrier=CARRIER_NAME)
        except httpx.RequestError as e:
            logger.error(f"FedEx OAuth request failed: {e}")
            raise CarrierError(
                f"Network error during authentication: {e}",
                carrier=CARRIER_NAME,
                code="NETWORK_ERROR",
            )

        if response.status_code != 200:
            logger.error(f"FedEx OAuth failed: {response.status_code} - {response.text[:500]}")
            raise CarrierAuthError(
                "Failed to authenticate with FedEx",
                carrier=CARRIER_NAME,
                status_code=response.status_code,
            )

        try:
            data = response.json()
            token = data["access_token"]
            expires_in = int(data.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError) as e:
            raise CarrierAuthError(f"Malformed FedEx OAuth response: {e}", carrier=CARRIER_NAME)

        self.token_cache.set(
            self._token_key,
            token,
            ttl_seconds=expires_in - self.token_expiry_buffer_seconds,
        )
        logger.info(f"FedEx OAuth token obtained, expires in {expires_in}s")
        return token

    async def _post_rate_request(self, request_data: Dict) -> Dict:
        token = await self._ensure_token()
        client = await self._get_http_client()
        url = f"{self.credentials.base_url}{RATE_QUOTE_PATH}"

        try:
            response = await client.post(
                url,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                json=request_data,
                timeout=self.timeout,
            )
        except httpx.TimeoutException:
            logger.error(f"FedEx Rate API request timed out after {self.timeout}s")
            raise CarrierTimeoutError("FedEx Rate API request timed out", carrier=CARRIER_NAME)
        except httpx.RequestError as e:
            logger.error(f"FedEx Rate API request failed: {e}")
            raise CarrierError(f"Network error: {e}", carrier=CARRIER_NAME, code="NETWORK_ERROR")

        logger.debug(f"FedEx API POST {RATE_QUOTE_PATH} -> {response.status_code}")

        if response.status_code == 401:
            # Token revoked or expired early; next request fetches a fresh one
            self.token_cache.invalidate(self._token_key)

        if response.status_code >= 400:
            logger.error(f"FedEx Rate API failed: {response.status_code} - {response.text[:500]}")
            raise CarrierRateError(
                "FedEx Rate API error",
                carrier=CARRIER_NAME,
                status_code=response.status_code,
                details={"body": response.text[:500]},
            )

        try:
            return response.json()
        except ValueError:
            raise CarrierRateError(
                "FedEx Rate API returned invalid JSON",
                carrier=CARRIER_NAME,
                status_code=response.status_code,
            )

    async def get_rates(
        self,
        shipper: FedExAddress,
        recipient: FedExAddress,
        packages: List[FedExPackage],
        ship_date: date,
        currency: str = "USD",
    ) -> List[FedExRate]:
        """
        Get shipping rates for a shipment.

        Raises:
            CarrierRateError: if FedEx reports errors for the request
        """
        request_data = build_rate_request(
            shipper,
            recipient,
            packages,
            self.credentials.account_number,
            ship_date,
            currency,
        )

        response = await self._post_rate_request(request_data)

        errors = response.get("errors") or []
        if errors:
            logger.error(f"FedEx API returned errors: {errors}")
            raise CarrierRateError(
                "FedEx API error",
                carrier=CARRIER_NAME,
                details={"errors": errors},
            )

        return parse_rate_response(response)
