"""
Rate Configuration Store

Quoting tables live in a JSON document (see config/rate_config.example.json):

    {
      "local_delivery_zips": ["33101", ...],
      "shipper_address": {"streetLines": [...], "city": ..., "stateOrProvinceCode": ...,
                          "postalCode": ..., "countryCode": ...},
      "box_sizes": [{"name": ..., "length": ..., "width": ..., "height": ...,
                     "maxWeightLbs": ..., "emptyWeightLbs": ...}],
      "handling_fees": {"ground_per_order": 30, "air_per_order": 125},
      "lead_times": {"default": 1, "SKU-123": 5},
      "priority_fee": 3000
    }

Each key is validated on its own. A missing key uses its default; a
malformed one logs a warning and uses its default. Only an unreadable
document fails the load.
"""
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from checkout_rates.core.cache import ExpiringCache
from checkout_rates.core.exceptions import ConfigLoadError
from checkout_rates.modules.shipping.carriers.base import AddressInput
from checkout_rates.services.packaging import BoxType
from checkout_rates.services.rate_assembler import HandlingFees
from checkout_rates.services.routing import normalize_postal_code

logger = logging.getLogger(__name__)

CONFIG_CACHE_KEY = "rate_config"

LOCAL_DELIVERY_ZIPS_KEY = "local_delivery_zips"
SHIPPER_ADDRESS_KEY = "shipper_address"
BOX_SIZES_KEY = "box_sizes"
HANDLING_FEES_KEY = "handling_fees"
LEAD_TIMES_KEY = "lead_times"
PRIORITY_FEE_KEY = "priority_fee"


# ==================== Defaults ====================

DEFAULT_SHIPPER_ADDRESS = AddressInput(
    street_lines=["9500 Northwest 12th Street", "Unit 6"],
    city="Miami",
    state_province="FL",
    postal_code="33172-2831",
    country_code="US",
    residential=False,
)

DEFAULT_BOX_SIZES = [
    BoxType(name="2-gallon", length=18, width=12, height=10, max_weight_lbs=30, empty_weight_lbs=2),
    BoxType(name="4-gallon", length=18, width=18, height=10, max_weight_lbs=55, empty_weight_lbs=3),
    BoxType(name="6-gallon", length=24, width=18, height=10, max_weight_lbs=80, empty_weight_lbs=4),
]

DEFAULT_HANDLING_FEES = HandlingFees(ground_per_order=Decimal("30"), air_per_order=Decimal("125"))

DEFAULT_LEAD_TIMES = {"default": 1}

DEFAULT_PRIORITY_FEE_CENTS = 3000


# ==================== Document Schemas ====================


class ShipperAddressDoc(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    street_lines: List[str] = Field(default_factory=list, alias="streetLines")
    city: str
    state_province: str = Field(..., alias="stateOrProvinceCode")
    postal_code: str = Field(..., alias="postalCode")
    country_code: str = Field("US", alias="countryCode")


class BoxSizeDoc(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    length: float = Field(..., gt=0)
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
    max_weight_lbs: float = Field(..., gt=0, alias="maxWeightLbs")
    empty_weight_lbs: float = Field(..., ge=0, alias="emptyWeightLbs")


class HandlingFeesDoc(BaseModel):
    ground_per_order: Decimal = Field(..., ge=0)
    air_per_order: Decimal = Field(..., ge=0)


class LeadTimesDoc(BaseModel):
    lead_times: Dict[str, int]

    @field_validator("lead_times")
    @classmethod
    def non_negative(cls, v):
        for sku, days in v.items():
            if days < 0:
                raise ValueError(f"lead time for {sku!r} is negative")
        return v


_zip_list = TypeAdapter(List[str])
_box_list = TypeAdapter(List[BoxSizeDoc])
_priority_fee = TypeAdapter(int)


# ==================== Config ====================


@dataclass
class RateConfig:
    local_delivery_zips: FrozenSet[str] = frozenset()
    shipper_address: AddressInput = field(default_factory=lambda: DEFAULT_SHIPPER_ADDRESS)
    boxes: List[BoxType] = field(default_factory=lambda: list(DEFAULT_BOX_SIZES))
    handling_fees: HandlingFees = field(default_factory=lambda: DEFAULT_HANDLING_FEES)
    lead_times: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_LEAD_TIMES))
    priority_fee_cents: int = DEFAULT_PRIORITY_FEE_CENTS


def _parse_key(document: Dict[str, Any], key: str, parse: Callable[[Any], Any], default: Any) -> Any:
    if key not in document or document[key] is None:
        return default
    try:
        return parse(document[key])
    except (ValidationError, ValueError, TypeError) as e:
        logger.warning(f"Failed to parse rate config '{key}', using default: {e}")
        return default


def _parse_zips(raw: Any) -> FrozenSet[str]:
    return frozenset(
        code for code in (normalize_postal_code(z) for z in _zip_list.validate_python(raw)) if code
    )


def _parse_shipper(raw: Any) -> AddressInput:
    doc = ShipperAddressDoc.model_validate(raw)
    return AddressInput(
        street_lines=doc.street_lines,
        city=doc.city,
        state_province=doc.state_province,
        postal_code=doc.postal_code,
        country_code=doc.country_code,
        residential=False,
    )


def _parse_boxes(raw: Any) -> List[BoxType]:
    # BoxType raises InvalidConfiguration for max <= tare; that is not a parse
    # failure and propagates
    return [
        BoxType(
            name=doc.name,
            length=doc.length,
            width=doc.width,
            height=doc.height,
            max_weight_lbs=doc.max_weight_lbs,
            empty_weight_lbs=doc.empty_weight_lbs,
        )
        for doc in _box_list.validate_python(raw)
    ]


def _parse_fees(raw: Any) -> HandlingFees:
    doc = HandlingFeesDoc.model_validate(raw)
    return HandlingFees(ground_per_order=doc.ground_per_order, air_per_order=doc.air_per_order)


def _parse_lead_times(raw: Any) -> Dict[str, int]:
    return LeadTimesDoc(lead_times=raw).lead_times


def _parse_priority_fee(raw: Any) -> int:
    fee = _priority_fee.validate_python(raw)
    if fee < 0:
        raise ValueError("priority fee is negative")
    return fee


def parse_rate_config(document: Dict[str, Any]) -> RateConfig:
    """Build a RateConfig from an already-decoded document."""
    return RateConfig(
        local_delivery_zips=_parse_key(document, LOCAL_DELIVERY_ZIPS_KEY, _parse_zips, frozenset()),
        shipper_address=_parse_key(document, SHIPPER_ADDRESS_KEY, _parse_shipper, DEFAULT_SHIPPER_ADDRESS),
        boxes=_parse_key(document, BOX_SIZES_KEY, _parse_boxes, list(DEFAULT_BOX_SIZES)),
        handling_fees=_parse_key(document, HANDLING_FEES_KEY, _parse_fees, DEFAULT_HANDLING_FEES),
        lead_times=_parse_key(document, LEAD_TIMES_KEY, _parse_lead_times, dict(DEFAULT_LEAD_TIMES)),
        priority_fee_cents=_parse_key(document, PRIORITY_FEE_KEY, _parse_priority_fee, DEFAULT_PRIORITY_FEE_CENTS),
    )


def load_rate_config(path: Union[str, Path, None]) -> RateConfig:
    """
    Load the rate config document at path.

    An empty path means no store is configured and yields the defaults.

    Raises:
        ConfigLoadError: if the file cannot be read or is not a JSON object
    """
    if not path:
        return RateConfig()

    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except OSError as e:
        raise ConfigLoadError(f"Cannot read rate config: {e}", path=str(path))
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Rate config is not valid JSON: {e}", path=str(path))

    if not isinstance(document, dict):
        raise ConfigLoadError("Rate config must be a JSON object", path=str(path))

    config = parse_rate_config(document)
    logger.info(
        f"Loaded rate config from {path}: {len(config.local_delivery_zips)} local zips, "
        f"{len(config.boxes)} box sizes, {len(config.lead_times)} lead times"
    )
    return config


class RateConfigProvider:
    """Serves the rate config, reloading it once the cache entry expires."""

    def __init__(self, path: Optional[str], cache: ExpiringCache, ttl_seconds: Optional[float] = None):
        self.path = path
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def get(self) -> RateConfig:
        async def _load() -> RateConfig:
            return load_rate_config(self.path)

        return await self.cache.get_or_fetch(CONFIG_CACHE_KEY, _load, self.ttl_seconds)

    def invalidate(self) -> None:
        self.cache.invalidate(CONFIG_CACHE_KEY)
