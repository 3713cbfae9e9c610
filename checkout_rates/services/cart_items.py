"""
Cart Item Extraction

Turns Shopify cart lines into typed CartItem values. The loosely structured
line-item properties are read here, once:
- _length / _width / _height  -> ItemDimensions (inches)
- _customer_type              -> CustomerType
- _test_mode                  -> test trigger

Everything downstream (packing, routing, lead times) works on CartItem only.
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

GRAMS_PER_LB = 453.592

LENGTH_PROPERTY = "_length"
WIDTH_PROPERTY = "_width"
HEIGHT_PROPERTY = "_height"
CUSTOMER_TYPE_PROPERTY = "_customer_type"
TEST_MODE_PROPERTY = "_test_mode"
TEST_SKU = "TEST-SHIPPING"

# Leading number of values like "7 in", "12.5", "7.25 in "
_LEADING_NUMBER = re.compile(r"^(\d+(?:\.\d*)?|\.\d+)")


class CustomerType(str, Enum):
    STANDARD = "standard"
    INTERNATIONAL_MILITARY = "international_military"
    FREIGHT_FORWARDING = "freight_forwarding"
    FEDEX_OWN_ACCOUNT = "fedex_own_account"


@dataclass(frozen=True)
class ItemDimensions:
    """Per-unit dimensions in inches. Only built when all three are positive."""
    length: float
    width: float
    height: float

    @property
    def floor_area(self) -> float:
        return self.length * self.width


@dataclass
class CartItem:
    """A cart line, normalized for quoting."""
    sku: str
    quantity: int
    weight_lbs: float  # per unit
    requires_shipping: bool = True
    dimensions: Optional[ItemDimensions] = None
    customer_type: Optional[CustomerType] = None
    test_mode: bool = False
    name: str = ""

    @property
    def total_weight_lbs(self) -> float:
        return self.weight_lbs * self.quantity


def grams_to_lbs(grams: float) -> float:
    return grams / GRAMS_PER_LB


def total_cart_weight_lbs(items: Iterable[CartItem]) -> float:
    """Total weight of the shippable units in the cart, in pounds."""
    return sum(item.total_weight_lbs for item in items if item.requires_shipping)


def parse_numeric_property(value: Optional[str]) -> Optional[float]:
    """
    Parse the leading positive number of a property value.

    Returns None for missing, non-numeric, zero or negative values.
    """
    if not value:
        return None

    match = _LEADING_NUMBER.match(value.strip())
    if not match:
        return None

    parsed = float(match.group(1))
    return parsed if parsed > 0 else None


def extract_dimensions(properties: Dict[str, str]) -> Optional[ItemDimensions]:
    length = parse_numeric_property(properties.get(LENGTH_PROPERTY))
    width = parse_numeric_property(properties.get(WIDTH_PROPERTY))
    height = parse_numeric_property(properties.get(HEIGHT_PROPERTY))

    if length is None or width is None or height is None:
        return None
    return ItemDimensions(length=length, width=width, height=height)


def extract_customer_type(properties: Dict[str, str]) -> Optional[CustomerType]:
    """
    Read the recognized customer type from a line's properties.

    "standard" and unknown values are not signals and return None, so a later
    line in the cart can still supply the type.
    """
    raw = properties.get(CUSTOMER_TYPE_PROPERTY)
    if not raw:
        return None
    try:
        customer_type = CustomerType(raw)
    except ValueError:
        logger.debug(f"Ignoring unrecognized customer type: {raw!r}")
        return None
    if customer_type is CustomerType.STANDARD:
        return None
    return customer_type


def is_test_line(sku: Optional[str], properties: Dict[str, str]) -> bool:
    if sku and sku.upper() == TEST_SKU:
        return True
    return properties.get(TEST_MODE_PROPERTY) == "true"


def parse_cart_item(line) -> CartItem:
    """
    Build a CartItem from a Shopify cart line.

    Accepts the ShopifyCartItem schema or anything with the same attributes.
    """
    properties = line.properties or {}
    return CartItem(
        sku=line.sku or "",
        quantity=line.quantity,
        weight_lbs=grams_to_lbs(line.grams or 0),
        requires_shipping=bool(line.requires_shipping),
        dimensions=extract_dimensions(properties),
        customer_type=extract_customer_type(properties),
        test_mode=is_test_line(line.sku, properties),
        name=line.name or "",
    )


def parse_cart_items(lines) -> List[CartItem]:
    return [parse_cart_item(line) for line in lines]


def has_test_trigger(items: Iterable[CartItem]) -> bool:
    return any(item.test_mode for item in items)
