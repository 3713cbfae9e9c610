"""
Box Packing

First-fit decreasing by floor area. Items are expanded to single units,
sorted largest footprint first (weight breaks ties) and dropped into the
first open box that still has room. When no open box fits, the smallest
catalog box that can hold the unit on its own is opened; when no catalog box
can, the largest one is used and flagged oversize.

Capacities carry safety margins:
- weight: 90% of (max gross weight - tare)
- floor area: 85% of length x width

Units without dimensions are checked on weight only.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from checkout_rates.core.exceptions import InvalidConfiguration
from checkout_rates.modules.shipping.carriers.base import Package
from checkout_rates.services.cart_items import CartItem, ItemDimensions

logger = logging.getLogger(__name__)

WEIGHT_FILL_PERCENTAGE = 0.9
AREA_FILL_PERCENTAGE = 0.85


@dataclass(frozen=True)
class BoxType:
    """A shipping box from the catalog. Dimensions in inches, weights in lb."""
    name: str
    length: float
    width: float
    height: float
    max_weight_lbs: float
    empty_weight_lbs: float

    def __post_init__(self):
        if self.max_weight_lbs <= self.empty_weight_lbs:
            raise InvalidConfiguration(
                f"Box '{self.name}' max weight must exceed its tare weight",
                details={
                    "box": self.name,
                    "max_weight_lbs": self.max_weight_lbs,
                    "empty_weight_lbs": self.empty_weight_lbs,
                },
            )

    @property
    def floor_area(self) -> float:
        return self.length * self.width

    @property
    def effective_weight_capacity(self) -> float:
        return (self.max_weight_lbs - self.empty_weight_lbs) * WEIGHT_FILL_PERCENTAGE

    @property
    def effective_floor_area(self) -> float:
        return self.floor_area * AREA_FILL_PERCENTAGE


@dataclass
class PackableUnit:
    """One unit of a cart line."""
    weight_lbs: float
    dimensions: Optional[ItemDimensions] = None

    @property
    def floor_area(self) -> float:
        return self.dimensions.floor_area if self.dimensions else 0.0


@dataclass
class PackedBox:
    """A box being filled. Bound to its BoxType for life."""
    box: BoxType
    item_weight_lbs: float = 0.0
    used_floor_area: float = 0.0
    unit_count: int = 0
    # Set when a unit fits no catalog box and was placed in the largest one
    oversize: bool = False
    total_weight_lbs: float = field(init=False)

    def __post_init__(self):
        self.total_weight_lbs = self.box.empty_weight_lbs + self.item_weight_lbs

    @property
    def remaining_weight_capacity(self) -> float:
        return self.box.effective_weight_capacity - self.item_weight_lbs

    @property
    def remaining_floor_area(self) -> float:
        return self.box.effective_floor_area - self.used_floor_area

    def accepts(self, unit: PackableUnit) -> bool:
        if unit.weight_lbs > self.remaining_weight_capacity:
            return False
        if unit.dimensions is None:
            return True
        if unit.dimensions.height > self.box.height:
            return False
        return unit.floor_area <= self.remaining_floor_area

    def add(self, unit: PackableUnit) -> None:
        self.item_weight_lbs += unit.weight_lbs
        self.total_weight_lbs += unit.weight_lbs
        self.used_floor_area += unit.floor_area
        self.unit_count += 1


def unit_fits_box(unit: PackableUnit, box: BoxType) -> bool:
    """Whether a unit fits an empty box of this type."""
    if unit.weight_lbs > box.effective_weight_capacity:
        return False
    if unit.dimensions is None:
        return True
    if unit.dimensions.height > box.height:
        return False
    return unit.floor_area <= box.effective_floor_area


def expand_units(items: Iterable[CartItem]) -> List[PackableUnit]:
    """One PackableUnit per shippable unit, largest footprint first."""
    units = [
        PackableUnit(weight_lbs=item.weight_lbs, dimensions=item.dimensions)
        for item in items
        if item.requires_shipping
        for _ in range(item.quantity)
    ]
    units.sort(key=lambda u: (u.floor_area, u.weight_lbs), reverse=True)
    return units


def pack(items: Iterable[CartItem], boxes: Sequence[BoxType]) -> List[PackedBox]:
    """
    Pack shippable cart units into boxes from the catalog.

    Returns an empty list when nothing needs shipping. Raises
    InvalidConfiguration when there is something to pack but no boxes.
    """
    units = expand_units(items)
    if not units:
        return []

    if not boxes:
        raise InvalidConfiguration(
            "No box configurations available",
            details={"unit_count": len(units)},
        )

    boxes_by_area = sorted(boxes, key=lambda b: b.floor_area)
    largest_box = boxes_by_area[-1]

    packed: List[PackedBox] = []
    for unit in units:
        target = next((p for p in packed if p.accepts(unit)), None)
        if target is None:
            box = next((b for b in boxes_by_area if unit_fits_box(unit, b)), None)
            target = PackedBox(box=box or largest_box, oversize=box is None)
            packed.append(target)
        target.add(unit)

    return packed


def packed_boxes_to_packages(packed_boxes: Iterable[PackedBox]) -> List[Package]:
    """Carrier package descriptors: rounded gross weight plus box dimensions."""
    return [
        Package(
            weight=round(p.total_weight_lbs, 2),
            length=p.box.length,
            width=p.box.width,
            height=p.box.height,
            description=p.box.name,
        )
        for p in packed_boxes
    ]


def packages_for_cart(items: Iterable[CartItem], boxes: Sequence[BoxType]) -> List[Package]:
    packed = pack(items, boxes)
    oversize = [p for p in packed if p.oversize]
    if oversize:
        logger.warning(
            f"{len(oversize)} unit(s) exceed every box in the catalog; "
            f"quoted in '{oversize[0].box.name}' with "
            f"{max(p.total_weight_lbs for p in oversize):.2f} lb gross"
        )
    return packed_boxes_to_packages(packed)
