"""
OrderItem value type and the single item-normalization boundary.

Every place where items enter or leave the engine (session load/save, tab
load/save/transfer, settlement) goes through normalize_items(), so an item
handed out of this package always has a non-blank name and validated numbers.
"""
import logging
import uuid
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from django.conf import settings

from core_backend.exceptions import ValidationError
from payments.money import ZERO, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_NAME_TEMPLATE = "Item {variant_id}"


def new_item_id() -> str:
    return uuid.uuid4().hex


def placeholder_name(variant_id) -> str:
    template = getattr(settings, "UNASSIGNED_ITEM_NAME_TEMPLATE", DEFAULT_NAME_TEMPLATE)
    return template.format(variant_id=variant_id)


def _require_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number")
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        decimal_value = to_decimal(value, field)
        if decimal_value != decimal_value.to_integral_value():
            raise ValidationError(f"{field} must be a whole number", details={field: str(value)})
        return int(decimal_value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValidationError(f"{field} must be a whole number", details={field: str(value)})


@dataclass(frozen=True)
class OrderItem:
    id: str
    variant_id: int
    product_id: Optional[int]
    name: str
    price: Decimal
    quantity: int
    effective_tax_rate: Decimal = ZERO

    def __post_init__(self):
        if self.price < 0:
            raise ValidationError(f"Price of '{self.name or self.variant_id}' cannot be negative")
        if self.quantity < 1:
            raise ValidationError(f"Quantity of '{self.name or self.variant_id}' must be at least 1")
        if not (ZERO <= self.effective_tax_rate <= Decimal("1")):
            raise ValidationError(
                f"Tax rate of '{self.name or self.variant_id}' must be between 0 and 1"
            )

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrderItem":
        """
        Build an item from its wire form. Accepts both snake_case and the
        camelCase keys used by the till front-end.
        """
        if not isinstance(data, Mapping):
            raise ValidationError("Each item must be an object")

        def pick(*keys, default=None):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        variant_id = pick("variant_id", "variantId")
        if variant_id is None:
            raise ValidationError("Item is missing its variant id")

        product_id = pick("product_id", "productId")
        return cls(
            id=str(pick("id", default="") or new_item_id()),
            variant_id=_require_int(variant_id, "variant_id"),
            product_id=_require_int(product_id, "product_id") if product_id is not None else None,
            name=str(pick("name", default="")),
            price=to_decimal(pick("price", default=ZERO), "price"),
            quantity=_require_int(pick("quantity", default=1), "quantity"),
            effective_tax_rate=to_decimal(
                pick("effective_tax_rate", "effectiveTaxRate", default=ZERO), "effective_tax_rate"
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe form, as stored on sessions, tabs and transactions."""
        return {
            "id": self.id,
            "variant_id": self.variant_id,
            "product_id": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity,
            "effective_tax_rate": str(self.effective_tax_rate),
        }


ItemLike = Union[OrderItem, Mapping[str, Any]]


def normalize_item_name(item: OrderItem) -> OrderItem:
    """Repair a missing or blank display name with the variant placeholder."""
    if item.name and item.name.strip():
        return item
    repaired = replace(item, name=placeholder_name(item.variant_id))
    logger.debug(f"Repaired blank name on line {item.id} -> '{repaired.name}'")
    return repaired


def normalize_items(items: Optional[Iterable[ItemLike]]) -> List[OrderItem]:
    """
    Coerce raw dicts to OrderItems, validate them and repair blank names.
    Raises ValidationError on malformed input.
    """
    if items is None:
        return []
    if isinstance(items, (str, bytes, Mapping)):
        raise ValidationError("Items must be a list")
    normalized = []
    for item in items:
        if not isinstance(item, OrderItem):
            item = OrderItem.from_dict(item)
        normalized.append(normalize_item_name(item))
    return normalized


def serialize_items(items: Iterable[ItemLike]) -> List[Dict[str, Any]]:
    return [item.to_dict() for item in normalize_items(items)]


def total_quantity(items: Iterable[OrderItem], variant_id=None) -> int:
    return sum(
        item.quantity for item in items if variant_id is None or item.variant_id == variant_id
    )


def merge_by_variant(existing: Iterable[OrderItem], incoming: Iterable[OrderItem]) -> List[OrderItem]:
    """
    Merge incoming lines into an existing list keyed by variant id.

    Lines whose variant is already present have their quantity increased;
    the rest are appended with a fresh id so no two containers share an item
    identity.
    """
    merged = list(existing)
    positions = {item.variant_id: index for index, item in enumerate(merged)}
    for item in incoming:
        index = positions.get(item.variant_id)
        if index is not None:
            current = merged[index]
            merged[index] = replace(current, quantity=current.quantity + item.quantity)
        else:
            positions[item.variant_id] = len(merged)
            merged.append(replace(item, id=new_item_id()))
    return merged


def subtract_items(existing: Iterable[OrderItem], removed: Iterable[OrderItem]) -> List[OrderItem]:
    """
    Decrement quantities of lines matching removed item ids; lines that reach
    zero are dropped. Removing more than a line holds is a ValidationError.
    """
    remaining = {item.id: item for item in existing}
    order = list(remaining.keys())
    for item in removed:
        current = remaining.get(item.id)
        if current is None:
            raise ValidationError(f"Item {item.id} is not on the source tab")
        if item.quantity > current.quantity:
            raise ValidationError(
                f"Cannot move {item.quantity} of '{current.name}', only {current.quantity} on the tab"
            )
        left = current.quantity - item.quantity
        if left <= 0:
            remaining.pop(item.id)
        else:
            remaining[item.id] = replace(current, quantity=left)
    return [remaining[item_id] for item_id in order if item_id in remaining]
