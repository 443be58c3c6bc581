"""
Stock consumption validator.

Pure functions over catalog snapshots and stock levels:

- compute_makable: which variants can be made with current stock. Fail-closed:
  a variant with any malformed or dangling stock reference is not makable.
- compute_consumption: aggregate stock draw-down for a set of order lines.
  Fail-open: bad references are skipped with a warning so a settlement never
  fails on catalog data quality.
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Set
from uuid import UUID
import logging

from core_backend.exceptions import ConsistencyWarning
from products.references import ResolvedStockRef

logger = logging.getLogger(__name__)


def _describe(ref, stock_levels) -> str:
    if not isinstance(ref, ResolvedStockRef):
        return f"{ref} (Invalid UUID format)"
    if ref.stock_item_id not in stock_levels:
        return f"{ref} (Stock item does not exist)"
    return str(ref)


def _report(issues: Optional[List[ConsistencyWarning]], message: str) -> None:
    warning = ConsistencyWarning(message)
    logger.warning(f"ConsistencyWarning: {warning}")
    if issues is not None:
        issues.append(warning)


def compute_makable(
    products: Iterable,
    stock_levels: Mapping[UUID, int],
    issues: Optional[List[ConsistencyWarning]] = None,
) -> Set[int]:
    """
    Return the ids of variants whose every stock requirement references an
    existing stock item holding at least the required quantity.

    Variants without stock requirements are always makable.
    """
    makable: Set[int] = set()
    for product in products:
        for variant in product.variants:
            bad_refs = [
                req.reference
                for req in variant.stock_consumption
                if not isinstance(req.reference, ResolvedStockRef)
                or req.reference.stock_item_id not in stock_levels
            ]
            if bad_refs:
                _report(
                    issues,
                    f"Variant {variant.id} is not makable, invalid stock item references: "
                    f"{', '.join(_describe(ref, stock_levels) for ref in bad_refs)}",
                )
                continue

            if all(
                stock_levels[req.reference.stock_item_id] >= req.quantity
                for req in variant.stock_consumption
            ):
                makable.add(variant.id)

    return makable


def compute_consumption(
    order_items: Iterable,
    catalog,
    stock_levels: Mapping[UUID, int],
    issues: Optional[List[ConsistencyWarning]] = None,
) -> Dict[UUID, int]:
    """
    Aggregate how much of each stock item the given order lines use up.

    Each line's variant requirements are multiplied by the line quantity and
    summed per stock item. Lines whose variant is not in the catalog, and
    requirements that are malformed or point at missing stock items, are
    skipped with a warning.
    """
    consumption: Dict[UUID, int] = defaultdict(int)
    for item in order_items:
        variant = catalog.get_variant(item.variant_id)
        if variant is None:
            _report(issues, f"Order line {item.id} references unknown variant {item.variant_id}")
            continue

        for req in variant.stock_consumption:
            ref = req.reference
            if not isinstance(ref, ResolvedStockRef) or ref.stock_item_id not in stock_levels:
                _report(
                    issues,
                    f"Invalid stock item reference in variant {variant.id}: {_describe(ref, stock_levels)}",
                )
                continue
            consumption[ref.stock_item_id] += req.quantity * item.quantity

    return dict(consumption)
