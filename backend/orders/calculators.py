"""
Tax engine.

compute_totals() turns a list of order lines plus the business tax mode into
subtotal / tax / total. Each line is taxed at its own effective rate:

- exclusive: the price is net, tax is added on top
- inclusive: the price already contains tax, which is extracted
- none:      no tax at all

Arithmetic runs unrounded in Decimal. Only the returned figures are rounded,
and tax is derived as round(subtotal + tax) - round(subtotal) so that the
rounded subtotal and tax still add up to the rounded gross exactly.

Usage:
    from orders.calculators import compute_totals
    totals = compute_totals(items, "exclusive", tip=Decimal("1.00"))
    totals.total
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from payments.money import ZERO, quantize, to_decimal
from settings.models import TaxMode
from core_backend.exceptions import ValidationError
from .items import ItemLike, normalize_items

DEFAULT_CURRENCY = "EUR"


@dataclass(frozen=True)
class TaxTotals:
    subtotal: Decimal
    tax: Decimal
    tip: Decimal
    total: Decimal


def _validate_mode(mode) -> str:
    value = getattr(mode, "value", mode)
    if value not in TaxMode.values:
        raise ValidationError(
            f"Unknown tax mode '{mode}'", details={"allowed": list(TaxMode.values)}
        )
    return value


def compute_raw_totals(items: Iterable[ItemLike], mode) -> tuple:
    """Unrounded (subtotal, tax) for the given lines."""
    mode = _validate_mode(mode)
    subtotal = ZERO
    tax = ZERO
    for item in normalize_items(items):
        item_total = item.line_total
        rate = item.effective_tax_rate
        if mode == TaxMode.INCLUSIVE:
            item_subtotal = item_total / (1 + rate)
            subtotal += item_subtotal
            tax += item_total - item_subtotal
        elif mode == TaxMode.EXCLUSIVE:
            subtotal += item_total
            tax += item_total * rate
        else:
            subtotal += item_total
    return subtotal, tax


def compute_totals(
    items: Iterable[ItemLike],
    mode,
    tip=ZERO,
    currency: Optional[str] = None,
) -> TaxTotals:
    """
    Compute subtotal, tax and total (including tip) for a set of lines.

    Raises ValidationError for malformed input: non-finite or negative
    numbers, quantities below one, rates outside 0..1, an unknown mode.
    """
    currency = currency or DEFAULT_CURRENCY
    tip = to_decimal(tip if tip is not None else ZERO, "tip")
    if tip < 0:
        raise ValidationError("Tip cannot be negative")

    subtotal, tax = compute_raw_totals(items, mode)

    rounded_subtotal = quantize(currency, subtotal)
    rounded_gross = quantize(currency, subtotal + tax)
    rounded_tip = quantize(currency, tip)
    return TaxTotals(
        subtotal=rounded_subtotal,
        tax=rounded_gross - rounded_subtotal,
        tip=rounded_tip,
        total=rounded_gross + rounded_tip,
    )
