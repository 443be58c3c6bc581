"""
Monetary precision helpers.

Money is carried as Decimal end to end. Amounts are rounded to the currency's
minor unit with ROUND_HALF_EVEN only at the edges (totals handed to the
operator and the persisted Transaction), never mid-calculation.

Key Principles:
1. NEVER use float for money
2. Quantize once, at the boundary
3. Reject NaN/Infinity instead of letting them propagate
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN, getcontext
from typing import Union

from core_backend.exceptions import ValidationError

# Set high precision for intermediate calculations
getcontext().prec = 28

ZERO = Decimal("0")

# Currency minor unit exponents (how many decimal places)
CURRENCY_EXPONENT = {
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "CHF": 2,
    "JPY": 0,
    "KRW": 0,
    "KWD": 3,
    "BHD": 3,
}

Number = Union[Decimal, str, int, float]


def currency_exponent(currency: str) -> int:
    """
    Get the number of decimal places for a currency.

    >>> currency_exponent("EUR")
    2
    >>> currency_exponent("JPY")
    0
    """
    return CURRENCY_EXPONENT.get((currency or "").upper(), 2)


def quantize_decimal(currency: str) -> Decimal:
    """Smallest unit of the currency, e.g. Decimal('0.01') for EUR."""
    return Decimal(10) ** -currency_exponent(currency)


def to_decimal(value: Number, field: str = "amount") -> Decimal:
    """
    Coerce an incoming numeric value to a finite Decimal.

    Floats go through str() so 0.1 stays 0.1. Booleans, NaN and Infinity are
    rejected with ValidationError.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", details={field: str(value)})
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number", details={field: str(value)})
    return result


def quantize(currency: str, amount: Number) -> Decimal:
    """
    Round to currency decimals using banker's rounding (ROUND_HALF_EVEN).

    >>> quantize("EUR", "10.125")
    Decimal('10.12')
    >>> quantize("JPY", "1234.56")
    Decimal('1235')
    """
    return to_decimal(amount).quantize(quantize_decimal(currency), rounding=ROUND_HALF_EVEN)
