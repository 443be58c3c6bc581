"""
Typed stock references.

A variant's stock-consumption entry is parsed exactly once, when the catalog
is loaded, into either a ResolvedStockRef (a well-formed stock item UUID) or an
UnresolvedStockRef (anything else, kept verbatim for diagnostics). Downstream
code switches on the type and never re-inspects string shape.
"""
import uuid
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ResolvedStockRef:
    stock_item_id: uuid.UUID

    is_resolved = True

    def __str__(self):
        return str(self.stock_item_id)


@dataclass(frozen=True)
class UnresolvedStockRef:
    raw_value: str

    is_resolved = False

    def __str__(self):
        return self.raw_value


StockReference = Union[ResolvedStockRef, UnresolvedStockRef]


def parse_stock_reference(raw) -> StockReference:
    """
    Accepts only the canonical 8-4-4-4-12 hex form (any case); braces, urn
    prefixes and bare 32-digit hex are treated as malformed.
    """
    if isinstance(raw, uuid.UUID):
        return ResolvedStockRef(raw)
    text = "" if raw is None else str(raw)
    candidate = text.strip()
    if len(candidate) != 36 or candidate.count("-") != 4:
        return UnresolvedStockRef(text)
    try:
        parsed = uuid.UUID(candidate)
    except ValueError:
        return UnresolvedStockRef(text)
    if str(parsed) != candidate.lower():
        return UnresolvedStockRef(text)
    return ResolvedStockRef(parsed)
