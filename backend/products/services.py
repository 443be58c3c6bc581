"""
Catalog read service (the getProducts()/getCategories() collaborator).

Loads products with their variants and stock-consumption entries into
immutable snapshots. Stock references are parsed into typed references here,
once, so the stock validator and settlement never deal with raw strings.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from .models import Category, Product, TaxRate
from .references import StockReference, parse_stock_reference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockRequirement:
    reference: StockReference
    quantity: int


@dataclass(frozen=True)
class CatalogVariant:
    id: int
    product_id: int
    name: str
    price: Decimal
    effective_tax_rate: Decimal
    stock_consumption: Tuple[StockRequirement, ...] = ()

    @property
    def unresolved_references(self) -> List[StockReference]:
        return [req.reference for req in self.stock_consumption if not req.reference.is_resolved]


@dataclass(frozen=True)
class CatalogProduct:
    id: int
    name: str
    category_id: Optional[int]
    variants: Tuple[CatalogVariant, ...] = ()


@dataclass
class Catalog:
    """Products plus a variant index for O(1) lookups during settlement."""

    products: List[CatalogProduct] = field(default_factory=list)

    def __post_init__(self):
        self._variants: Dict[int, CatalogVariant] = {
            variant.id: variant for product in self.products for variant in product.variants
        }

    def __iter__(self):
        return iter(self.products)

    def __len__(self):
        return len(self.products)

    def get_variant(self, variant_id) -> Optional[CatalogVariant]:
        try:
            return self._variants.get(int(variant_id))
        except (TypeError, ValueError):
            return None

    @property
    def variants(self) -> Iterable[CatalogVariant]:
        return self._variants.values()


class CatalogService:

    @staticmethod
    def get_products() -> Catalog:
        default_rate = TaxRate.default_rate()
        queryset = Product.objects.prefetch_related(
            "variants__tax_rate", "variants__stock_consumption"
        ).order_by("id")

        products = []
        for product in queryset:
            variants = []
            for variant in product.variants.all():
                requirements = tuple(
                    StockRequirement(
                        reference=parse_stock_reference(entry.stock_item_id),
                        quantity=entry.quantity,
                    )
                    for entry in variant.stock_consumption.all()
                )
                catalog_variant = CatalogVariant(
                    id=variant.id,
                    product_id=product.id,
                    name=variant.name,
                    price=variant.price,
                    effective_tax_rate=variant.get_effective_tax_rate(default_rate),
                    stock_consumption=requirements,
                )
                if catalog_variant.unresolved_references:
                    logger.warning(
                        f"Variant {variant.id} ({product.name} - {variant.name}) has malformed stock references: "
                        f"{[str(ref) for ref in catalog_variant.unresolved_references]}"
                    )
                variants.append(catalog_variant)
            products.append(
                CatalogProduct(
                    id=product.id,
                    name=product.name,
                    category_id=product.category_id,
                    variants=tuple(variants),
                )
            )

        return Catalog(products=products)

    @staticmethod
    def get_categories() -> List[Category]:
        return list(Category.objects.all())
