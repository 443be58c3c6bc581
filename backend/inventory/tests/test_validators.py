"""
Stock consumption validator tests over hand-built catalog snapshots.
"""
import uuid
from decimal import Decimal

from inventory.validators import compute_consumption, compute_makable
from orders.items import OrderItem
from products.references import parse_stock_reference
from products.services import Catalog, CatalogProduct, CatalogVariant, StockRequirement

KEG = uuid.uuid4()
LEMONS = uuid.uuid4()


def variant(variant_id, *requirements):
    return CatalogVariant(
        id=variant_id,
        product_id=1,
        name=f"Variant {variant_id}",
        price=Decimal("5.00"),
        effective_tax_rate=Decimal("0.19"),
        stock_consumption=tuple(
            StockRequirement(reference=parse_stock_reference(raw), quantity=quantity)
            for raw, quantity in requirements
        ),
    )


def catalog(*variants):
    return Catalog(products=[CatalogProduct(id=1, name="Drinks", category_id=None, variants=tuple(variants))])


def line(variant_id, quantity):
    return OrderItem(
        id=f"line-{variant_id}",
        variant_id=variant_id,
        product_id=1,
        name="x",
        price=Decimal("5.00"),
        quantity=quantity,
    )


class TestComputeMakable:

    def test_variant_without_requirements_is_makable(self):
        assert compute_makable(catalog(variant(1)), {}) == {1}

    def test_enough_stock(self):
        products = catalog(variant(1, (str(KEG), 2)), variant(2, (str(KEG), 5)))
        assert compute_makable(products, {KEG: 3}) == {1}

    def test_every_requirement_must_be_met(self):
        products = catalog(variant(1, (str(KEG), 1), (str(LEMONS), 1)))
        assert compute_makable(products, {KEG: 5, LEMONS: 0}) == set()

    def test_malformed_reference_is_never_makable(self):
        issues = []
        products = catalog(variant(1, ("keg-42", 1)), variant(2, (str(KEG), 1)))

        assert compute_makable(products, {KEG: 100}, issues=issues) == {2}
        assert "Invalid UUID format" in str(issues[0])

    def test_dangling_reference_is_never_makable(self):
        issues = []
        products = catalog(variant(1, (str(KEG), 1), (str(LEMONS), 1)))

        assert compute_makable(products, {KEG: 100}, issues=issues) == set()
        assert "Stock item does not exist" in str(issues[0])

    def test_non_canonical_uuid_forms_are_malformed(self):
        braced = "{" + str(KEG) + "}"
        products = catalog(variant(1, (braced, 1)), variant(2, (KEG.hex, 1)))
        assert compute_makable(products, {KEG: 100}) == set()


class TestComputeConsumption:

    def test_multiplies_and_aggregates(self):
        products = catalog(
            variant(1, (str(KEG), 1)),
            variant(2, (str(KEG), 2), (str(LEMONS), 1)),
        )

        consumption = compute_consumption([line(1, 3), line(2, 2)], products, {KEG: 1, LEMONS: 1})

        assert consumption == {KEG: 7, LEMONS: 2}

    def test_does_not_check_levels(self):
        products = catalog(variant(1, (str(KEG), 4)))
        assert compute_consumption([line(1, 1)], products, {KEG: 0}) == {KEG: 4}

    def test_bad_references_are_skipped_with_warning(self):
        issues = []
        products = catalog(variant(1, ("nope", 1), (str(LEMONS), 1), (str(KEG), 1)))

        consumption = compute_consumption([line(1, 2)], products, {KEG: 10}, issues=issues)

        assert consumption == {KEG: 2}
        assert len(issues) == 2

    def test_unknown_variant_is_skipped(self):
        issues = []
        assert compute_consumption([line(99, 1)], catalog(), {}, issues=issues) == {}
        assert "unknown variant 99" in str(issues[0])
