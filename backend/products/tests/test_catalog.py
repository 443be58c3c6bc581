import uuid
from decimal import Decimal

import pytest

from products.references import ResolvedStockRef, UnresolvedStockRef, parse_stock_reference
from products.services import CatalogService


class TestParseStockReference:

    def test_canonical_uuid(self):
        value = uuid.uuid4()
        assert parse_stock_reference(str(value)) == ResolvedStockRef(value)

    def test_uppercase_is_accepted(self):
        value = uuid.uuid4()
        assert parse_stock_reference(str(value).upper()).is_resolved

    def test_uuid_instance(self):
        value = uuid.uuid4()
        assert parse_stock_reference(value).stock_item_id == value

    @pytest.mark.parametrize(
        "raw",
        ["", None, "keg", "12345678-1234-1234-1234-12345678901", "urn:uuid:12345678-1234-1234-1234-123456789012"],
    )
    def test_malformed(self, raw):
        ref = parse_stock_reference(raw)
        assert isinstance(ref, UnresolvedStockRef)
        assert not ref.is_resolved

    def test_bare_hex_is_malformed(self):
        assert not parse_stock_reference(uuid.uuid4().hex).is_resolved


@pytest.mark.django_db
class TestCatalogService:

    def test_products_with_variants(self, catalog):
        products = CatalogService.get_products()

        lager = products.get_variant(catalog["lager"].id)
        assert lager.effective_tax_rate == Decimal("0.19")
        assert lager.stock_consumption[0].quantity == 1
        assert lager.stock_consumption[0].reference.is_resolved

    def test_default_rate_applies_to_variants_without_one(self, catalog):
        crisps = CatalogService.get_products().get_variant(catalog["crisps"].id)
        assert crisps.effective_tax_rate == Decimal("0.19")

    def test_malformed_references_are_kept(self, catalog):
        broken = CatalogService.get_products().get_variant(catalog["broken"].id)
        assert [str(ref) for ref in broken.unresolved_references] == ["not-a-uuid"]

    def test_unknown_variant(self, catalog):
        products = CatalogService.get_products()
        assert products.get_variant(123456) is None
        assert products.get_variant("abc") is None

    def test_categories_are_ordered(self, catalog):
        assert [category.name for category in CatalogService.get_categories()] == ["Drinks", "Snacks"]
