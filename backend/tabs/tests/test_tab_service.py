"""
Tab Manager tests: naming, parking carts, closing and transfers.
"""
import pytest
from django.db import DatabaseError

from core_backend.exceptions import (
    ConflictError,
    NotFoundError,
    TransientPersistenceError,
    ValidationError,
)
from orders.items import total_quantity
from orders.models import OrderSession
from orders.services import OrderSessionService
from tabs.models import Tab
from tabs.services import TabService


class FakeStore:
    def __init__(self):
        self.cleared = []
        self.replaced = None

    def clear(self, log_activity=True):
        self.cleared.append(log_activity)

    def replace_items(self, items):
        self.replaced = list(items)
        return self.replaced


@pytest.mark.django_db
class TestCreateTab:

    def test_create_empty_tab(self):
        tab = TabService.create("Smith party", till_id=1, till_name="Bar")

        assert tab.pk is not None
        assert tab.items == []
        assert tab.till_name == "Bar"

    def test_name_is_trimmed(self):
        assert TabService.create("  Window  ").name == "Window"

    def test_duplicate_name_conflicts(self):
        TabService.create("Smith party")

        with pytest.raises(ConflictError) as exc_info:
            TabService.create("Smith party")

        assert exc_info.value.status_code == 409
        assert Tab.objects.count() == 1

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_name_is_required(self, name):
        with pytest.raises(ValidationError):
            TabService.create(name)

    def test_unknown_table(self):
        with pytest.raises(NotFoundError):
            TabService.create("Ghost", table_id=99999)

    def test_get_missing_tab(self):
        with pytest.raises(NotFoundError):
            TabService.get_tab(12345)


@pytest.mark.django_db
class TestAddCurrentOrder:

    def test_merges_by_variant(self, catalog, make_item):
        tab = TabService.create("Bar 1", items=[make_item(catalog["lager"], 2)])

        tab = TabService.add_current_order(
            tab.pk, [make_item(catalog["lager"], 1), make_item(catalog["crisps"], 3)]
        )

        items = TabService.get_items(tab)
        assert len(items) == 2
        assert total_quantity(items, catalog["lager"].id) == 3
        assert total_quantity(items, catalog["crisps"].id) == 3

    def test_clears_cart_silently_and_completes_session(self, cashier_user, catalog, make_item):
        store = FakeStore()
        cart = [make_item(catalog["lager"])]
        OrderSessionService.save_current(cashier_user, cart)
        tab = TabService.create("Bar 1")

        TabService.add_current_order(tab.pk, cart, user=cashier_user, store=store)

        assert store.cleared == [False]
        assert OrderSession.objects.get(user=cashier_user).status == OrderSession.Status.COMPLETED

    def test_empty_cart_leaves_tab_untouched(self):
        tab = TabService.create("Bar 1")
        store = FakeStore()

        TabService.add_current_order(tab.pk, [], store=store)

        assert store.cleared == []

    def test_missing_tab(self, catalog, make_item):
        with pytest.raises(NotFoundError):
            TabService.add_current_order(999, [make_item(catalog["lager"])])


@pytest.mark.django_db
class TestLoadSaveClose:

    def test_load_repairs_names_and_fills_store(self, make_item):
        tab = TabService.create("Bar 1")
        Tab.objects.filter(pk=tab.pk).update(
            items=[{"id": "a", "variant_id": 5, "name": "", "price": "2.00", "quantity": 1}]
        )
        store = FakeStore()

        items = TabService.load(tab.pk, store=store)

        assert items[0].name == "Item 5"
        assert store.replaced == items

    def test_save_overwrites_and_clears_cart(self, catalog, make_item):
        tab = TabService.create("Bar 1", items=[make_item(catalog["lager"], 5)])
        store = FakeStore()

        tab = TabService.save(tab.pk, [make_item(catalog["crisps"], 1)], store=store)

        assert [item["variant_id"] for item in tab.items] == [catalog["crisps"].id]
        assert store.cleared == [False]

    def test_close_only_deletes_empty_tab(self, catalog, make_item):
        busy = TabService.create("Busy", items=[make_item(catalog["lager"])])
        empty = TabService.create("Empty")

        assert TabService.close(busy.pk) is False
        assert TabService.close(empty.pk) is True
        assert list(Tab.objects.values_list("name", flat=True)) == ["Busy"]

    def test_close_missing_tab(self):
        assert TabService.close(4242) is False

    def test_delete_is_idempotent(self, catalog, make_item):
        tab = TabService.create("Busy", items=[make_item(catalog["lager"])])

        assert TabService.delete(tab.pk) is True
        assert TabService.delete(tab.pk) is False


@pytest.mark.django_db
class TestTransfer:

    def test_partial_move_to_new_tab(self, catalog, make_item):
        source = TabService.create("Source", till_id=2, till_name="Terrace", items=[make_item(catalog["lager"], 3)])
        line = TabService.get_items(source)[0]

        source, destination = TabService.transfer(
            source.pk, {"name": "Split"}, [{**line.to_dict(), "quantity": 1}]
        )

        assert TabService.get_items(source)[0].quantity == 2
        moved = TabService.get_items(destination)
        assert moved[0].quantity == 1
        assert moved[0].id != line.id
        assert destination.till_name == "Terrace"

    def test_move_to_existing_tab_merges(self, catalog, make_item):
        source = TabService.create("Source", items=[make_item(catalog["lager"], 2)])
        target = TabService.create("Target", items=[make_item(catalog["lager"], 1)])
        line = TabService.get_items(source)[0]

        source, target = TabService.transfer(source.pk, {"tab_id": target.pk}, [line])

        assert TabService.get_items(source) == []
        assert total_quantity(TabService.get_items(target), catalog["lager"].id) == 3

    def test_units_are_conserved(self, catalog, make_item):
        source = TabService.create(
            "Source", items=[make_item(catalog["lager"], 3), make_item(catalog["crisps"], 2)]
        )
        before = total_quantity(TabService.get_items(source))
        lager_line = TabService.get_items(source)[0]

        source, destination = TabService.transfer(
            source.pk, {"name": "Split"}, [{**lager_line.to_dict(), "quantity": 2}]
        )

        after = total_quantity(TabService.get_items(source)) + total_quantity(TabService.get_items(destination))
        assert after == before

    def test_overdraw_rolls_back(self, catalog, make_item):
        source = TabService.create("Source", items=[make_item(catalog["lager"], 1)])
        line = TabService.get_items(source)[0]

        with pytest.raises(ValidationError):
            TabService.transfer(source.pk, {"name": "Split"}, [{**line.to_dict(), "quantity": 5}])

        source.refresh_from_db()
        assert TabService.get_items(source)[0].quantity == 1
        assert not Tab.objects.filter(name="Split").exists()

    def test_duplicate_destination_name_rolls_back(self, catalog, make_item):
        source = TabService.create("Source", items=[make_item(catalog["lager"], 2)])
        TabService.create("Taken")
        line = TabService.get_items(source)[0]

        with pytest.raises(ConflictError):
            TabService.transfer(source.pk, {"name": "Taken"}, [{**line.to_dict(), "quantity": 1}])

        source.refresh_from_db()
        assert TabService.get_items(source)[0].quantity == 2

    def test_same_tab(self, catalog, make_item):
        source = TabService.create("Source", items=[make_item(catalog["lager"], 2)])
        line = TabService.get_items(source)[0]

        with pytest.raises(ValidationError):
            TabService.transfer(source.pk, {"tab_id": source.pk}, [line])

    def test_destination_required(self, catalog, make_item):
        source = TabService.create("Source", items=[make_item(catalog["lager"], 2)])
        with pytest.raises(ValidationError):
            TabService.transfer(source.pk, {}, [])

    def test_database_failure_is_transient(self, catalog, make_item, monkeypatch):
        source = TabService.create("Source", items=[make_item(catalog["lager"], 2)])
        line = TabService.get_items(source)[0]

        def unreachable(*args, **kwargs):
            raise DatabaseError("connection reset")

        monkeypatch.setattr(Tab, "save", unreachable)

        with pytest.raises(TransientPersistenceError):
            TabService.transfer(source.pk, {"name": "Split"}, [{**line.to_dict(), "quantity": 1}])
