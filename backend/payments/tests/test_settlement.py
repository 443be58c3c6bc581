"""
Payment settlement tests.

Two lagers at 10.00 with 19% tax added on top plus a 1.00 tip come to 24.80;
most cases below settle that cart.
"""
import pytest
from decimal import Decimal

from django.db import DatabaseError

from core_backend.exceptions import AuthorizationError, TransientPersistenceError, ValidationError
from core_backend.infrastructure.events import event_bus, SETTLEMENT_COMPLETED
from inventory.models import StockHistoryEntry, StockItem
from inventory.services import InventoryService
from orders.models import OrderSession
from orders.services import OrderSessionService
from payments.models import Transaction
from payments.services import PaymentSettlementService, SettlementRequest
from tables.models import Table
from tabs.models import Tab
from tabs.services import TabService


class FakeStore:
    def __init__(self):
        self.cleared = []

    def clear(self, log_activity=True):
        self.cleared.append(log_activity)


@pytest.fixture
def cart(catalog, make_item):
    return [make_item(catalog["lager"], 2)]


@pytest.fixture
def settle(cart):
    def _settle(user, **overrides):
        params = {"items": cart, "payment_method": "Cash", "user": user, "tip": Decimal("1.00")}
        params.update(overrides)
        return PaymentSettlementService.settle(SettlementRequest(**params))

    return _settle


@pytest.mark.django_db
class TestTotalsAndDiscounts:

    def test_plain_sale(self, settle, cashier_user):
        result = settle(cashier_user)

        tx = result.transaction
        assert tx.subtotal == Decimal("20.00")
        assert tx.tax == Decimal("3.80")
        assert tx.tip == Decimal("1.00")
        assert tx.total == Decimal("24.80")
        assert tx.status == Transaction.Status.COMPLETED
        assert tx.user_name == "Cas Hier"
        assert result.is_clean

    def test_inclusive_mode(self, settle, cashier_user, tax_mode):
        tax_mode("inclusive")

        result = settle(cashier_user)

        assert result.totals.subtotal == Decimal("16.81")
        assert result.totals.tax == Decimal("3.19")
        assert result.final_total == Decimal("21.00")

    def test_admin_discount(self, settle, admin_user):
        result = settle(admin_user, discount=Decimal("5.00"), discount_reason="Regular")

        assert result.final_total == Decimal("19.80")
        assert result.status == Transaction.Status.COMPLETED
        assert result.transaction.discount == Decimal("5.00")
        assert result.transaction.discount_reason == "Regular"

    def test_full_discount_is_complimentary(self, settle, admin_user):
        result = settle(admin_user, discount=Decimal("24.80"))

        assert result.final_total == Decimal("0.00")
        assert result.status == Transaction.Status.COMPLIMENTARY

    def test_discount_reason_is_optional(self, settle, admin_user):
        result = settle(admin_user, discount=Decimal("1.00"))
        assert result.transaction.discount_reason == ""

    def test_discount_above_total(self, settle, admin_user):
        with pytest.raises(ValidationError) as exc_info:
            settle(admin_user, discount=Decimal("24.81"))

        assert exc_info.value.message == "Discount exceeds total"
        assert Transaction.objects.count() == 0

    def test_negative_discount(self, settle, admin_user):
        with pytest.raises(ValidationError):
            settle(admin_user, discount=Decimal("-1"))

    def test_cashier_cannot_discount(self, settle, cashier_user, stock_items):
        store = FakeStore()

        with pytest.raises(AuthorizationError):
            settle(cashier_user, discount=Decimal("5.00"), store=store)

        assert Transaction.objects.count() == 0
        assert StockItem.objects.get(pk=stock_items["keg"].pk).quantity == 10
        assert store.cleared == []

    def test_unknown_payment_method(self, settle, cashier_user):
        with pytest.raises(ValidationError):
            settle(cashier_user, payment_method="Bitcoin")

    def test_empty_order(self, settle, cashier_user):
        with pytest.raises(ValidationError):
            settle(cashier_user, items=[])

    def test_transaction_is_immutable(self, settle, cashier_user):
        tx = settle(cashier_user).transaction
        tx.total = Decimal("0.01")

        with pytest.raises(ValidationError):
            tx.save()


@pytest.mark.django_db
class TestCleanup:

    def test_stock_is_decremented(self, settle, cashier_user, stock_items):
        result = settle(cashier_user)

        keg = StockItem.objects.get(pk=stock_items["keg"].pk)
        assert keg.quantity == 8
        entry = StockHistoryEntry.objects.get(stock_item=keg)
        assert entry.operation_type == "ORDER_DEDUCTION"
        assert entry.quantity_change == -2
        assert entry.reference_id == f"transaction:{result.transaction.pk}"

    def test_tab_deleted_and_table_released(self, settle, cashier_user, tables, cart):
        tab = TabService.create("Window", table_id=tables["free"].pk, items=cart)
        assert Table.objects.get(pk=tables["free"].pk).status == Table.Status.OCCUPIED

        result = settle(cashier_user, tab_id=tab.pk)

        assert not Tab.objects.filter(pk=tab.pk).exists()
        assert Table.objects.get(pk=tables["free"].pk).status == Table.Status.AVAILABLE
        assert result.transaction.table_name == "1"
        assert result.is_clean

    def test_session_completed_and_cart_cleared(self, settle, cashier_user, cart):
        OrderSessionService.save_current(cashier_user, cart)
        store = FakeStore()

        settle(cashier_user, store=store)

        assert OrderSession.objects.get(user=cashier_user).status == OrderSession.Status.COMPLETED
        assert store.cleared == [False]

    def test_cleanup_is_idempotent(self, settle, cashier_user, tables):
        """Settling against a tab and table that are already gone/free records the sale cleanly."""
        result = settle(cashier_user, tab_id=98765, table_id=tables["spare"].pk)

        assert result.is_clean
        assert Transaction.objects.count() == 1

    def test_cleanup_failure_does_not_fail_sale(self, settle, cashier_user, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("inventory service down")

        monkeypatch.setattr(InventoryService, "update_stock_levels", broken)
        store = FakeStore()

        result = settle(cashier_user, store=store)

        assert Transaction.objects.filter(pk=result.transaction.pk).exists()
        assert result.failed_cleanup_steps == ["DecrementStock"]
        assert result.warnings[0].startswith("DecrementStock failed")
        assert store.cleared == [False]

    def test_bad_stock_references_become_warnings(self, settle, cashier_user, catalog, make_item):
        result = settle(cashier_user, items=[make_item(catalog["broken"], 1)])

        assert result.status == Transaction.Status.COMPLETED
        assert result.is_clean
        assert len(result.warnings) == 2
        assert any("Invalid UUID format" in warning for warning in result.warnings)
        assert any("Stock item does not exist" in warning for warning in result.warnings)

    def test_settlement_is_published(self, settle, cashier_user):
        received = []
        unsubscribe = event_bus.subscribe(
            SETTLEMENT_COMPLETED, lambda sender, signal=None, **payload: received.append(payload)
        )
        try:
            result = settle(cashier_user)
        finally:
            unsubscribe()

        assert received[0]["transaction_id"] == result.transaction.pk
        assert received[0]["status"] == Transaction.Status.COMPLETED


@pytest.mark.django_db
class TestUnreachableDatabase:

    @staticmethod
    def _unreachable(*args, **kwargs):
        raise DatabaseError("could not connect to server")

    def test_tab_lookup_failure_is_transient(self, settle, cashier_user, monkeypatch):
        monkeypatch.setattr(Tab.objects, "filter", self._unreachable)

        with pytest.raises(TransientPersistenceError):
            settle(cashier_user, tab_id=1)

        assert Transaction.objects.count() == 0

    def test_table_lookup_failure_is_transient(self, settle, cashier_user, tables, monkeypatch):
        monkeypatch.setattr(Table.objects, "filter", self._unreachable)

        with pytest.raises(TransientPersistenceError):
            settle(cashier_user, table_id=tables["free"].pk)

        assert Transaction.objects.count() == 0
