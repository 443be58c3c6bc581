"""
Payment settlement.

PaymentSettlementService.settle() runs the checkout saga for one cart:

    1. repair item names        6. decrement stock
    2. compute tax              7. delete the originating tab
    3. validate the discount    8. mark the session completed
    4. compute the final total  9. release the table
    5. persist the Transaction 10. clear the cart

Steps 1-5 decide whether money changes hands: they run in order, and the
first failure aborts the settlement with nothing after it executed and the
cart untouched. Steps 6-10 are cleanup after the sale is recorded; each one
is attempted, and a failure is logged and reported back as a warning instead
of failing the settlement.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional
import logging
import uuid

from django.db import DatabaseError

from core_backend.exceptions import (
    AuthorizationError,
    ConsistencyWarning,
    TransientPersistenceError,
    ValidationError,
)
from core_backend.infrastructure.events import event_bus, SETTLEMENT_COMPLETED
from inventory.services import InventoryService
from inventory.validators import compute_consumption
from orders.calculators import TaxTotals, compute_totals
from orders.items import OrderItem, normalize_items
from orders.services import OrderSessionService
from products.services import CatalogService
from settings.config import app_settings
from tables.models import Table
from tables.services import TableAssignmentService
from tabs.models import Tab
from tabs.services import TabService
from .models import Transaction
from .money import ZERO, quantize, to_decimal

logger = logging.getLogger(__name__)


@dataclass
class SettlementRequest:
    items: List[Any]
    payment_method: str
    user: Any
    tip: Any = ZERO
    discount: Any = ZERO
    discount_reason: str = ""
    till_id: Optional[int] = None
    till_name: str = ""
    tab_id: Optional[int] = None
    table_id: Optional[int] = None
    # Live cart to clear once settled; omitted when the cart lives client-side.
    store: Any = None


@dataclass
class SettlementResult:
    transaction: Transaction
    totals: TaxTotals
    discount: Decimal
    final_total: Decimal
    status: str
    warnings: List[str] = field(default_factory=list)
    failed_cleanup_steps: List[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.failed_cleanup_steps


@dataclass
class SettlementContext:
    settlement_id: str
    request: SettlementRequest
    currency: str
    tax_mode: str
    items: List[OrderItem] = field(default_factory=list)
    totals: Optional[TaxTotals] = None
    discount: Decimal = ZERO
    final_total: Decimal = ZERO
    status: str = Transaction.Status.COMPLETED
    transaction: Optional[Transaction] = None
    table_id: Optional[int] = None
    issues: List[ConsistencyWarning] = field(default_factory=list)

    @property
    def prefix(self) -> str:
        return f"[settlement={self.settlement_id}]"


class SettlementStep(ABC):
    critical = True

    def __init__(self, context: SettlementContext):
        self.ctx = context

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def execute(self) -> None: ...

    def run(self) -> None:
        logger.info(f"{self.ctx.prefix} STEP {self.name()}")
        self.execute()
        logger.info(f"{self.ctx.prefix} STEP {self.name()} OK")


class CleanupStep(SettlementStep):
    critical = False


# --- money-deciding steps ----------------------------------------------------


class RepairItemNames(SettlementStep):
    def name(self) -> str:
        return "RepairItemNames"

    def execute(self) -> None:
        self.ctx.items = normalize_items(self.ctx.request.items)
        if not self.ctx.items:
            raise ValidationError("Cannot settle an empty order")


class ComputeTax(SettlementStep):
    def name(self) -> str:
        return "ComputeTax"

    def execute(self) -> None:
        self.ctx.totals = compute_totals(
            self.ctx.items, self.ctx.tax_mode, tip=self.ctx.request.tip, currency=self.ctx.currency
        )
        logger.info(
            f"{self.ctx.prefix} totals: subtotal={self.ctx.totals.subtotal} tax={self.ctx.totals.tax} "
            f"tip={self.ctx.totals.tip} total={self.ctx.totals.total} mode={self.ctx.tax_mode}"
        )


class ValidateDiscount(SettlementStep):
    def name(self) -> str:
        return "ValidateDiscount"

    def execute(self) -> None:
        raw = self.ctx.request.discount
        discount = to_decimal(raw if raw is not None else ZERO, "discount")
        if discount < 0:
            raise ValidationError("Discount cannot be negative")
        discount = quantize(self.ctx.currency, discount)

        if discount > 0 and not getattr(self.ctx.request.user, "is_admin", False):
            raise AuthorizationError("Admin privileges required to apply a discount")

        pre_discount_total = self.ctx.totals.total
        if discount > pre_discount_total:
            raise ValidationError(
                "Discount exceeds total",
                details={"discount": str(discount), "total": str(pre_discount_total)},
            )
        self.ctx.discount = discount


class ComputeFinalTotal(SettlementStep):
    def name(self) -> str:
        return "ComputeFinalTotal"

    def execute(self) -> None:
        self.ctx.final_total = self.ctx.totals.total - self.ctx.discount
        self.ctx.status = (
            Transaction.Status.COMPLIMENTARY if self.ctx.final_total <= 0 else Transaction.Status.COMPLETED
        )
        logger.info(
            f"{self.ctx.prefix} discount={self.ctx.discount} final={self.ctx.final_total} status={self.ctx.status}"
        )


class PersistTransaction(SettlementStep):
    def name(self) -> str:
        return "PersistTransaction"

    def execute(self) -> None:
        request = self.ctx.request
        user = request.user
        table_name = ""

        try:
            if self.ctx.table_id is not None:
                table_name = (
                    Table.objects.filter(pk=self.ctx.table_id).values_list("name", flat=True).first() or ""
                )
            self.ctx.transaction = Transaction.objects.create(
                items=[item.to_dict() for item in self.ctx.items],
                subtotal=self.ctx.totals.subtotal,
                tax=self.ctx.totals.tax,
                tip=self.ctx.totals.tip,
                discount=self.ctx.discount,
                discount_reason=request.discount_reason or "",
                total=self.ctx.final_total,
                payment_method=request.payment_method,
                status=self.ctx.status,
                user=user if getattr(user, "pk", None) else None,
                user_name=getattr(user, "display_name", "") or "",
                till_id=request.till_id,
                till_name=request.till_name or "",
                table_id=self.ctx.table_id if table_name else None,
                table_name=table_name,
            )
        except DatabaseError as e:
            logger.error(f"{self.ctx.prefix} could not record transaction: {e}")
            raise TransientPersistenceError(details={"operation": "save_transaction"})


# --- cleanup steps -------------------------------------------------------------


class DecrementStock(CleanupStep):
    def name(self) -> str:
        return "DecrementStock"

    def execute(self) -> None:
        stock_levels = InventoryService.get_stock_levels()
        consumption = compute_consumption(
            self.ctx.items, CatalogService.get_products(), stock_levels, issues=self.ctx.issues
        )
        if not consumption:
            logger.info(f"{self.ctx.prefix} no stock to deduct")
            return
        InventoryService.update_stock_levels(
            consumption,
            user=self.ctx.request.user if getattr(self.ctx.request.user, "pk", None) else None,
            reference_id=f"transaction:{self.ctx.transaction.pk}",
        )


class DeleteTab(CleanupStep):
    def name(self) -> str:
        return "DeleteTab"

    def execute(self) -> None:
        if self.ctx.request.tab_id is not None:
            TabService.delete(self.ctx.request.tab_id)


class CompleteSession(CleanupStep):
    def name(self) -> str:
        return "CompleteSession"

    def execute(self) -> None:
        OrderSessionService.mark_complete(self.ctx.request.user)


class ReleaseTable(CleanupStep):
    def name(self) -> str:
        return "ReleaseTable"

    def execute(self) -> None:
        if self.ctx.table_id is not None:
            TableAssignmentService.release(self.ctx.table_id)


class ClearCart(CleanupStep):
    def name(self) -> str:
        return "ClearCart"

    def execute(self) -> None:
        if self.ctx.request.store is not None:
            self.ctx.request.store.clear(log_activity=False)


CRITICAL_STEPS = (RepairItemNames, ComputeTax, ValidateDiscount, ComputeFinalTotal, PersistTransaction)
CLEANUP_STEPS = (DecrementStock, DeleteTab, CompleteSession, ReleaseTable, ClearCart)


class PaymentSettlementService:

    @staticmethod
    def _resolve_table_id(request: SettlementRequest) -> Optional[int]:
        if request.table_id is not None:
            return request.table_id
        if request.tab_id is None:
            return None
        try:
            return Tab.objects.filter(pk=request.tab_id).values_list("table_id", flat=True).first()
        except DatabaseError as e:
            logger.error(f"Could not look up tab {request.tab_id} for settlement: {e}")
            raise TransientPersistenceError(details={"operation": "resolve_table", "tab_id": request.tab_id})

    @staticmethod
    def _validate_request(request: SettlementRequest) -> None:
        if request.payment_method not in Transaction.PaymentMethod.values:
            raise ValidationError(
                f"Unknown payment method '{request.payment_method}'",
                details={"allowed": list(Transaction.PaymentMethod.values)},
            )

    @staticmethod
    def settle(request: SettlementRequest) -> SettlementResult:
        """
        Settle a cart. Raises ValidationError / AuthorizationError /
        TransientPersistenceError from steps 1-5; never raises once the
        Transaction has been recorded.
        """
        PaymentSettlementService._validate_request(request)

        ctx = SettlementContext(
            settlement_id=uuid.uuid4().hex[:8],
            request=request,
            currency=app_settings.currency,
            tax_mode=app_settings.tax_mode,
            table_id=PaymentSettlementService._resolve_table_id(request),
        )
        logger.info(
            f"{ctx.prefix} SETTLEMENT START user={getattr(request.user, 'pk', None)} "
            f"items={len(request.items or [])} method={request.payment_method} "
            f"tab={request.tab_id} table={ctx.table_id}"
        )

        for step_class in CRITICAL_STEPS:
            step = step_class(ctx)
            try:
                step.run()
            except Exception as e:
                logger.warning(f"{ctx.prefix} SETTLEMENT FAILED at {step.name()}: {e}")
                raise

        warnings: List[str] = []
        failed: List[str] = []
        for step_class in CLEANUP_STEPS:
            step = step_class(ctx)
            try:
                step.run()
            except (DatabaseError, TransientPersistenceError) as e:
                failure = e
                if isinstance(e, DatabaseError):
                    failure = TransientPersistenceError(details={"step": step.name(), "error": str(e)})
                logger.warning(f"{ctx.prefix} CLEANUP FAILED at {step.name()}: {failure.message} {failure.details}")
                failed.append(step.name())
                warnings.append(f"{step.name()} failed: {failure.message}")
            except Exception as e:
                # The sale is recorded; cleanup failures are operational warnings only.
                logger.warning(f"{ctx.prefix} CLEANUP FAILED at {step.name()}: {e}", exc_info=True)
                failed.append(step.name())
                warnings.append(f"{step.name()} failed: {e}")

        warnings.extend(str(issue) for issue in ctx.issues)

        logger.info(
            f"{ctx.prefix} SETTLEMENT OK transaction={ctx.transaction.pk} total={ctx.final_total} "
            f"status={ctx.status} cleanup_failures={failed or 'none'}"
        )
        event_bus.publish(
            SETTLEMENT_COMPLETED,
            sender=PaymentSettlementService,
            transaction_id=ctx.transaction.pk,
            status=ctx.status,
            table_id=ctx.table_id,
            tab_id=request.tab_id,
        )

        return SettlementResult(
            transaction=ctx.transaction,
            totals=ctx.totals,
            discount=ctx.discount,
            final_total=ctx.final_total,
            status=ctx.status,
            warnings=warnings,
            failed_cleanup_steps=failed,
        )
