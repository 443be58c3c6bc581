from django.db import transaction
from typing import Dict, List, Mapping, Union
from uuid import UUID
import logging

from core_backend.exceptions import NotFoundError, ValidationError
from core_backend.infrastructure.events import event_bus, STOCK_CHANGED
from .models import StockItem, StockHistoryEntry

logger = logging.getLogger(__name__)


class InventoryService:

    @staticmethod
    def _log_stock_operation(
        stock_item: StockItem,
        operation_type: str,
        quantity_change: int,
        previous_quantity: int,
        new_quantity: int,
        user=None,
        reason: str = "",
        reference_id: str = "",
    ):
        """
        Helper method to log stock operations to StockHistoryEntry.
        """
        StockHistoryEntry.objects.create(
            stock_item=stock_item,
            user=user,
            operation_type=operation_type,
            quantity_change=quantity_change,
            previous_quantity=previous_quantity,
            new_quantity=new_quantity,
            reason=reason,
            reference_id=reference_id,
        )

    @staticmethod
    def get_stock_items() -> List[StockItem]:
        return list(StockItem.objects.all())

    @staticmethod
    def get_stock_levels() -> Dict[UUID, int]:
        """Current quantity per stock item id."""
        return dict(StockItem.objects.values_list("id", "quantity"))

    @staticmethod
    def _normalize_consumptions(consumptions) -> Dict[UUID, int]:
        """
        Accepts either a {stock_item_id: quantity} mapping or a list of
        {"stock_item_id": ..., "quantity": ...} dicts.
        """
        if isinstance(consumptions, Mapping):
            pairs = consumptions.items()
        else:
            pairs = ((entry["stock_item_id"], entry["quantity"]) for entry in consumptions)

        normalized: Dict[UUID, int] = {}
        for stock_item_id, quantity in pairs:
            try:
                key = stock_item_id if isinstance(stock_item_id, UUID) else UUID(str(stock_item_id))
            except ValueError:
                raise ValidationError(f"Invalid stock item id '{stock_item_id}'")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
                raise ValidationError(f"Consumption for {stock_item_id} must be a non-negative integer")
            normalized[key] = normalized.get(key, 0) + quantity
        return normalized

    @staticmethod
    @transaction.atomic
    def update_stock_levels(
        consumptions: Union[Mapping, List[dict]],
        user=None,
        reason: str = "Order completion",
        reference_id: str = "",
    ) -> Dict[UUID, int]:
        """
        Decrement several stock items as one batch.

        All rows are locked and written inside one transaction, so either the
        whole draw-down lands or none of it does. Quantities are floored at
        zero; a shortfall is logged rather than raised because the sale that
        caused it has already been paid.

        Returns the new quantity per stock item.
        """
        normalized = InventoryService._normalize_consumptions(consumptions)
        if not normalized:
            return {}

        stock_items = {
            item.id: item
            for item in StockItem.objects.select_for_update().filter(id__in=list(normalized.keys()))
        }

        new_levels: Dict[UUID, int] = {}
        for stock_item_id, quantity in normalized.items():
            stock_item = stock_items.get(stock_item_id)
            if stock_item is None:
                logger.warning(f"Stock item {stock_item_id} disappeared before deduction, skipping")
                continue

            previous_quantity = stock_item.quantity
            if quantity > previous_quantity:
                logger.warning(
                    f"Insufficient stock for {stock_item.name}. Required: {quantity}, "
                    f"Available: {previous_quantity}. Flooring at zero."
                )
            stock_item.quantity = max(previous_quantity - quantity, 0)
            stock_item.save(update_fields=["quantity", "updated_at"])
            new_levels[stock_item_id] = stock_item.quantity

            InventoryService._log_stock_operation(
                stock_item=stock_item,
                operation_type="ORDER_DEDUCTION",
                quantity_change=stock_item.quantity - previous_quantity,
                previous_quantity=previous_quantity,
                new_quantity=stock_item.quantity,
                user=user,
                reason=reason,
                reference_id=reference_id,
            )

        logger.info(f"Deducted stock for {len(new_levels)} stock item(s) ({reference_id or 'no reference'})")
        transaction.on_commit(
            lambda: event_bus.publish(STOCK_CHANGED, sender=InventoryService, levels=new_levels)
        )
        return new_levels

    @staticmethod
    @transaction.atomic
    def adjust_stock(stock_item_id, delta: int, reason: str = "", user=None) -> StockItem:
        """
        Manual stock adjustment (deliveries, breakage, recounts).
        A negative delta may not take the quantity below zero.
        """
        if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
            raise ValidationError("Adjustment must be a non-zero whole number")

        try:
            stock_item = StockItem.objects.select_for_update().get(id=stock_item_id)
        except (StockItem.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Stock item {stock_item_id} not found")

        previous_quantity = stock_item.quantity
        if previous_quantity + delta < 0:
            raise ValidationError(
                f"Insufficient stock for {stock_item.name}. Required: {-delta}, Available: {previous_quantity}"
            )

        stock_item.quantity = previous_quantity + delta
        stock_item.save(update_fields=["quantity", "updated_at"])

        InventoryService._log_stock_operation(
            stock_item=stock_item,
            operation_type="ADJUSTED_ADD" if delta > 0 else "ADJUSTED_SUBTRACT",
            quantity_change=delta,
            previous_quantity=previous_quantity,
            new_quantity=stock_item.quantity,
            user=user,
            reason=reason,
        )
        logger.info(f"Adjusted {stock_item.name} by {delta:+d} ({previous_quantity} -> {stock_item.quantity})")
        transaction.on_commit(
            lambda: event_bus.publish(
                STOCK_CHANGED, sender=InventoryService, levels={stock_item.id: stock_item.quantity}
            )
        )
        return stock_item
