import uuid
from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class StockItem(models.Model):
    """
    A consumable stock unit (bottle, keg, portion). Quantity never goes below
    zero; it is decremented by settlements and incremented by adjustments.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(
        default=0, help_text=_("Quantity of stock on hand.")
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.quantity})"


class StockHistoryEntry(models.Model):
    """
    Tracks all stock operations for audit trail and history purposes.
    """

    OPERATION_CHOICES = [
        ("ADJUSTED_ADD", _("Stock Added")),
        ("ADJUSTED_SUBTRACT", _("Stock Subtracted")),
        ("ORDER_DEDUCTION", _("Order Deduction")),
    ]

    stock_item = models.ForeignKey(
        StockItem, on_delete=models.CASCADE, related_name="history"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_operations",
    )
    operation_type = models.CharField(max_length=30, choices=OPERATION_CHOICES)
    quantity_change = models.IntegerField(
        help_text=_("Positive for additions, negative for deductions.")
    )
    previous_quantity = models.PositiveIntegerField()
    new_quantity = models.PositiveIntegerField()
    reason = models.CharField(max_length=255, blank=True)
    reference_id = models.CharField(
        max_length=100, blank=True, help_text=_("e.g. transaction_42")
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name_plural = _("Stock history entries")

    def __str__(self):
        return f"{self.operation_type} {self.quantity_change:+d} {self.stock_item.name}"
