from decimal import Decimal
from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from core_backend.exceptions import ValidationError


class Transaction(models.Model):
    """
    The immutable record of a settled sale. Items are a serialized snapshot
    taken at settlement time and are never re-derived from the catalog.
    """

    class Status(models.TextChoices):
        COMPLETED = "completed", _("Completed")
        COMPLIMENTARY = "complimentary", _("Complimentary")

    class PaymentMethod(models.TextChoices):
        CASH = "Cash", _("Cash")
        CARD = "Card", _("Card")

    items = models.JSONField(default=list)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    tax = models.DecimalField(max_digits=10, decimal_places=2)
    tip = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    discount_reason = models.CharField(max_length=255, blank=True)
    total = models.DecimalField(max_digits=10, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.COMPLETED)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    user_name = models.CharField(max_length=150, blank=True)
    till_id = models.IntegerField(null=True, blank=True)
    till_name = models.CharField(max_length=100, blank=True)
    table = models.ForeignKey(
        "tables.Table",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    table_name = models.CharField(max_length=50, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Transaction {self.pk} - {self.total} ({self.status})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Transactions are immutable once recorded")
        super().save(*args, **kwargs)
