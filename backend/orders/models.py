from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class OrderSession(models.Model):
    """
    The persisted cart of one operator.

    At most one session per user is ACTIVE. Logging out soft-marks it
    PENDING_LOGOUT so the same cart can be resumed on the next login.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        PENDING_LOGOUT = "pending_logout", _("Pending Logout")
        COMPLETED = "completed", _("Completed")

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="order_sessions",
    )
    items = models.JSONField(default=list, blank=True)
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.ACTIVE, db_index=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    logout_time = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-updated_at"]
        indexes = [
            models.Index(fields=["user", "status"], name="ordersession_user_status_idx"),
        ]

    def __str__(self):
        return f"Session {self.pk} ({self.user_id}, {self.status})"


class OrderActivityLog(models.Model):
    """Audit trail for cart lines removed or carts cleared before payment."""

    class Action(models.TextChoices):
        ITEM_REMOVED = "Item Removed", _("Item Removed")
        ORDER_CLEARED = "Order Cleared", _("Order Cleared")

    action = models.CharField(max_length=50, choices=Action.choices)
    details = models.JSONField(default=dict, blank=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_activity",
    )
    user_name = models.CharField(max_length=150, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.action} by {self.user_name or self.user_id}"
