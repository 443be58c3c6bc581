from django.db import models
from django.utils.translation import gettext_lazy as _


class Room(models.Model):
    name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Table(models.Model):
    """
    A physical table. Its status is the single source of truth for whether
    it can be newly assigned; only AVAILABLE is assignable.
    """

    class Status(models.TextChoices):
        AVAILABLE = "available", _("Available")
        OCCUPIED = "occupied", _("Occupied")
        RESERVED = "reserved", _("Reserved")
        UNAVAILABLE = "unavailable", _("Unavailable")
        BILL_REQUESTED = "bill_requested", _("Bill Requested")

    name = models.CharField(max_length=50)
    room = models.ForeignKey(
        Room, on_delete=models.CASCADE, related_name="tables", null=True, blank=True
    )
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.AVAILABLE
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"Table {self.name} ({self.status})"

    @property
    def is_assignable(self) -> bool:
        return self.status == self.Status.AVAILABLE
