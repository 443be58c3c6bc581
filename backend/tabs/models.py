from django.db import models


class Tab(models.Model):
    """A named, resumable parked order, optionally linked to a table."""

    name = models.CharField(max_length=100, unique=True)
    items = models.JSONField(default=list, blank=True)
    till_id = models.IntegerField(null=True, blank=True)
    till_name = models.CharField(max_length=100, blank=True)
    table = models.ForeignKey(
        "tables.Table",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="tabs",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return self.name

    @property
    def is_empty(self) -> bool:
        return not self.items
