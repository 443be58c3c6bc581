from django.db import models
import logging

logger = logging.getLogger(__name__)


# === CHOICES ===

class TaxMode(models.TextChoices):
    """How item prices relate to tax."""
    INCLUSIVE = "inclusive", "Prices include tax"
    EXCLUSIVE = "exclusive", "Tax is added on top of prices"
    NONE = "none", "No tax"


# === CORE BUSINESS MODELS ===


class GlobalSettings(models.Model):
    """
    Business-wide settings read by the order engine.

    There is a single row; GlobalSettings.load() creates it on first access.
    Business-day configuration is kept here for the reporting service and is
    not interpreted by the order engine.
    """

    tax_mode = models.CharField(
        max_length=20,
        choices=TaxMode.choices,
        default=TaxMode.EXCLUSIVE,
        help_text="Whether variant prices include tax, exclude it, or are untaxed.",
    )
    currency = models.CharField(
        max_length=3,
        default="EUR",
        help_text="ISO 4217 currency code used for rounding money amounts.",
    )
    business_day_end_hour = models.PositiveSmallIntegerField(
        default=6,
        help_text="Hour (0-23) at which the business day rolls over.",
    )

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Global Settings"
        verbose_name_plural = "Global Settings"

    def __str__(self):
        return f"GlobalSettings(tax_mode={self.tax_mode}, currency={self.currency})"

    @classmethod
    def load(cls) -> "GlobalSettings":
        settings_obj = cls.objects.order_by("id").first()
        if settings_obj is None:
            settings_obj = cls.objects.create()
            logger.info("Created default GlobalSettings instance")
        return settings_obj
