from decimal import Decimal
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class Category(models.Model):
    name = models.CharField(
        max_length=100, unique=True, help_text=_("Name of the product category.")
    )
    order = models.IntegerField(
        default=0,
        help_text=_("Display order for this category. Lower numbers appear first."),
    )

    class Meta:
        verbose_name = _("Category")
        verbose_name_plural = _("Categories")
        ordering = ["order", "name"]

    def __str__(self):
        return self.name


class TaxRate(models.Model):
    """
    A named tax rate stored as a fraction (0.19 for 19%).

    At most one rate should be flagged as default; variants without their own
    rate fall back to it.
    """

    name = models.CharField(max_length=100, help_text=_("e.g. 'VAT Standard'"))
    rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("1"))],
        help_text=_("Tax rate as a fraction between 0 and 1."),
    )
    is_default = models.BooleanField(default=False)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.rate * 100:.0f}%)"

    @classmethod
    def default_rate(cls) -> Decimal:
        default = cls.objects.filter(is_default=True).order_by("id").first()
        return default.rate if default else Decimal("0")


class Product(models.Model):
    name = models.CharField(max_length=200)
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class ProductVariant(models.Model):
    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="variants"
    )
    name = models.CharField(max_length=200)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    tax_rate = models.ForeignKey(
        TaxRate,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="variants",
        help_text=_("Overrides the default tax rate for this variant."),
    )

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.product.name} - {self.name}"

    @property
    def display_name(self) -> str:
        return f"{self.product.name} - {self.name}"

    def get_effective_tax_rate(self, default_rate: Decimal = None) -> Decimal:
        """Variant rate, then the default rate, then zero."""
        if self.tax_rate_id:
            return self.tax_rate.rate
        if default_rate is not None:
            return default_rate
        return TaxRate.default_rate()


class StockConsumption(models.Model):
    """
    How many units of a stock item one unit of a variant uses up.

    stock_item_id is stored as entered rather than as a foreign key: catalog
    imports can carry references that are malformed or point at stock items
    that were since removed, and those must be detected rather than rejected.
    """

    variant = models.ForeignKey(
        ProductVariant, on_delete=models.CASCADE, related_name="stock_consumption"
    )
    stock_item_id = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.variant_id} uses {self.quantity} x {self.stock_item_id}"
