from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="GlobalSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "tax_mode",
                    models.CharField(
                        choices=[
                            ("inclusive", "Prices include tax"),
                            ("exclusive", "Tax is added on top of prices"),
                            ("none", "No tax"),
                        ],
                        default="exclusive",
                        help_text="Whether variant prices include tax, exclude it, or are untaxed.",
                        max_length=20,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="EUR",
                        help_text="ISO 4217 currency code used for rounding money amounts.",
                        max_length=3,
                    ),
                ),
                (
                    "business_day_end_hour",
                    models.PositiveSmallIntegerField(
                        default=6,
                        help_text="Hour (0-23) at which the business day rolls over.",
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Global Settings",
                "verbose_name_plural": "Global Settings",
            },
        ),
    ]
