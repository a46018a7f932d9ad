from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("business", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Item",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=160)),
                ("name_ar", models.CharField(blank=True, max_length=160)),
                ("sku", models.CharField(blank=True, max_length=64)),
                ("unit", models.CharField(default="grams", max_length=20)),
                ("storage_unit", models.CharField(default="Kg", max_length=20)),
                ("cost_per_unit", models.DecimalField(decimal_places=8, default=Decimal("0"), max_digits=15)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "business",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="business.business",
                    ),
                ),
            ],
            options={
                "ordering": ["name", "id"],
                "indexes": [models.Index(fields=["business", "sku"], name="catalog_ite_busines_4b8e0d_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("business", "name"), name="unique_item_name_per_business"),
                    models.CheckConstraint(
                        condition=models.Q(("cost_per_unit__gte", 0)), name="item_cost_non_negative"
                    ),
                ],
            },
        ),
    ]
