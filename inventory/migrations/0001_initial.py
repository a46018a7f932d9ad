from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("business", "0001_initial"),
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="StockLevel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("quantity", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=15)),
                ("reserved_quantity", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=15)),
                ("held_quantity", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=15)),
                ("min_quantity", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=15)),
                (
                    "business",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_levels",
                        to="business.business",
                    ),
                ),
                (
                    "branch",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_levels",
                        to="business.branch",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_levels",
                        to="catalog.item",
                    ),
                ),
            ],
            options={
                "ordering": ["item_id", "id"],
                "indexes": [models.Index(fields=["business", "item"], name="inventory_s_busines_9c1d7e_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("branch__isnull", True)),
                        fields=("business", "item"),
                        name="unique_stocklevel_business_pool",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("branch__isnull", False)),
                        fields=("business", "branch", "item"),
                        name="unique_stocklevel_per_branch",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 0)), name="stocklevel_quantity_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("reserved_quantity__gte", 0)), name="stocklevel_reserved_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("held_quantity__gte", 0)), name="stocklevel_held_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("min_quantity__gte", 0)), name="stocklevel_min_non_negative"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("manual_addition", "Manual addition"),
                            ("manual_deduction", "Manual deduction"),
                            ("transfer_in", "Transfer in"),
                            ("transfer_out", "Transfer out"),
                            ("order_sale", "Order sale"),
                            ("order_void_return", "Order void return"),
                            ("po_receive", "Purchase order receive"),
                            ("production_consume", "Production consume"),
                            ("production_yield", "Production yield"),
                            ("inventory_count_adjustment", "Inventory count adjustment"),
                        ],
                        max_length=32,
                    ),
                ),
                ("quantity", models.DecimalField(decimal_places=4, max_digits=15)),
                ("unit", models.CharField(max_length=20)),
                (
                    "deduction_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("expired", "Expired"),
                            ("damaged", "Damaged"),
                            ("spoiled", "Spoiled"),
                            ("others", "Others"),
                        ],
                        max_length=16,
                        null=True,
                    ),
                ),
                (
                    "reference_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("order", "Order"),
                            ("transfer", "Transfer"),
                            ("purchase_order", "Purchase order"),
                            ("production", "Production"),
                            ("inventory_count", "Inventory count"),
                            ("manual", "Manual"),
                        ],
                        max_length=32,
                        null=True,
                    ),
                ),
                ("reference_id", models.BigIntegerField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("quantity_before", models.DecimalField(decimal_places=4, max_digits=15)),
                ("quantity_after", models.DecimalField(decimal_places=4, max_digits=15)),
                (
                    "cost_per_unit_at_time",
                    models.DecimalField(decimal_places=8, default=Decimal("0"), max_digits=15),
                ),
                (
                    "business",
                    models.ForeignKey(
                        db_constraint=False,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="business.business",
                    ),
                ),
                (
                    "branch",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="business.branch",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        db_constraint=False,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="catalog.item",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "ledger entries",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["business", "-created_at"], name="inventory_l_busines_3a7f21_idx"),
                    models.Index(fields=["item", "-created_at"], name="inventory_l_item_id_5e02b8_idx"),
                    models.Index(fields=["business", "item", "branch"], name="inventory_l_busines_c41e9a_idx"),
                    models.Index(fields=["reference_type", "reference_id"], name="inventory_l_referen_77d0f3_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="ledger_quantity_positive"),
                    models.CheckConstraint(
                        condition=models.Q(("quantity_after__gte", 0)), name="ledger_quantity_after_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("deduction_reason__isnull", True),
                            (
                                "transaction_type__in",
                                ["manual_deduction", "order_sale", "production_consume", "transfer_out"],
                            ),
                            _connector="OR",
                        ),
                        name="ledger_reason_only_on_deductions",
                    ),
                ],
            },
        ),
    ]
