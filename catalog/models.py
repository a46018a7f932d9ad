"""Catalog app models.

Items are the raw materials and goods a business keeps in stock. The ledger
only needs an item's display fields, its storage unit and its current cost;
everything else about item management lives outside this project.
"""

from decimal import Decimal

from common.models import TimeStampedModel
from django.db import models

DEFAULT_STORAGE_UNIT = "Kg"


class Item(TimeStampedModel):
    business = models.ForeignKey("business.Business", on_delete=models.CASCADE, related_name="items")
    name = models.CharField(max_length=160)
    name_ar = models.CharField(max_length=160, blank=True)
    sku = models.CharField(max_length=64, blank=True)
    # Recipe unit (e.g. grams); stock is always counted in storage_unit
    unit = models.CharField(max_length=20, default="grams")
    storage_unit = models.CharField(max_length=20, default=DEFAULT_STORAGE_UNIT)
    cost_per_unit = models.DecimalField(max_digits=15, decimal_places=8, default=Decimal("0"))
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name", "id"]
        constraints = [
            models.UniqueConstraint(fields=["business", "name"], name="unique_item_name_per_business"),
            models.CheckConstraint(name="item_cost_non_negative", condition=models.Q(cost_per_unit__gte=0)),
        ]
        indexes = [
            models.Index(fields=["business", "sku"], name="catalog_ite_busines_4b8e0d_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.name


# EOF
