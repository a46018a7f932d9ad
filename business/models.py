"""Business app models.

A business is the tenant every inventory key belongs to. Branches are the
physical locations of a business; stock held outside any branch lives in the
business-wide pool.
"""

from common.models import TimeStampedModel
from django.db import models


class Business(TimeStampedModel):
    name = models.CharField(max_length=160)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["name", "id"]
        verbose_name_plural = "businesses"

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Branch(TimeStampedModel):
    business = models.ForeignKey(Business, on_delete=models.CASCADE, related_name="branches")
    name = models.CharField(max_length=160)
    name_ar = models.CharField(max_length=160, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["business_id", "name", "id"]
        verbose_name_plural = "branches"
        indexes = [
            models.Index(fields=["business"], name="business_br_busines_6f1c2a_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.name} ({self.business_id})"


# EOF
