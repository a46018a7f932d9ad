"""Inventory models: the stock projection and the transaction ledger.

``StockLevel`` holds the current quantity per (business, item, scope) key and
is written only by ``inventory.services``. ``LedgerEntry`` is the append-only
history the projection is derived from.
"""

from decimal import Decimal

from common.choices import DEDUCTION_TYPES, DeductionReason, ReferenceType, TransactionType, direction_of
from common.models import TimeStampedModel
from django.conf import settings
from django.db import models
from django.utils import timezone

from .exceptions import ImmutableLedgerError
from .quantities import QUANTITY_DECIMAL_PLACES, QUANTITY_MAX_DIGITS, ZERO
from .scope import Scope


def _quantity_field(**kwargs):
    return models.DecimalField(max_digits=QUANTITY_MAX_DIGITS, decimal_places=QUANTITY_DECIMAL_PLACES, **kwargs)


class StockLevel(TimeStampedModel):
    business = models.ForeignKey("business.Business", on_delete=models.PROTECT, related_name="stock_levels")
    # NULL branch is the business-wide pool
    branch = models.ForeignKey(
        "business.Branch", null=True, blank=True, on_delete=models.PROTECT, related_name="stock_levels"
    )
    item = models.ForeignKey("catalog.Item", on_delete=models.PROTECT, related_name="stock_levels")
    quantity = _quantity_field(default=ZERO)
    reserved_quantity = _quantity_field(default=ZERO)
    held_quantity = _quantity_field(default=ZERO)
    min_quantity = _quantity_field(default=ZERO)

    class Meta:
        ordering = ["item_id", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "item"],
                condition=models.Q(branch__isnull=True),
                name="unique_stocklevel_business_pool",
            ),
            models.UniqueConstraint(
                fields=["business", "branch", "item"],
                condition=models.Q(branch__isnull=False),
                name="unique_stocklevel_per_branch",
            ),
            models.CheckConstraint(name="stocklevel_quantity_non_negative", condition=models.Q(quantity__gte=0)),
            models.CheckConstraint(
                name="stocklevel_reserved_non_negative", condition=models.Q(reserved_quantity__gte=0)
            ),
            models.CheckConstraint(name="stocklevel_held_non_negative", condition=models.Q(held_quantity__gte=0)),
            models.CheckConstraint(name="stocklevel_min_non_negative", condition=models.Q(min_quantity__gte=0)),
        ]
        indexes = [
            models.Index(fields=["business", "item"], name="inventory_s_busines_9c1d7e_idx"),
        ]

    @property
    def scope(self) -> Scope:
        return Scope.from_branch_id(self.branch_id)

    @property
    def available(self) -> Decimal:
        return self.quantity - self.reserved_quantity - self.held_quantity

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_quantity

    def __str__(self) -> str:  # pragma: no cover
        return f"StockLevel<{self.business_id}:{self.item_id}:{self.scope}> q={self.quantity}"


def signed_quantity(transaction_type, quantity, quantity_before, quantity_after) -> Decimal:
    """Quantity with the sign of its effect on stock.

    Count adjustments go either way, so their sign comes from the snapshot.
    """

    direction = direction_of(transaction_type)
    if direction is None:
        direction = -1 if quantity_after < quantity_before else 1
    return quantity * direction


class LedgerQuerySet(models.QuerySet):
    """Ledger rows are append-only; bulk mutation is refused."""

    def update(self, **kwargs):
        raise ImmutableLedgerError("Ledger entries cannot be updated")

    def delete(self):
        raise ImmutableLedgerError("Ledger entries cannot be deleted")

    def for_key(self, *, business_id: int, item_id: int, scope: Scope):
        return self.filter(business_id=business_id, item_id=item_id, **scope.lookup())


class LedgerEntry(models.Model):
    # Collaborator references carry no DB constraint so deleting a user or
    # branch never cascades into, or rewrites, the audit trail.
    business = models.ForeignKey(
        "business.Business", on_delete=models.DO_NOTHING, db_constraint=False, related_name="+"
    )
    branch = models.ForeignKey(
        "business.Branch",
        null=True,
        blank=True,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="+",
    )
    item = models.ForeignKey("catalog.Item", on_delete=models.DO_NOTHING, db_constraint=False, related_name="+")
    transaction_type = models.CharField(max_length=32, choices=TransactionType.choices)
    quantity = _quantity_field()  # magnitude; direction comes from transaction_type
    unit = models.CharField(max_length=20)
    deduction_reason = models.CharField(max_length=16, choices=DeductionReason.choices, null=True, blank=True)
    reference_type = models.CharField(max_length=32, choices=ReferenceType.choices, null=True, blank=True)
    reference_id = models.BigIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="+",
    )
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    quantity_before = _quantity_field()
    quantity_after = _quantity_field()
    cost_per_unit_at_time = models.DecimalField(max_digits=15, decimal_places=8, default=Decimal("0"))

    objects = LedgerQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "ledger entries"
        constraints = [
            models.CheckConstraint(name="ledger_quantity_positive", condition=models.Q(quantity__gt=0)),
            models.CheckConstraint(
                name="ledger_quantity_after_non_negative", condition=models.Q(quantity_after__gte=0)
            ),
            models.CheckConstraint(
                name="ledger_reason_only_on_deductions",
                condition=models.Q(deduction_reason__isnull=True)
                | models.Q(transaction_type__in=sorted(t.value for t in DEDUCTION_TYPES)),
            ),
        ]
        indexes = [
            models.Index(fields=["business", "-created_at"], name="inventory_l_busines_3a7f21_idx"),
            models.Index(fields=["item", "-created_at"], name="inventory_l_item_id_5e02b8_idx"),
            models.Index(fields=["business", "item", "branch"], name="inventory_l_busines_c41e9a_idx"),
            models.Index(fields=["reference_type", "reference_id"], name="inventory_l_referen_77d0f3_idx"),
        ]

    @property
    def scope(self) -> Scope:
        return Scope.from_branch_id(self.branch_id)

    @property
    def signed_quantity(self) -> Decimal:
        return signed_quantity(self.transaction_type, self.quantity, self.quantity_before, self.quantity_after)

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableLedgerError("Ledger entries cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableLedgerError("Ledger entries cannot be deleted")

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.transaction_type} {self.quantity} {self.unit} for {self.item_id}"


# EOF
