"""Inventory services: the transaction recorder and manual adjustments.

Every quantity change runs as one database transaction that locks the stock
row for its key (``SELECT ... FOR UPDATE``), derives the before/after
snapshot from the locked row, writes the new quantity and appends the ledger
entry. Concurrent writers on the same key queue behind the lock; different
keys never contend.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from business.models import Branch
from catalog.models import Item
from common.choices import DeductionReason, ReferenceType, TransactionType, direction_of
from django.db import DatabaseError, transaction

from .exceptions import InsufficientStockError, NotFoundError, PersistenceError, ValidationError
from .models import LedgerEntry, StockLevel, signed_quantity
from .quantities import ZERO, format_quantity, to_quantity
from .scope import Scope

logger = logging.getLogger("silo.inventory")


@dataclass(frozen=True)
class StockSnapshot:
    quantity: Decimal
    cost_per_unit: Decimal
    storage_unit: str


@dataclass(frozen=True)
class MovementResult:
    transaction: LedgerEntry
    new_quantity: Decimal


@dataclass(frozen=True)
class TransferResult:
    outbound: LedgerEntry
    inbound: LedgerEntry


def _coerce_choice(choices, value, message: str):
    if value is None:
        return None
    try:
        return choices(value)
    except ValueError:
        raise ValidationError(message) from None


def _log_context(**context) -> dict:
    # Decimals are rendered as strings so JSON log handlers keep full precision
    return {key: (str(value) if isinstance(value, Decimal) else value) for key, value in context.items()}


@contextmanager
def _persistence_guard(operation: str, **context):
    """Translate database failures into PersistenceError after logging them."""

    try:
        yield
    except DatabaseError as exc:
        logger.exception(
            "inventory.persistence_failed",
            extra={"event": "inventory.persistence_failed", "operation": operation, **_log_context(**context)},
        )
        raise PersistenceError() from exc


def _resolve_item(*, business_id: int, item_id: int) -> Item:
    try:
        return Item.objects.only("id", "business_id", "cost_per_unit", "storage_unit").get(
            id=item_id, business_id=business_id
        )
    except Item.DoesNotExist:
        raise NotFoundError(f"Item {item_id} not found") from None


def _resolve_scope(*, business_id: int, scope: Scope) -> None:
    if scope.is_business_pool:
        return
    if not Branch.objects.filter(id=scope.branch_id, business_id=business_id).exists():
        raise NotFoundError(f"Branch {scope.branch_id} not found")


def _resolve_direction(transaction_type: TransactionType, direction: Optional[int]) -> int:
    fixed = direction_of(transaction_type)
    if fixed is None:
        if direction not in (1, -1):
            raise ValidationError(f"{transaction_type.value} requires a direction of +1 or -1")
        return direction
    if direction is not None and direction != fixed:
        raise ValidationError(f"{transaction_type.value} has a fixed direction")
    return fixed


# Stock projection access


def get_current_stock(*, business_id: int, item_id: int, scope: Scope) -> StockSnapshot:
    """Return the on-hand quantity for a key plus the item's unit and cost.

    A key that never moved has no stock row; that reads as zero, not as an
    error. An unknown item does raise NotFoundError.
    """

    with _persistence_guard("get_current_stock", business_id=business_id, item_id=item_id, branch_id=scope.branch_id):
        item = _resolve_item(business_id=business_id, item_id=item_id)
        _resolve_scope(business_id=business_id, scope=scope)
        quantity = (
            StockLevel.objects.filter(business_id=business_id, item_id=item_id, **scope.lookup())
            .values_list("quantity", flat=True)
            .first()
        )
    return StockSnapshot(
        quantity=quantity if quantity is not None else ZERO,
        cost_per_unit=item.cost_per_unit,
        storage_unit=item.storage_unit,
    )


def lock_stock_level(*, business_id: int, item_id: int, scope: Scope) -> StockLevel:
    """Fetch the stock row for a key, creating it if needed, and lock it.

    Must run inside ``transaction.atomic``. When two transactions race to
    create the same row, the unique constraint lets one insert win and the
    other re-reads (and waits on) the winner's row.
    """

    level, _ = StockLevel.objects.select_for_update().get_or_create(
        business_id=business_id,
        item_id=item_id,
        **scope.lookup(),
        defaults={"quantity": ZERO, "reserved_quantity": ZERO, "held_quantity": ZERO},
    )
    return level


def _save_quantity(level: StockLevel, quantity: Decimal) -> None:
    level.quantity = quantity
    level.save(update_fields=["quantity", "updated_at"])


def update_stock_quantity(*, business_id: int, item_id: int, new_quantity, scope: Scope) -> None:
    """Overwrite the stored quantity for a key (not a delta).

    A caller computing ``new_quantity`` from a prior read must hold the row
    lock from :func:`lock_stock_level` in the same transaction, otherwise a
    concurrent writer's change is lost.
    """

    new_quantity = to_quantity(new_quantity, allow_zero=True)
    with _persistence_guard(
        "update_stock_quantity",
        business_id=business_id,
        item_id=item_id,
        branch_id=scope.branch_id,
        new_quantity=new_quantity,
    ):
        with transaction.atomic():
            _save_quantity(lock_stock_level(business_id=business_id, item_id=item_id, scope=scope), new_quantity)


# Ledger


def _append_entry(
    *,
    business_id: int,
    item_id: int,
    transaction_type,
    quantity,
    unit: str,
    scope: Scope,
    quantity_before,
    quantity_after,
    cost_per_unit_at_time=None,
    deduction_reason=None,
    reference_type=None,
    reference_id: Optional[int] = None,
    notes: str = "",
    performed_by_id: Optional[int] = None,
) -> LedgerEntry:

    transaction_type = _coerce_choice(TransactionType, transaction_type, "invalid transaction type")
    if transaction_type is None:
        raise ValidationError("invalid transaction type")
    deduction_reason = _coerce_choice(DeductionReason, deduction_reason, "invalid reason")
    reference_type = _coerce_choice(ReferenceType, reference_type, "invalid reference type")
    quantity = to_quantity(quantity)
    quantity_before = to_quantity(quantity_before, allow_zero=True)
    # After may be negative here; the ledger check constraint rejects it on insert
    quantity_after = Decimal(str(quantity_after))
    context = _log_context(
        business_id=business_id,
        item_id=item_id,
        branch_id=scope.branch_id,
        transaction_type=transaction_type.value,
        quantity=quantity,
        quantity_before=quantity_before,
        quantity_after=quantity_after,
        reference_type=reference_type.value if reference_type else None,
        reference_id=reference_id,
        performed_by_id=performed_by_id,
    )

    movement = signed_quantity(transaction_type, quantity, quantity_before, quantity_after)
    if quantity_before + movement != quantity_after:
        logger.warning("inventory.snapshot_mismatch", extra={"event": "inventory.snapshot_mismatch", **context})

    with _persistence_guard("record_transaction", **context):
        with transaction.atomic():
            entry = LedgerEntry.objects.create(
                business_id=business_id,
                branch_id=scope.branch_id,
                item_id=item_id,
                transaction_type=transaction_type,
                quantity=quantity,
                unit=unit,
                deduction_reason=deduction_reason,
                reference_type=reference_type,
                reference_id=reference_id,
                notes=notes or "",
                performed_by_id=performed_by_id,
                quantity_before=quantity_before,
                quantity_after=quantity_after,
                cost_per_unit_at_time=cost_per_unit_at_time if cost_per_unit_at_time is not None else ZERO,
            )
    return entry


def record_transaction(
    *,
    business_id: int,
    item_id: int,
    transaction_type,
    quantity,
    unit: str,
    scope: Scope,
    quantity_before,
    quantity_after,
    cost_per_unit_at_time=None,
    deduction_reason=None,
    reference_type=None,
    reference_id: Optional[int] = None,
    notes: str = "",
    performed_by_id: Optional[int] = None,
) -> LedgerEntry:
    """Append one ledger entry. Does not touch the stock projection.

    The item and branch must belong to the business, otherwise NotFoundError.
    The before/after snapshot is taken as given; one that does not match the
    movement is logged and still written. Producers that also move stock
    should call :func:`apply_movement` instead, which derives the snapshot
    under the row lock.
    """

    with _persistence_guard("record_transaction", business_id=business_id, item_id=item_id, branch_id=scope.branch_id):
        _resolve_item(business_id=business_id, item_id=item_id)
        _resolve_scope(business_id=business_id, scope=scope)
    return _append_entry(
        business_id=business_id,
        item_id=item_id,
        transaction_type=transaction_type,
        quantity=quantity,
        unit=unit,
        scope=scope,
        quantity_before=quantity_before,
        quantity_after=quantity_after,
        cost_per_unit_at_time=cost_per_unit_at_time,
        deduction_reason=deduction_reason,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
        performed_by_id=performed_by_id,
    )


def _apply_locked(
    level: StockLevel,
    *,
    item: Item,
    transaction_type: TransactionType,
    direction: int,
    quantity: Decimal,
    deduction_reason=None,
    reference_type=None,
    reference_id: Optional[int] = None,
    notes: str = "",
    performed_by_id: Optional[int] = None,
) -> LedgerEntry:
    """Move stock on a row already locked by the current transaction."""

    before = level.quantity
    if direction < 0 and quantity > before:
        raise InsufficientStockError(available=before, unit=item.storage_unit)
    after = before + quantity * direction
    _save_quantity(level, after)
    entry = _append_entry(
        business_id=level.business_id,
        item_id=level.item_id,
        transaction_type=transaction_type,
        quantity=quantity,
        unit=item.storage_unit,
        scope=level.scope,
        quantity_before=before,
        quantity_after=after,
        cost_per_unit_at_time=item.cost_per_unit,
        deduction_reason=deduction_reason,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
        performed_by_id=performed_by_id,
    )
    logger.info(
        "inventory.movement_applied",
        extra={
            "event": "inventory.movement_applied",
            **_log_context(
                ledger_entry_id=entry.id,
                business_id=level.business_id,
                item_id=level.item_id,
                branch_id=level.branch_id,
                transaction_type=entry.transaction_type,
                quantity=quantity,
                quantity_before=before,
                quantity_after=after,
                performed_by_id=performed_by_id,
            ),
        },
    )
    return entry


def apply_movement(
    *,
    business_id: int,
    item_id: int,
    transaction_type,
    quantity,
    scope: Scope,
    direction: Optional[int] = None,
    deduction_reason=None,
    reference_type=None,
    reference_id: Optional[int] = None,
    notes: str = "",
    performed_by_id: Optional[int] = None,
) -> MovementResult:
    """Move stock for one key and append the matching ledger entry atomically.

    This is the entry point for upstream producers (sales, receipts,
    production, returns). ``direction`` is only given for transaction types
    that can go either way.
    """

    transaction_type = _coerce_choice(TransactionType, transaction_type, "invalid transaction type")
    if transaction_type is None:
        raise ValidationError("invalid transaction type")
    quantity = to_quantity(quantity)
    direction = _resolve_direction(transaction_type, direction)
    deduction_reason = _coerce_choice(DeductionReason, deduction_reason, "invalid reason")
    reference_type = _coerce_choice(ReferenceType, reference_type, "invalid reference type")

    with _persistence_guard(
        "apply_movement",
        business_id=business_id,
        item_id=item_id,
        branch_id=scope.branch_id,
        transaction_type=transaction_type.value,
        quantity=str(quantity),
        direction=direction,
    ):
        with transaction.atomic():
            item = _resolve_item(business_id=business_id, item_id=item_id)
            _resolve_scope(business_id=business_id, scope=scope)
            level = lock_stock_level(business_id=business_id, item_id=item_id, scope=scope)
            entry = _apply_locked(
                level,
                item=item,
                transaction_type=transaction_type,
                direction=direction,
                quantity=quantity,
                deduction_reason=deduction_reason,
                reference_type=reference_type,
                reference_id=reference_id,
                notes=notes,
                performed_by_id=performed_by_id,
            )
    return MovementResult(transaction=entry, new_quantity=level.quantity)


def transfer_stock(
    *,
    business_id: int,
    item_id: int,
    quantity,
    source: Scope,
    destination: Scope,
    reference_id: Optional[int] = None,
    notes: str = "",
    performed_by_id: Optional[int] = None,
) -> TransferResult:
    """Move stock between two scopes of one business in a single transaction.

    Both rows are locked in :meth:`Scope.sort_key` order so two opposite
    transfers between the same pair of scopes cannot deadlock.
    """

    quantity = to_quantity(quantity)
    if source == destination:
        raise ValidationError("source and destination must differ")

    with _persistence_guard(
        "transfer_stock",
        business_id=business_id,
        item_id=item_id,
        source=str(source),
        destination=str(destination),
        quantity=str(quantity),
    ):
        with transaction.atomic():
            item = _resolve_item(business_id=business_id, item_id=item_id)
            _resolve_scope(business_id=business_id, scope=source)
            _resolve_scope(business_id=business_id, scope=destination)
            levels = {
                scope: lock_stock_level(business_id=business_id, item_id=item_id, scope=scope)
                for scope in sorted((source, destination), key=Scope.sort_key)
            }
            shared = {
                "item": item,
                "quantity": quantity,
                "reference_type": ReferenceType.TRANSFER,
                "reference_id": reference_id,
                "notes": notes,
                "performed_by_id": performed_by_id,
            }
            outbound = _apply_locked(
                levels[source], transaction_type=TransactionType.TRANSFER_OUT, direction=-1, **shared
            )
            inbound = _apply_locked(
                levels[destination], transaction_type=TransactionType.TRANSFER_IN, direction=1, **shared
            )
    return TransferResult(outbound=outbound, inbound=inbound)


def reconcile_count(
    *,
    business_id: int,
    item_id: int,
    counted_quantity,
    scope: Scope,
    reference_id: Optional[int] = None,
    notes: str = "",
    performed_by_id: Optional[int] = None,
) -> Optional[MovementResult]:
    """Bring a key in line with a physical count.

    Appends one ``inventory_count_adjustment`` for the difference, or nothing
    (returning None) when the count already matches.
    """

    counted = to_quantity(counted_quantity, allow_zero=True)
    with _persistence_guard(
        "reconcile_count",
        business_id=business_id,
        item_id=item_id,
        branch_id=scope.branch_id,
        counted_quantity=str(counted),
    ):
        with transaction.atomic():
            item = _resolve_item(business_id=business_id, item_id=item_id)
            _resolve_scope(business_id=business_id, scope=scope)
            stored = StockLevel.objects.filter(business_id=business_id, item_id=item_id, **scope.lookup())
            if counted == 0 and not stored.exists():
                # A key that never moved already counts as zero; no row is created for it
                return None
            level = lock_stock_level(business_id=business_id, item_id=item_id, scope=scope)
            difference = counted - level.quantity
            if difference == 0:
                return None
            entry = _apply_locked(
                level,
                item=item,
                transaction_type=TransactionType.INVENTORY_COUNT_ADJUSTMENT,
                direction=1 if difference > 0 else -1,
                quantity=abs(difference),
                reference_type=ReferenceType.INVENTORY_COUNT,
                reference_id=reference_id,
                notes=notes,
                performed_by_id=performed_by_id,
            )
    return MovementResult(transaction=entry, new_quantity=level.quantity)


# Manual adjustments


def add_stock(
    *,
    business_id: int,
    item_id: int,
    quantity,
    notes: str,
    scope: Scope,
    performed_by_id: Optional[int] = None,
) -> MovementResult:
    """Manually add stock. Additions always need a written justification."""

    quantity = to_quantity(quantity)
    notes = (notes or "").strip()
    if not notes:
        raise ValidationError("justification required")
    return apply_movement(
        business_id=business_id,
        item_id=item_id,
        transaction_type=TransactionType.MANUAL_ADDITION,
        quantity=quantity,
        scope=scope,
        reference_type=ReferenceType.MANUAL,
        notes=notes,
        performed_by_id=performed_by_id,
    )


def deduct_stock(
    *,
    business_id: int,
    item_id: int,
    quantity,
    reason,
    scope: Scope,
    notes: Optional[str] = None,
    performed_by_id: Optional[int] = None,
) -> MovementResult:
    """Manually deduct stock for a categorised reason.

    ``others`` needs notes; the other reasons speak for themselves. Raises
    InsufficientStockError rather than letting the quantity go negative.
    """

    quantity = to_quantity(quantity)
    reason = _coerce_choice(DeductionReason, reason, "invalid reason")
    if reason is None:
        raise ValidationError("invalid reason")
    notes = (notes or "").strip()
    if reason == DeductionReason.OTHERS and not notes:
        raise ValidationError("notes required for other reason")
    return apply_movement(
        business_id=business_id,
        item_id=item_id,
        transaction_type=TransactionType.MANUAL_DEDUCTION,
        quantity=quantity,
        scope=scope,
        deduction_reason=reason,
        reference_type=ReferenceType.MANUAL,
        notes=notes,
        performed_by_id=performed_by_id,
    )


__all__ = [
    "MovementResult",
    "StockSnapshot",
    "TransferResult",
    "add_stock",
    "apply_movement",
    "deduct_stock",
    "format_quantity",
    "get_current_stock",
    "lock_stock_level",
    "reconcile_count",
    "record_transaction",
    "transfer_stock",
    "update_stock_quantity",
]


# EOF
