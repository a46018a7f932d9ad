"""Shared enumerations and choices used across apps."""

from django.db import models


class TransactionType(models.TextChoices):
    """Every kind of event that moves inventory quantity."""

    MANUAL_ADDITION = "manual_addition", "Manual addition"
    MANUAL_DEDUCTION = "manual_deduction", "Manual deduction"
    TRANSFER_IN = "transfer_in", "Transfer in"
    TRANSFER_OUT = "transfer_out", "Transfer out"
    ORDER_SALE = "order_sale", "Order sale"
    ORDER_VOID_RETURN = "order_void_return", "Order void return"
    PO_RECEIVE = "po_receive", "Purchase order receive"
    PRODUCTION_CONSUME = "production_consume", "Production consume"
    PRODUCTION_YIELD = "production_yield", "Production yield"
    INVENTORY_COUNT_ADJUSTMENT = "inventory_count_adjustment", "Inventory count adjustment"


class DeductionReason(models.TextChoices):
    EXPIRED = "expired", "Expired"
    DAMAGED = "damaged", "Damaged"
    SPOILED = "spoiled", "Spoiled"
    OTHERS = "others", "Others"


class ReferenceType(models.TextChoices):
    """Business object a ledger entry points back to."""

    ORDER = "order", "Order"
    TRANSFER = "transfer", "Transfer"
    PURCHASE_ORDER = "purchase_order", "Purchase order"
    PRODUCTION = "production", "Production"
    INVENTORY_COUNT = "inventory_count", "Inventory count"
    MANUAL = "manual", "Manual"


ADDITION_TYPES = frozenset(
    {
        TransactionType.MANUAL_ADDITION,
        TransactionType.PO_RECEIVE,
        TransactionType.TRANSFER_IN,
        TransactionType.PRODUCTION_YIELD,
        TransactionType.ORDER_VOID_RETURN,
    }
)

DEDUCTION_TYPES = frozenset(
    {
        TransactionType.MANUAL_DEDUCTION,
        TransactionType.ORDER_SALE,
        TransactionType.TRANSFER_OUT,
        TransactionType.PRODUCTION_CONSUME,
    }
)


def direction_of(transaction_type) -> int | None:
    """Return +1 for additions, -1 for deductions, None when either is possible."""

    if transaction_type in ADDITION_TYPES:
        return 1
    if transaction_type in DEDUCTION_TYPES:
        return -1
    return None
