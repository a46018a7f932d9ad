"""Inventory error taxonomy.

ValidationError and InsufficientStockError are expected, user-facing
outcomes. PersistenceError wraps any database failure; its message never
carries storage details, those go to the server log instead.
"""

from decimal import Decimal


class InventoryError(Exception):
    """Base class for every failure the inventory services raise."""


class ValidationError(InventoryError):
    """Caller input violates a business rule."""


class InsufficientStockError(InventoryError):
    """A deduction would drive the on-hand quantity below zero."""

    def __init__(self, available, unit: str):
        self.available = Decimal(available)
        self.unit = unit
        shown = f"{self.available.normalize():f}"
        super().__init__(f"Insufficient stock. Available: {shown} {unit}")


class PersistenceError(InventoryError):
    """The store rejected a read or write."""

    default_message = "Unable to record inventory transaction"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class NotFoundError(InventoryError):
    """Item, branch or business key could not be resolved."""


class ImmutableLedgerError(InventoryError):
    """Attempt to update or delete a ledger entry."""


# EOF
