"""Quantity parsing shared by the services and the API layer."""

from decimal import Decimal, InvalidOperation

from .exceptions import ValidationError

QUANTITY_MAX_DIGITS = 15
QUANTITY_DECIMAL_PLACES = 4
QUANTITY_STEP = Decimal("0.0001")
ZERO = Decimal("0")

# Largest value a Decimal(15, 4) column holds
_QUANTITY_LIMIT = Decimal(10) ** (QUANTITY_MAX_DIGITS - QUANTITY_DECIMAL_PLACES)


def to_quantity(value, *, allow_zero: bool = False) -> Decimal:
    """Coerce ``value`` to a stored-precision Decimal.

    Movement quantities must be strictly positive; ``allow_zero`` accepts any
    non-negative value (absolute quantities such as a physical count).
    """

    if isinstance(value, bool) or value is None:
        raise ValidationError("quantity must be a number")
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("quantity must be a number") from None
    if not parsed.is_finite():
        raise ValidationError("quantity must be a number")
    if abs(parsed) >= _QUANTITY_LIMIT:
        raise ValidationError("quantity is too large")
    quantity = parsed.quantize(QUANTITY_STEP)
    if allow_zero:
        if quantity < 0:
            raise ValidationError("quantity cannot be negative")
    elif quantity <= 0:
        raise ValidationError("quantity must be positive")
    return quantity


def format_quantity(value) -> str:
    """Render a quantity without trailing zeros (``Decimal("7.0000")`` -> ``"7"``)."""
    return f"{Decimal(value).normalize():f}"


# EOF
