"""Monetary value coercion.

Offers are held as ``Decimal``.  Floats are refused outright so binary
rounding never leaks into a ledger amount.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from marketplace.domain.errors import ValidationError


def to_money(value: Decimal | int | str) -> Decimal:
    """Convert *value* to a ``Decimal`` amount.

    Args:
        value: A ``Decimal``, ``int``, or numeric string.

    Returns:
        The amount as a ``Decimal``.

    Raises:
        ValidationError: If *value* is a float, a bool, or not numeric.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError("Use Decimal, int, or string, not float, for monetary values")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"Not a monetary amount: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"Not a monetary amount: {value!r}")
    return amount


def require_positive(amount: Decimal, field: str = "offer_amount") -> Decimal:
    """Return *amount* unchanged if it is strictly positive.

    Raises:
        ValidationError: If *amount* is zero or negative.
    """
    if amount <= 0:
        raise ValidationError(f"{field} must be positive, got {amount}")
    return amount
