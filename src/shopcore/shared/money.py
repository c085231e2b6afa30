"""Fixed-point money helpers.

Amounts are persisted as integer cents and handed back to callers as
``Decimal`` values with two places.
"""

from decimal import Decimal, InvalidOperation

from shopcore.shared.errors import InvalidRequest

CENT = Decimal("0.01")


def to_cents(amount, field: str = "amount") -> int:
    """Convert a decimal-like amount to integer cents.

    Floats go through ``str()`` first so ``10.1`` means ten dollars ten.
    Sub-cent precision is rejected rather than rounded.
    """
    if isinstance(amount, bool):
        raise InvalidRequest({field: ["Amount must be a number"]})
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise InvalidRequest({field: [f"Invalid amount: {amount!r}"]}) from None

    if not value.is_finite():
        raise InvalidRequest({field: [f"Invalid amount: {amount!r}"]})
    if value != value.quantize(CENT):
        raise InvalidRequest({field: [f"Amount {value} has more than two decimal places"]})

    return int(value * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)
