"""Payment aggregate: the record that an order's total was paid.

A payment is written once, alongside the order's move to Paid, and never
changes afterwards. ``order_id`` is unique, so the store itself refuses a
second payment for the same order.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean.fields import DateTime, Identifier, Integer, String

from shopcore.domain import shopcore
from shopcore.payments.events import PaymentRecorded
from shopcore.shared.errors import InvalidRequest
from shopcore.shared.money import from_cents


class PaymentMethod(Enum):
    CARD = "Card"
    UPI = "Upi"
    CASH = "Cash"
    NET_BANKING = "Net_Banking"


def parse_method(value) -> PaymentMethod:
    """Accept a ``PaymentMethod`` or its name/value in any case (``"CARD"``, ``"net_banking"``)."""
    if isinstance(value, PaymentMethod):
        return value
    if isinstance(value, str):
        wanted = value.strip().lower()
        for method in PaymentMethod:
            if wanted in (method.value.lower(), method.name.lower()):
                return method
    raise InvalidRequest({"method": [f"Unknown payment method: {value!r}"]})


@shopcore.aggregate
class Payment:
    order_id = Identifier(required=True, unique=True)
    amount_cents = Integer(required=True, min_value=0)
    method = String(required=True, choices=PaymentMethod)
    paid_at = DateTime(required=True)

    @classmethod
    def record(cls, order, method):
        """Take payment of ``order``'s stored total."""
        method = parse_method(method)
        now = datetime.now(UTC)
        payment = cls(
            order_id=str(order.id),
            amount_cents=order.total_cents,
            method=method.value,
            paid_at=now,
        )
        payment.raise_(
            PaymentRecorded(
                payment_id=str(payment.id),
                order_id=str(order.id),
                amount_cents=payment.amount_cents,
                method=method.value,
                paid_at=now,
            )
        )
        return payment

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)
