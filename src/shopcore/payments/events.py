"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from shopcore.domain import shopcore


@shopcore.event(part_of="Payment")
class PaymentRecorded:
    """The single payment for an order was taken and the order marked Paid."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount_cents = Integer(required=True)
    method = String(required=True)
    paid_at = DateTime(required=True)
