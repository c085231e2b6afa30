"""Payment recording: command and handler.

The handler checks, records and commits in one unit of work: the Payment and
the order's move to Paid are stored together or not at all.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.logging import bind_event_context

from shopcore.domain import shopcore
from shopcore.ordering.order import Order, OrderStatus
from shopcore.payments.payment import Payment
from shopcore.shared.errors import DuplicatePayment, InvalidOrderState
from shopcore.shared.persistence import find, load


def existing_payment(order_id) -> Payment | None:
    payments = find(Payment, order_id=str(order_id))
    return payments[0] if payments else None


@shopcore.command(part_of="Payment")
class RecordPayment:
    order_id = Identifier(required=True)
    method = String(required=True, max_length=20)


@shopcore.command_handler(part_of=Payment)
class RecordPaymentHandler:
    @handle(RecordPayment)
    def record_payment(self, command):
        bind_event_context(order_id=str(command.order_id))
        order = load(Order, command.order_id, "Order")

        # Checked before the status: a paid order reports the duplicate
        if existing_payment(order.id) is not None:
            raise DuplicatePayment(order.id)
        if order.current_status is not OrderStatus.CREATED:
            raise InvalidOrderState(order.id, order.status)

        payment = Payment.record(order, command.method)
        order.transition_to(OrderStatus.PAID)

        current_domain.repository_for(Payment).add(payment)
        current_domain.repository_for(Order).add(order)
        return str(payment.id)
