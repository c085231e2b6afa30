"""Payment Processor: apply exactly one payment to a Created order.

``RecordPayment`` is dispatched under the order's lock, the same lock
``transition_status`` takes, and its handler commits before the lock is
released. The existence check, the status check and the write therefore see
one consistent order.

A repeated ``pay`` for an order that already has a payment always reports
``DuplicatePayment``, even though that order is no longer Created.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from shopcore.ordering.lifecycle import OrderLifecycleManager
from shopcore.payments.payment import Payment, parse_method
from shopcore.payments.recording import RecordPayment, existing_payment
from shopcore.shared.errors import DuplicatePayment, InvalidOrderState
from shopcore.shared.locks import order_locks
from shopcore.shared.persistence import all_of, load, require_identifier
from shopcore.utils.logging import log_context

logger = structlog.get_logger(__name__)


class PaymentProcessor:
    def __init__(self, orders: OrderLifecycleManager | None = None):
        self.orders = orders or OrderLifecycleManager()

    def pay(self, order_id, method) -> Payment:
        """Record payment of the order's stored total and mark it Paid.

        Raises:
            NotFound: no order with ``order_id``.
            InvalidRequest: ``method`` is not a known payment method.
            DuplicatePayment: the order has already been paid.
            InvalidOrderState: the order is not Created.
        """
        order_id = require_identifier(order_id, "Order")

        with log_context(order_id=order_id), order_locks.hold(order_id):
            self.orders.get_order(order_id)
            method = parse_method(method)

            try:
                payment_id = current_domain.process(
                    RecordPayment(order_id=order_id, method=method.value),
                    asynchronous=False,
                )
            except (DuplicatePayment, InvalidOrderState) as exc:
                logger.warning("Payment refused", method=method.value, reason=type(exc).__name__)
                raise
            except ValidationError as exc:
                # A payment for this order committed by another path first
                if "order_id" in (exc.messages or {}):
                    logger.warning("Payment refused", method=method.value, reason="DuplicatePayment")
                    raise DuplicatePayment(order_id) from exc
                raise

            payment = self.get_payment(payment_id)
            logger.info(
                "Payment recorded",
                payment_id=str(payment.id),
                amount=str(payment.amount),
                method=payment.method,
            )
        return payment

    def get_payment(self, payment_id) -> Payment:
        return load(Payment, payment_id, "Payment")

    def payment_for_order(self, order_id) -> Payment | None:
        return existing_payment(order_id)

    def list_payments(self) -> list[Payment]:
        """Payments oldest first."""
        return all_of(Payment, order_by=["paid_at", "id"])
