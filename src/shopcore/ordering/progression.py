"""Order status changes: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.logging import bind_event_context

from shopcore.domain import shopcore
from shopcore.ordering.order import Order
from shopcore.shared.persistence import load


@shopcore.command(part_of="Order")
class TransitionOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True)


@shopcore.command_handler(part_of=Order)
class OrderProgressionHandler:
    @handle(TransitionOrderStatus)
    def transition_status(self, command):
        bind_event_context(order_id=str(command.order_id))
        order = load(Order, command.order_id, "Order")
        previous = order.status
        order.transition_to(command.status)

        current_domain.repository_for(Order).add(order)
        return previous
