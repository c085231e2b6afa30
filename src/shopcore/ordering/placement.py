"""Order placement: command and handler.

By the time ``PlaceOrder`` is dispatched every line's stock is already
reserved and priced. The handler only builds the order and commits it, so a
failure here leaves the caller holding the reservations it must give back.
"""

import json

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain
from protean.utils.logging import bind_event_context

from shopcore.domain import shopcore
from shopcore.ordering.order import Order
from shopcore.shared.money import from_cents


@shopcore.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: [{"product_id", "quantity", "unit_price_cents"}], in request order


@shopcore.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        bind_event_context(customer_id=str(command.customer_id))
        lines = json.loads(command.lines) if isinstance(command.lines, str) else command.lines

        order = Order.place(
            customer_id=command.customer_id,
            reserved_lines=[
                (line["product_id"], line["quantity"], from_cents(line["unit_price_cents"])) for line in lines
            ],
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
