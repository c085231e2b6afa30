"""Order aggregate and its lines.

State Machine (forward only, no skipping, no way back):
    CREATED → PAID → SHIPPED → DELIVERED

The total is fixed when the order is placed, from the unit prices the ledger
handed back while reserving each line. Later catalogue price changes never
touch an existing order.
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean.fields import DateTime, HasMany, Identifier, Integer, String

from shopcore.domain import shopcore
from shopcore.ordering.events import OrderPlaced, OrderStatusChanged
from shopcore.shared.errors import InvalidRequest, InvalidStatusTransition
from shopcore.shared.money import from_cents, to_cents


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    CREATED = "Created"
    PAID = "Paid"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"


# The one status each status may move to
_NEXT_STATUS = {
    OrderStatus.CREATED: OrderStatus.PAID,
    OrderStatus.PAID: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
    OrderStatus.DELIVERED: None,  # Terminal
}


def parse_status(value) -> OrderStatus:
    """Accept an ``OrderStatus`` or its name/value in any case."""
    if isinstance(value, OrderStatus):
        return value
    if isinstance(value, str):
        wanted = value.strip().lower()
        for status in OrderStatus:
            if wanted in (status.value.lower(), status.name.lower()):
                return status
    raise InvalidRequest({"status": [f"Unknown order status: {value!r}"]})


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return _NEXT_STATUS.get(current) is requested


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@shopcore.entity(part_of="Order")
class OrderLine:
    """One requested product, with the price it was reserved at."""

    product_id = Identifier(required=True)
    position = Integer(required=True, min_value=0)
    quantity = Integer(required=True, min_value=1)
    unit_price_cents = Integer(required=True, min_value=1)

    @property
    def unit_price(self) -> Decimal:
        return from_cents(self.unit_price_cents)

    @property
    def subtotal_cents(self) -> int:
        return self.quantity * self.unit_price_cents

    @property
    def subtotal(self) -> Decimal:
        return from_cents(self.subtotal_cents)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@shopcore.aggregate
class Order:
    customer_id = Identifier(required=True)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.CREATED.value,
    )
    lines = HasMany(OrderLine)
    total_cents = Integer(required=True, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def place(cls, customer_id, reserved_lines):
        """Build a Created order from lines whose stock is already reserved.

        Args:
            customer_id: identity of an existing customer.
            reserved_lines: ``(product_id, quantity, unit_price)`` tuples in
                request order, ``unit_price`` being what the ledger returned.
        """
        now = datetime.now(UTC)
        order = cls(
            customer_id=str(customer_id),
            status=OrderStatus.CREATED.value,
            total_cents=0,
            created_at=now,
            updated_at=now,
        )

        for position, (product_id, quantity, unit_price) in enumerate(reserved_lines):
            order.add_lines(
                OrderLine(
                    product_id=str(product_id),
                    position=position,
                    quantity=quantity,
                    unit_price_cents=to_cents(unit_price, field="unit_price"),
                )
            )
        order.total_cents = sum(line.subtotal_cents for line in order.lines)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                lines=json.dumps(
                    [
                        {
                            "product_id": line.product_id,
                            "quantity": line.quantity,
                            "unit_price_cents": line.unit_price_cents,
                        }
                        for line in order.ordered_lines
                    ]
                ),
                total_cents=order.total_cents,
                placed_at=now,
            )
        )
        return order

    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def total(self) -> Decimal:
        return from_cents(self.total_cents)

    @property
    def ordered_lines(self) -> list:
        return sorted(self.lines, key=lambda line: line.position)

    def transition_to(self, requested) -> None:
        """Move one step along the chain or raise ``InvalidStatusTransition``."""
        requested = parse_status(requested)
        current = self.current_status
        if not can_transition(current, requested):
            raise InvalidStatusTransition(current, requested)

        now = datetime.now(UTC)
        self.status = requested.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=current.value,
                to_status=requested.value,
                changed_at=now,
            )
        )
