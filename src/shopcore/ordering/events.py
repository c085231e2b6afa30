"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from shopcore.domain import shopcore


@shopcore.event(part_of="Order")
class OrderPlaced:
    """Stock was reserved for every line and the order was committed."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of line dicts, in request order
    total_cents = Integer(required=True)
    placed_at = DateTime(required=True)


@shopcore.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    changed_at = DateTime(required=True)
