"""Domain events for the Product aggregate.

Stock movements carry both the previous and the new counter so the event
stream alone is enough to audit the ledger.
"""

from protean.fields import DateTime, Identifier, Integer, String

from shopcore.domain import shopcore


@shopcore.event(part_of="Product")
class ProductRegistered:
    """A product was added to the catalogue with its opening stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    stock = Integer(required=True)
    unit_price_cents = Integer(required=True)
    registered_at = DateTime(required=True)


@shopcore.event(part_of="Product")
class StockReserved:
    """Stock was taken for one order line."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price_cents = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    reserved_at = DateTime(required=True)


@shopcore.event(part_of="Product")
class StockReleased:
    """Previously reserved stock was returned to the counter."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    released_at = DateTime(required=True)
