"""Stock movements: commands and handler.

Each command is one read-check-write on one Product. The ledger dispatches
them while holding the product's lock, and the handler's unit of work commits
before ``process`` returns, so the lock covers the commit too.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain
from protean.utils.logging import bind_event_context

from shopcore.catalogue.product import Product
from shopcore.domain import shopcore
from shopcore.shared.errors import InsufficientStock
from shopcore.shared.persistence import load

logger = structlog.get_logger(__name__)


@shopcore.command(part_of="Product")
class ReserveStock:
    """Take units of a product for one order line."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@shopcore.command(part_of="Product")
class ReleaseStock:
    """Give back units taken by an earlier reservation."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@shopcore.command_handler(part_of=Product)
class StockMovementHandler:
    @handle(ReserveStock)
    def reserve_stock(self, command) -> int:
        """Returns the unit price in cents at the moment of reservation."""
        bind_event_context(product_id=str(command.product_id))
        product = load(Product, command.product_id, "Product")
        try:
            price_cents = product.reserve(command.quantity)
        except InsufficientStock:
            logger.info("Reservation refused", quantity=command.quantity, available=product.stock)
            raise

        current_domain.repository_for(Product).add(product)
        logger.debug("Stock reserved", quantity=command.quantity, remaining=product.stock)
        return price_cents

    @handle(ReleaseStock)
    def release_stock(self, command) -> int:
        bind_event_context(product_id=str(command.product_id))
        product = load(Product, command.product_id, "Product")
        product.release(command.quantity)

        current_domain.repository_for(Product).add(product)
        return product.stock
