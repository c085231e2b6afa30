"""Inventory Ledger: the only writer of product stock during ordering.

Every movement is a ``ReserveStock`` or ``ReleaseStock`` command, dispatched
while holding that product's lock. The handler commits before the dispatch
returns, so two reservations against the same product are strictly ordered
and the second one sees the counter the first one left behind.

Arguments are checked before any product is looked up, so a malformed
quantity is reported as such even for an unknown product.

The ledger knows nothing about orders. Callers that reserve are responsible
for releasing what they no longer need.
"""

from decimal import Decimal

import structlog
from protean.utils.globals import current_domain

from shopcore.catalogue.product import Product, check_quantity
from shopcore.inventory.reservation import ReleaseStock, ReserveStock
from shopcore.shared.locks import product_locks
from shopcore.shared.money import from_cents
from shopcore.shared.persistence import load, require_identifier
from shopcore.utils.logging import log_context

logger = structlog.get_logger(__name__)


class InventoryLedger:
    def reserve(self, product_id, quantity) -> Decimal:
        """Decrement stock by ``quantity`` and return the unit price at this instant.

        Raises:
            InvalidRequest: ``quantity`` is not an integer of at least 1.
            NotFound: no product with ``product_id``.
            InsufficientStock: fewer than ``quantity`` units are available.
        """
        check_quantity(quantity)
        product_id = require_identifier(product_id, "Product")

        with log_context(product_id=product_id), product_locks.hold(product_id):
            price_cents = current_domain.process(
                ReserveStock(product_id=product_id, quantity=quantity),
                asynchronous=False,
            )
            logger.info("Stock reserved", quantity=quantity)

        return from_cents(price_cents)

    def release(self, product_id, quantity) -> None:
        """Give back ``quantity`` units taken by an earlier ``reserve``."""
        check_quantity(quantity)
        product_id = require_identifier(product_id, "Product")

        with log_context(product_id=product_id), product_locks.hold(product_id):
            remaining = current_domain.process(
                ReleaseStock(product_id=product_id, quantity=quantity),
                asynchronous=False,
            )
            logger.info("Stock released", quantity=quantity, remaining=remaining)

    def stock_level(self, product_id) -> int:
        return load(Product, product_id, "Product").stock
