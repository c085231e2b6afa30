"""Order Lifecycle Manager: place orders against live stock and advance them.

Placing an order reserves each requested line through the inventory ledger,
in request order, remembering what it took. Only then is ``PlaceOrder``
dispatched to commit the order. If anything goes wrong before that commit (a
missing product, too little stock, the caller's deadline, the commit itself)
everything taken so far is given back, newest first, and the original error
is raised.

A release that fails during that unwind cannot be retried from here. It is
logged at CRITICAL as ``stock_release_failed`` so the counter can be corrected
by hand, and the remaining releases still run.

Each reservation commits on its own, so ``place_order`` must not be called
inside an open ``UnitOfWork``: Protean would fold every reservation into that
outer unit and commit them after the product locks were released.
"""

import json
import time

import structlog
from protean.utils.globals import current_domain

from shopcore.identity.registration import CustomerRegistry
from shopcore.inventory.ledger import InventoryLedger
from shopcore.ordering.order import Order, parse_status
from shopcore.ordering.placement import PlaceOrder
from shopcore.ordering.progression import TransitionOrderStatus
from shopcore.shared.errors import DeadlineExceeded, InvalidRequest
from shopcore.shared.locks import order_locks
from shopcore.shared.money import to_cents
from shopcore.shared.persistence import all_of, find, load, require_identifier
from shopcore.utils.logging import log_context

logger = structlog.get_logger(__name__)


def _validate_items(items) -> list[tuple[str, int]]:
    if not items:
        raise InvalidRequest({"items": ["An order needs at least one item"]})

    requested = []
    for index, item in enumerate(items):
        if isinstance(item, dict):
            product_id, quantity = item.get("product_id"), item.get("quantity")
        else:
            try:
                product_id, quantity = item
            except (TypeError, ValueError):
                raise InvalidRequest({"items": [f"Item {index} must be a product id and a quantity"]}) from None

        if product_id is None or str(product_id).strip() == "":
            raise InvalidRequest({"items": [f"Item {index} has no product id"]})
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidRequest({"items": [f"Item {index} quantity must be a positive integer"]})

        requested.append((str(product_id), quantity))
    return requested


class OrderLifecycleManager:
    def __init__(self, ledger: InventoryLedger | None = None, customers: CustomerRegistry | None = None):
        self.ledger = ledger or InventoryLedger()
        self.customers = customers or CustomerRegistry()

    # -------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------
    def place_order(self, customer_id, items, timeout: float | None = None) -> Order:
        """Reserve stock for ``items`` and commit a Created order.

        Args:
            customer_id: identity of a registered customer.
            items: sequence of ``{"product_id": ..., "quantity": ...}`` dicts
                or ``(product_id, quantity)`` pairs.
            timeout: seconds the caller is willing to wait, or ``None``.
        """
        customer = self.customers.get_customer(customer_id)
        requested = _validate_items(items)
        deadline = None if timeout is None else time.monotonic() + timeout

        with log_context(customer_id=customer.id):
            reserved = []
            try:
                for product_id, quantity in requested:
                    self._check_deadline(deadline, timeout)
                    unit_price = self.ledger.reserve(product_id, quantity)
                    reserved.append((product_id, quantity, unit_price))

                self._check_deadline(deadline, timeout)
                order_id = current_domain.process(
                    PlaceOrder(customer_id=str(customer.id), lines=self._encode_lines(reserved)),
                    asynchronous=False,
                )
            except Exception as exc:
                logger.warning(
                    "Order placement failed, releasing reserved stock",
                    reserved_lines=len(reserved),
                    error=type(exc).__name__,
                )
                self._compensate(reserved)
                raise

            order = self.get_order(order_id)
            logger.info(
                "Order placed",
                order_id=str(order.id),
                lines=len(reserved),
                total=str(order.total),
            )
        return order

    @staticmethod
    def _encode_lines(reserved) -> str:
        return json.dumps(
            [
                {"product_id": product_id, "quantity": quantity, "unit_price_cents": to_cents(unit_price)}
                for product_id, quantity, unit_price in reserved
            ]
        )

    def _check_deadline(self, deadline, timeout):
        if deadline is not None and time.monotonic() >= deadline:
            raise DeadlineExceeded("place_order", timeout)

    def _compensate(self, reserved):
        for product_id, quantity, _ in reversed(reserved):
            try:
                self.ledger.release(product_id, quantity)
            except Exception as exc:
                logger.critical(
                    "stock_release_failed",
                    product_id=product_id,
                    quantity=quantity,
                    error=str(exc),
                )

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def transition_status(self, order_id, new_status) -> Order:
        requested = parse_status(new_status)
        order_id = require_identifier(order_id, "Order")

        with log_context(order_id=order_id), order_locks.hold(order_id):
            previous = current_domain.process(
                TransitionOrderStatus(order_id=order_id, status=requested.value),
                asynchronous=False,
            )
            order = self.get_order(order_id)
            logger.info("Order status changed", from_status=previous, to_status=order.status)

        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, order_id) -> Order:
        return load(Order, order_id, "Order")

    def list_orders(self) -> list[Order]:
        """Orders oldest first."""
        return all_of(Order, order_by=["created_at", "id"])

    def orders_by_status(self, status) -> list[Order]:
        return find(Order, status=parse_status(status).value)

    def orders_for_customer(self, customer_id) -> list[Order]:
        return find(Order, customer_id=str(customer_id))
