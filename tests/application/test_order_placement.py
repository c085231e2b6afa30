"""Application tests for placing orders, including every compensation path."""

import itertools
from decimal import Decimal
from unittest import mock

import pytest
import structlog
from protean.core.repository import BaseRepository

from shopcore.ordering.order import Order, OrderStatus
from shopcore.shared.errors import DeadlineExceeded, InsufficientStock, InvalidRequest, NotFound

_add = BaseRepository.add


def _order_commit_fails(repository, item):
    if isinstance(item, Order):
        raise RuntimeError("store down")
    return _add(repository, item)


def _failing_order_store():
    return mock.patch.object(BaseRepository, "add", autospec=True, side_effect=_order_commit_fails)


class TestPlaceOrder:
    def test_order_is_created_with_total(self, orders, ledger, customer, make_product):
        product = make_product(stock=5, unit_price=Decimal("10.00"))

        order = orders.place_order(customer.id, [{"product_id": product.id, "quantity": 3}])

        assert order.status == OrderStatus.CREATED.value
        assert order.total == Decimal("30.00")
        assert ledger.stock_level(product.id) == 2

    def test_order_is_persisted(self, orders, customer, make_product):
        widget = make_product(name="Widget", stock=5, unit_price=Decimal("10.00"))
        gadget = make_product(name="Gadget", stock=5, unit_price=Decimal("2.50"))

        placed = orders.place_order(customer.id, [(widget.id, 1), (gadget.id, 4)])
        stored = orders.get_order(placed.id)

        assert stored.total == Decimal("20.00")
        assert stored.customer_id == str(customer.id)
        assert [(line.product_id, line.quantity) for line in stored.ordered_lines] == [
            (widget.id, 1),
            (gadget.id, 4),
        ]

    def test_price_is_fixed_at_order_time(self, orders, catalogue, customer, make_product):
        product = make_product(stock=5, unit_price=Decimal("10.00"))
        placed = orders.place_order(customer.id, [(product.id, 2)])

        catalogue.update_product(product.id, unit_price=Decimal("99.00"))

        stored = orders.get_order(placed.id)
        assert stored.total == Decimal("20.00")
        assert stored.ordered_lines[0].unit_price == Decimal("10.00")

    def test_unknown_customer(self, orders, ledger, make_product):
        product = make_product(stock=5)
        with pytest.raises(NotFound) as exc_info:
            orders.place_order("missing", [(product.id, 1)])
        assert exc_info.value.entity == "Customer"
        assert ledger.stock_level(product.id) == 5

    def test_empty_items_rejected(self, orders, customer):
        with pytest.raises(InvalidRequest) as exc_info:
            orders.place_order(customer.id, [])
        assert "items" in exc_info.value.messages

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", None])
    def test_malformed_quantity_rejected_before_reserving(self, orders, ledger, customer, make_product, quantity):
        product = make_product(stock=5)
        with pytest.raises(InvalidRequest):
            orders.place_order(customer.id, [(product.id, 1), (product.id, quantity)])
        assert ledger.stock_level(product.id) == 5

    def test_missing_product_id_rejected(self, orders, customer):
        with pytest.raises(InvalidRequest):
            orders.place_order(customer.id, [{"quantity": 1}])


class TestCompensation:
    def test_insufficient_stock_releases_earlier_lines(self, orders, ledger, customer, make_product):
        plenty = make_product(name="Plenty", stock=5)
        scarce = make_product(name="Scarce", stock=1)

        with pytest.raises(InsufficientStock):
            orders.place_order(customer.id, [(plenty.id, 2), (scarce.id, 3)])

        assert ledger.stock_level(plenty.id) == 5
        assert ledger.stock_level(scarce.id) == 1
        assert orders.orders_for_customer(customer.id) == []

    def test_unknown_product_releases_earlier_lines(self, orders, ledger, customer, make_product):
        product = make_product(stock=5)

        with pytest.raises(NotFound):
            orders.place_order(customer.id, [(product.id, 2), ("missing", 1)])

        assert ledger.stock_level(product.id) == 5

    def test_same_product_twice_is_fully_released(self, orders, ledger, customer, make_product):
        product = make_product(stock=3)

        with pytest.raises(InsufficientStock):
            orders.place_order(customer.id, [(product.id, 2), (product.id, 2)])

        assert ledger.stock_level(product.id) == 3

    def test_persistence_failure_releases_everything(self, orders, ledger, customer, make_product):
        first = make_product(name="First", stock=5)
        second = make_product(name="Second", stock=5)

        with _failing_order_store():
            with pytest.raises(RuntimeError, match="store down"):
                orders.place_order(customer.id, [(first.id, 1), (second.id, 2)])

        assert ledger.stock_level(first.id) == 5
        assert ledger.stock_level(second.id) == 5
        assert orders.orders_for_customer(customer.id) == []

    def test_releases_run_newest_first(self, orders, ledger, customer, make_product):
        first = make_product(name="First", stock=5)
        second = make_product(name="Second", stock=5)

        with mock.patch.object(ledger, "release", wraps=ledger.release) as release:
            with _failing_order_store():
                with pytest.raises(RuntimeError):
                    orders.place_order(customer.id, [(first.id, 1), (second.id, 2)])

        assert release.call_args_list == [mock.call(second.id, 2), mock.call(first.id, 1)]

    def test_failed_release_is_logged_and_original_error_kept(self, orders, ledger, customer, make_product):
        first = make_product(name="First", stock=5)
        second = make_product(name="Second", stock=5)
        scarce = make_product(name="Scarce", stock=0)

        def _release(product_id, quantity):
            if product_id == second.id:
                raise RuntimeError("store down")
            return original_release(product_id, quantity)

        original_release = ledger.release
        with (
            mock.patch.object(ledger, "release", side_effect=_release),
            mock.patch("shopcore.ordering.lifecycle.logger") as logger,
        ):
            with pytest.raises(InsufficientStock):
                orders.place_order(customer.id, [(first.id, 1), (second.id, 2), (scarce.id, 1)])

        logger.critical.assert_called_once()
        args, kwargs = logger.critical.call_args
        assert args == ("stock_release_failed",)
        assert kwargs["product_id"] == second.id
        assert kwargs["quantity"] == 2

        # The other release still ran; the failed one stays short
        assert ledger.stock_level(first.id) == 5
        assert ledger.stock_level(second.id) == 3


class TestDeadline:
    def test_expired_before_start(self, orders, ledger, customer, make_product):
        product = make_product(stock=5)

        with pytest.raises(DeadlineExceeded):
            orders.place_order(customer.id, [(product.id, 1)], timeout=0)

        assert ledger.stock_level(product.id) == 5

    def test_expiry_mid_way_releases_taken_stock(self, orders, ledger, customer, make_product):
        first = make_product(name="First", stock=5)
        second = make_product(name="Second", stock=5)
        clock = itertools.chain([0.0, 0.0], itertools.repeat(10.0))

        with mock.patch("shopcore.ordering.lifecycle.time.monotonic", side_effect=lambda: next(clock)):
            with pytest.raises(DeadlineExceeded) as exc_info:
                orders.place_order(customer.id, [(first.id, 1), (second.id, 1)], timeout=5)

        assert exc_info.value.timeout == 5
        assert ledger.stock_level(first.id) == 5
        assert ledger.stock_level(second.id) == 5

    def test_generous_deadline(self, orders, customer, make_product):
        product = make_product(stock=5)
        order = orders.place_order(customer.id, [(product.id, 1)], timeout=60)
        assert order.status == OrderStatus.CREATED.value


class TestLogContext:
    def test_customer_is_bound_while_reserving(self, orders, ledger, customer, make_product):
        product = make_product(stock=5)
        seen = []
        reserve = ledger.reserve

        def _reserve(product_id, quantity):
            seen.append(structlog.contextvars.get_contextvars())
            return reserve(product_id, quantity)

        with mock.patch.object(ledger, "reserve", side_effect=_reserve):
            orders.place_order(customer.id, [(product.id, 1)])

        assert seen == [{"customer_id": str(customer.id)}]
        assert structlog.contextvars.get_contextvars() == {}

    def test_context_is_cleared_after_a_failed_placement(self, orders, customer, make_product):
        product = make_product(stock=0)

        with pytest.raises(InsufficientStock):
            orders.place_order(customer.id, [(product.id, 1)])

        assert structlog.contextvars.get_contextvars() == {}
