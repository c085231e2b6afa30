"""Shared BDD fixtures and step definitions for order fulfillment."""

from decimal import Decimal

import pytest
from pytest_bdd import given, parsers, then

from shopcore.shared.errors import DuplicatePayment, InsufficientStock, InvalidStatusTransition


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def products():
    """Products registered by the scenario, by name."""
    return {}


@pytest.fixture()
def outcome():
    """Container for the error raised by the last When step."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a registered customer "{email}"'), target_fixture="shopper")
def _(customers, email):
    return customers.register_customer(name="Scenario Shopper", email=email)


@given(parsers.cfparse('a product "{name}" with stock {stock:d} priced at {price}'))
def _(catalogue, products, name, stock, price):
    products[name] = catalogue.register_product(name=name, stock=stock, unit_price=Decimal(price))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order total is {total}"))
def _(order, total):
    assert order.total == Decimal(total)


@then(parsers.cfparse('the order status is "{status}"'))
def _(orders, order, status):
    assert orders.get_order(order.id).status == status


@then(parsers.cfparse('"{name}" has {stock:d} units in stock'))
def _(ledger, products, name, stock):
    assert ledger.stock_level(products[name].id) == stock


@then(parsers.cfparse("the payment amount is {amount}"))
def _(payment, amount):
    assert payment.amount == Decimal(amount)


@then("the payment is rejected as a duplicate")
def _(outcome):
    assert isinstance(outcome["exc"], DuplicatePayment)


@then("the order is refused for insufficient stock")
def _(outcome):
    assert isinstance(outcome["exc"], InsufficientStock)


@then("the transition is rejected")
def _(outcome):
    assert isinstance(outcome["exc"], InvalidStatusTransition)


@then("the customer has no orders")
def _(orders, shopper):
    assert orders.orders_for_customer(shopper.id) == []
