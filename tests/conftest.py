import os
from decimal import Decimal
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/concurrency/" in test_path:
            item.add_marker(pytest.mark.concurrency)


@pytest.fixture(scope="session")
def shopcore_bed():
    from shopcore.domain import shopcore

    bed = DomainFixture(shopcore)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(shopcore_bed):
    # Resets providers, brokers and the event store on exit
    with shopcore_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
@pytest.fixture()
def catalogue():
    from shopcore.catalogue.management import Catalogue

    return Catalogue()


@pytest.fixture()
def customers():
    from shopcore.identity.registration import CustomerRegistry

    return CustomerRegistry()


@pytest.fixture()
def ledger():
    from shopcore.inventory.ledger import InventoryLedger

    return InventoryLedger()


@pytest.fixture()
def orders(ledger, customers):
    from shopcore.ordering.lifecycle import OrderLifecycleManager

    return OrderLifecycleManager(ledger=ledger, customers=customers)


@pytest.fixture()
def payments(orders):
    from shopcore.payments.processor import PaymentProcessor

    return PaymentProcessor(orders=orders)


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer(customers):
    return customers.register_customer(name="Ana Lima", email="ana@example.com")


@pytest.fixture()
def make_product(catalogue):
    def _make(name="Widget", stock=5, unit_price=Decimal("10.00")):
        return catalogue.register_product(name=name, stock=stock, unit_price=unit_price)

    return _make
