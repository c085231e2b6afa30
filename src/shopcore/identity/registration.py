"""Customer directory: register, revise, look up and delete customers.

A customer who has placed orders cannot be deleted; the orders would point at
nobody.
"""

import structlog
from protean.exceptions import ValidationError

from shopcore.identity.customer import Customer, normalize_email
from shopcore.ordering.order import Order
from shopcore.shared.errors import CustomerHasOrders, DuplicateCustomer
from shopcore.shared.locks import email_locks
from shopcore.shared.persistence import all_of, discard, find, load, persist

logger = structlog.get_logger(__name__)


class CustomerRegistry:
    def register_customer(self, name, email) -> Customer:
        customer = Customer.register(name=name, email=email)

        with email_locks.hold(customer.email):
            if find(Customer, email=customer.email):
                logger.warning("Duplicate customer registration", email=customer.email)
                raise DuplicateCustomer(customer.email)
            self._persist(customer)

        logger.info("Customer registered", customer_id=str(customer.id))
        return customer

    def update_customer(self, customer_id, name=None, email=None) -> Customer:
        customer = self.get_customer(customer_id)
        new_email = None if email is None else normalize_email(email)

        if new_email is None or new_email == customer.email:
            customer.revise(name=name)
            self._persist(customer)
        else:
            with email_locks.hold(new_email):
                if find(Customer, email=new_email):
                    raise DuplicateCustomer(new_email)
                customer.revise(name=name, email=new_email)
                self._persist(customer)

        logger.info("Customer updated", customer_id=str(customer.id))
        return customer

    def get_customer(self, customer_id) -> Customer:
        return load(Customer, customer_id, "Customer")

    def list_customers(self) -> list[Customer]:
        """Customers in registration order."""
        return all_of(Customer, order_by=["registered_at", "id"])

    def delete_customer(self, customer_id) -> None:
        """Remove a customer who has never placed an order.

        Raises:
            NotFound: no customer with ``customer_id``.
            CustomerHasOrders: orders reference the customer.
        """
        customer = self.get_customer(customer_id)

        with email_locks.hold(customer.email):
            if find(Order, customer_id=str(customer.id)):
                logger.warning("Refusing to delete customer with orders", customer_id=str(customer.id))
                raise CustomerHasOrders(customer.id)
            discard(customer)

        logger.info("Customer deleted", customer_id=str(customer.id))

    def _persist(self, customer):
        # Collisions on the unique email field surface as ValidationError
        try:
            persist(customer)
        except ValidationError as exc:
            if "email" in (exc.messages or {}):
                raise DuplicateCustomer(customer.email) from exc
            raise
