"""Error kinds raised by the shopcore operations.

Every error extends one of Protean's exceptions, so anything that already maps
``ObjectNotFoundError``, ``ValidationError`` and ``InvalidOperationError`` to
client responses handles these too. Each one carries a ``messages`` dict of
``field -> [message, ...]``. Protean only sets ``messages`` on
``ValidationError``; ``_WithMessages`` adds it to the other two bases.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError


class _WithMessages:
    def __init__(self, messages: dict[str, list[str]]):
        self.messages = messages
        super().__init__(messages)

    def __str__(self) -> str:
        return f"{dict(self.messages)}"


class NotFound(_WithMessages, ObjectNotFoundError):
    """A customer, product, order or payment does not exist."""

    def __init__(self, entity: str, identifier):
        self.entity = entity
        self.identifier = str(identifier)
        super().__init__({"_entity": [f"{entity} with id `{identifier}` does not exist"]})


class InvalidRequest(ValidationError):
    """The caller supplied something the core cannot act on."""


class InsufficientStock(ValidationError):
    def __init__(self, product_id, available: int, requested: int):
        self.product_id = str(product_id)
        self.available = available
        self.requested = requested
        super().__init__(
            {
                "quantity": [
                    f"Insufficient stock for product {product_id}: {available} available, {requested} requested"
                ]
            }
        )


class InvalidStatusTransition(ValidationError):
    """The requested status does not directly follow the current one."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        current_name = getattr(current, "value", current)
        requested_name = getattr(requested, "value", requested)
        super().__init__({"status": [f"Cannot transition from {current_name} to {requested_name}"]})


class DuplicateCustomer(ValidationError):
    def __init__(self, email: str):
        self.email = email
        super().__init__({"email": [f"Customer already exists with email {email}"]})


class InvalidOrderState(_WithMessages, InvalidOperationError):
    """Payment was attempted against an order that is no longer Created."""

    def __init__(self, order_id, status):
        self.order_id = str(order_id)
        self.status = status
        super().__init__({"status": [f"Payment cannot be processed. Order {order_id} is {status}"]})


class DuplicatePayment(_WithMessages, InvalidOperationError):
    def __init__(self, order_id):
        self.order_id = str(order_id)
        super().__init__({"order_id": [f"Payment already exists for order {order_id}"]})


class ProductInUse(_WithMessages, InvalidOperationError):
    def __init__(self, product_id):
        self.product_id = str(product_id)
        super().__init__({"product_id": [f"Product {product_id} is referenced by ordered items"]})


class CustomerHasOrders(_WithMessages, InvalidOperationError):
    def __init__(self, customer_id):
        self.customer_id = str(customer_id)
        super().__init__({"customer_id": [f"Customer {customer_id} has placed orders"]})


class DeadlineExceeded(_WithMessages, InvalidOperationError):
    """The caller's deadline for the operation passed before it completed."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__({"_deadline": [f"{operation} did not complete within {timeout} seconds"]})
