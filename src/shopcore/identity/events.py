"""Domain events for the Customer aggregate."""

from protean.fields import DateTime, Identifier, String

from shopcore.domain import shopcore


@shopcore.event(part_of="Customer")
class CustomerRegistered:
    """A new customer was added to the directory."""

    __version__ = 1

    customer_id = Identifier(required=True)
    name = String(required=True)
    email = String(required=True)
    registered_at = DateTime(required=True)
