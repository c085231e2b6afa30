"""Customer aggregate: the party an order is placed for.

Orders refer to customers by id only; the directory never reaches into orders.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, String

from shopcore.domain import shopcore
from shopcore.identity.events import CustomerRegistered
from shopcore.shared.errors import InvalidRequest


def normalize_email(email) -> str:
    """Lower-case and strip an email, rejecting obviously malformed input."""
    if not isinstance(email, str) or not email.strip():
        raise InvalidRequest({"email": ["Email is required"]})

    normalized = email.strip().lower()
    local_part, _, domain_part = normalized.partition("@")
    if not local_part or not domain_part or "@" in domain_part or " " in normalized:
        raise InvalidRequest({"email": [f"Invalid email format: {email!r}"]})
    return normalized


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidRequest({"name": ["Name is required"]})
    return name.strip()


@shopcore.aggregate
class Customer:
    name = String(required=True, max_length=255)
    email = String(required=True, max_length=254, unique=True)
    registered_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, name, email):
        now = datetime.now(UTC)
        customer = cls(
            name=_clean_name(name),
            email=normalize_email(email),
            registered_at=now,
            updated_at=now,
        )
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer.id),
                name=customer.name,
                email=customer.email,
                registered_at=now,
            )
        )
        return customer

    def revise(self, name=None, email=None):
        """Apply a partial update; ``None`` leaves a field untouched."""
        if name is not None:
            self.name = _clean_name(name)
        if email is not None:
            self.email = normalize_email(email)
        self.updated_at = datetime.now(UTC)
