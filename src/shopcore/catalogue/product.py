"""Product aggregate: catalogue entry plus its authoritative stock counter.

Stock Model:
    stock:            units available to reserve, never negative
    unit_price_cents: current catalogue price in cents; order lines copy it
                      at reservation time and never read it again
"""

from datetime import UTC, datetime
from decimal import Decimal

from protean.fields import DateTime, Integer, String

from shopcore.catalogue.events import ProductRegistered, StockReleased, StockReserved
from shopcore.domain import shopcore
from shopcore.shared.errors import InsufficientStock, InvalidRequest
from shopcore.shared.money import from_cents, to_cents


def check_quantity(quantity, field="quantity", minimum=1):
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < minimum:
        raise InvalidRequest({field: [f"{field.capitalize()} must be an integer of at least {minimum}"]})
    return quantity


def _check_name(name):
    if not isinstance(name, str) or not name.strip():
        raise InvalidRequest({"name": ["Product name must not be blank"]})
    return name.strip()


def _price_in_cents(unit_price):
    cents = to_cents(unit_price, field="unit_price")
    if cents <= 0:
        raise InvalidRequest({"unit_price": ["Price must be greater than 0"]})
    return cents


@shopcore.aggregate
class Product:
    name = String(required=True, max_length=255)
    stock = Integer(default=0, min_value=0)
    unit_price_cents = Integer(required=True, min_value=1)
    created_at = DateTime()
    updated_at = DateTime()

    @property
    def unit_price(self) -> Decimal:
        return from_cents(self.unit_price_cents)

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def register(cls, name, stock, unit_price):
        now = datetime.now(UTC)
        product = cls(
            name=_check_name(name),
            stock=check_quantity(stock, field="stock", minimum=0),
            unit_price_cents=_price_in_cents(unit_price),
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                name=product.name,
                stock=product.stock,
                unit_price_cents=product.unit_price_cents,
                registered_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Catalogue maintenance
    # -------------------------------------------------------------------
    def revise(self, name=None, stock=None, unit_price=None):
        """Apply a partial catalogue update; ``None`` leaves a field untouched."""
        if name is not None:
            self.name = _check_name(name)
        if stock is not None:
            self.stock = check_quantity(stock, field="stock", minimum=0)
        if unit_price is not None:
            self.unit_price_cents = _price_in_cents(unit_price)
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def reserve(self, quantity) -> int:
        """Take ``quantity`` units and return the unit price in cents at this instant."""
        check_quantity(quantity)

        if self.stock < quantity:
            raise InsufficientStock(self.id, available=self.stock, requested=quantity)

        previous = self.stock
        now = datetime.now(UTC)
        self.stock = previous - quantity
        self.updated_at = now

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                quantity=quantity,
                unit_price_cents=self.unit_price_cents,
                previous_stock=previous,
                new_stock=self.stock,
                reserved_at=now,
            )
        )
        return self.unit_price_cents

    def release(self, quantity) -> None:
        """Return ``quantity`` previously reserved units to the counter."""
        check_quantity(quantity)

        previous = self.stock
        now = datetime.now(UTC)
        self.stock = previous + quantity
        self.updated_at = now

        self.raise_(
            StockReleased(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
                released_at=now,
            )
        )
