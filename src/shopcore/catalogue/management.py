"""Catalogue maintenance: register, revise, look up and delete products.

Updates take the same per-product lock as the inventory ledger, so a stock
correction never interleaves with a reservation on the same product.
"""

import structlog

from shopcore.catalogue.product import Product
from shopcore.ordering.order import OrderLine
from shopcore.shared.errors import ProductInUse
from shopcore.shared.locks import product_locks
from shopcore.shared.persistence import all_of, discard, find, load, persist

logger = structlog.get_logger(__name__)


class Catalogue:
    def register_product(self, name, stock, unit_price) -> Product:
        product = Product.register(name=name, stock=stock, unit_price=unit_price)
        persist(product)

        logger.info(
            "Product registered",
            product_id=str(product.id),
            stock=product.stock,
            unit_price=str(product.unit_price),
        )
        return product

    def update_product(self, product_id, name=None, stock=None, unit_price=None) -> Product:
        with product_locks.hold(product_id):
            product = self.get_product(product_id)
            product.revise(name=name, stock=stock, unit_price=unit_price)
            persist(product)

        logger.info("Product updated", product_id=str(product.id), stock=product.stock)
        return product

    def get_product(self, product_id) -> Product:
        return load(Product, product_id, "Product")

    def list_products(self) -> list[Product]:
        """Products in registration order."""
        return all_of(Product, order_by=["created_at", "id"])

    def delete_product(self, product_id) -> None:
        with product_locks.hold(product_id):
            product = self.get_product(product_id)
            if find(OrderLine, product_id=str(product.id)):
                logger.warning("Refusing to delete product in use", product_id=str(product.id))
                raise ProductInUse(product.id)
            discard(product)

        logger.info("Product deleted", product_id=str(product_id))
