"""shopcore domain: order fulfillment against live inventory.

Owns customers, the product catalogue and its stock counters, orders with
their price-snapshotted lines, and the single payment applied to each order.
"""

from protean.domain import Domain

from shopcore.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
shopcore = Domain(name="shopcore")
