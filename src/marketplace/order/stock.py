"""Moving catalogue stock for orders."""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from marketplace.product.product import Product
from marketplace.shared.errors import BelowMinimumOrder, NotFoundError

logger = structlog.get_logger(__name__)


def reserve_all(quantities):
    """Reserve every line or none.

    ``quantities`` maps product id to quantity. Returns
    ``[(product, quantity, unit_price)]`` with the products still unsaved.
    On the first failure the lines already reserved are released and the
    error is raised.
    """
    product_repo = current_domain.repository_for(Product)
    reserved = []
    try:
        for product_id, quantity in quantities.items():
            try:
                product = product_repo.get(product_id)
            except ObjectNotFoundError:
                raise NotFoundError(f"Product {product_id} not found", field="product_id")
            if quantity < (product.minimum_order_quantity or 1):
                raise BelowMinimumOrder(
                    f"Minimum order quantity for {product.title} is {product.minimum_order_quantity}"
                )
            price = product.reserve(quantity)
            reserved.append((product, quantity, price))
    except ValidationError:
        for product, quantity, _ in reserved:
            product.release(quantity)
        logger.warning("Checkout failed, reservations released", released=len(reserved))
        raise
    return reserved


def release_lines(order):
    """Put every line of ``order`` back into stock. Returns the released product ids."""
    product_repo = current_domain.repository_for(Product)
    released = []
    for line in order.items:
        try:
            product = product_repo.get(line.product_id)
        except ObjectNotFoundError:
            # The listing was deleted after the order was placed
            logger.warning("Stock not released, product missing", order_id=str(order.id), product_id=str(line.product_id))
            continue
        product.release(line.quantity)
        product_repo.add(product)
        released.append(str(line.product_id))

    logger.info("Stock released", order_id=str(order.id), products=len(released))
    return released
