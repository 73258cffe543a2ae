import json

import pytest
from protean import current_domain

from marketplace.order.placement import PlaceOrder


@pytest.fixture()
def place_order(make_user, make_product, shipping_address):
    """Place an order for ``quantity`` units of a fresh product. Returns ``(order_id, buyer, product)``."""

    def _place(quantity=5, buyer=None, product=None):
        buyer = buyer or make_user()
        product = product or make_product()
        order_id = current_domain.process(
            PlaceOrder(
                buyer_id=buyer.id,
                items=json.dumps([{"product_id": product.id, "quantity": quantity}]),
                shipping_address=json.dumps(shipping_address),
            ),
            asynchronous=False,
        )
        return order_id, buyer, product

    return _place
