import pytest

from marketplace.order.order import Buyer, Order, OrderFees, OrderLine, ShippingAddress


def _build_order(buyer_id="buyer-001", buyer_region="Dhaka", seller_id="seller-001", seller_region="Rajshahi"):
    line = OrderLine(
        product_id="product-001",
        title="Miniket Rice",
        unit="kg",
        quantity=5,
        price=50.0,
        seller_id=seller_id,
        seller_name="Karim",
        seller_region=seller_region,
    )
    return Order.place(
        order_number="ORD-2026-ABCDEF12",
        buyer=Buyer(buyer_id=buyer_id, email="buyer@example.com", name="Rahim", region=buyer_region),
        lines=[line],
        subtotal=250.0,
        fees=OrderFees(delivery=300.0, platform=5.0, agent_commission=12.5),
        total_amount=555.0,
        shipping_address=ShippingAddress(address="House 12, Dhanmondi", district="Dhaka", region="Dhaka"),
        actor_role="consumer",
    )


@pytest.fixture()
def order():
    return _build_order()


@pytest.fixture()
def build_order():
    return _build_order
