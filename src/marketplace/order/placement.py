"""Order placement: the checkout command and handler.

Checkout is all or nothing. Duplicate lines are merged, then every line's
stock is reserved on the loaded products, at no less than each product's
minimum order quantity. If any reservation fails, the lines already reserved
are released and the first failure is raised; nothing is persisted. Only
after every line is reserved are the products, the order and (when the lines
came from the cart) the emptied cart saved.
"""

import json
import uuid
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.domain import marketplace
from marketplace.order.order import Buyer, Order, OrderFees, OrderLine, PaymentMethod, ShippingAddress
from marketplace.order.pricing import quote
from marketplace.order.stock import reserve_all
from marketplace.product.product import Product
from marketplace.shared.errors import InvalidInput
from marketplace.user.user import User

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class PlaceOrder:
    buyer_id = Identifier(required=True)
    items = Text()  # JSON array of {product_id, quantity}; empty means "use the cart"
    from_cart = Boolean(default=False)
    shipping_address = Text(required=True)  # JSON object
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)
    notes = Text()


def generate_order_number(now=None):
    now = now or datetime.now(UTC)
    return f"ORD-{now.year}-{uuid.uuid4().hex[:8].upper()}"


def merge_lines(entries):
    """Sum quantities per product, keeping first-seen order."""
    merged = {}
    for entry in entries:
        if not isinstance(entry, dict):
            raise InvalidInput("Each item needs a product_id and a quantity", field="items")
        product_id = entry.get("product_id")
        quantity = entry.get("quantity")
        if not product_id or not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise InvalidInput("Each item needs a product_id and a positive quantity", field="items")
        merged[str(product_id)] = merged.get(str(product_id), 0) + quantity
    return merged


def _parse_shipping_address(raw):
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        raise InvalidInput("shipping_address must be a JSON object", field="shipping_address")
    if not isinstance(data, dict) or not data.get("address"):
        raise InvalidInput("A shipping address is required", field="shipping_address")
    return ShippingAddress(
        recipient_name=data.get("recipient_name"),
        phone=data.get("phone"),
        address=data["address"],
        district=data.get("district"),
        region=data.get("region"),
    )


def _requested_lines(command, cart):
    if command.items:
        try:
            entries = json.loads(command.items)
        except ValueError:
            raise InvalidInput("items must be a JSON array", field="items")
        if not isinstance(entries, list):
            raise InvalidInput("items must be a JSON array", field="items")
    elif command.from_cart and cart is not None:
        entries = [{"product_id": str(i.product_id), "quantity": i.quantity} for i in cart.items]
    else:
        entries = []

    if not entries:
        raise InvalidInput("No items in order", field="items")
    return merge_lines(entries)


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        buyer = current_domain.repository_for(User).get(command.buyer_id)
        cart_repo = current_domain.repository_for(Cart)
        # The cart is read, and later cleared, only when it supplies the lines
        cart = cart_repo.for_owner(buyer.email) if command.from_cart and not command.items else None

        quantities = _requested_lines(command, cart)
        shipping_address = _parse_shipping_address(command.shipping_address)

        reserved = reserve_all(quantities)

        lines = [
            OrderLine(
                product_id=product.id,
                title=product.title,
                unit=product.unit,
                quantity=quantity,
                price=price,
                seller_id=product.seller.seller_id,
                seller_name=product.seller.name,
                seller_region=product.seller.region,
            )
            for product, quantity, price in reserved
        ]
        fees = quote(sum(line.line_total for line in lines))

        order = Order.place(
            order_number=generate_order_number(),
            buyer=Buyer(buyer_id=buyer.id, email=buyer.email, name=buyer.name, region=buyer.region),
            lines=lines,
            subtotal=fees.subtotal,
            fees=OrderFees(delivery=fees.delivery, platform=fees.platform, agent_commission=fees.agent_commission),
            total_amount=fees.total_amount,
            shipping_address=shipping_address,
            payment_method=command.payment_method,
            notes=command.notes,
            actor_role=buyer.role,
        )

        product_repo = current_domain.repository_for(Product)
        for product, _, _ in reserved:
            product_repo.add(product)
        current_domain.repository_for(Order).add(order)

        if cart is not None:
            cart.clear()
            cart_repo.add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            buyer_id=str(buyer.id),
            lines=len(lines),
            total_amount=order.total_amount,
        )
        return str(order.id)
