"""Order aggregate: created at checkout, driven through two state axes.

``status`` is the commercial outcome: pending until it ends as completed,
returned or cancelled. ``delivery_status`` tracks the parcel and only ever
moves forward. Every transition appends an entry to the timeline.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from marketplace.domain import marketplace
from marketplace.order.events import OrderCompleted, OrderDeliveryUpdated, OrderPlaced, OrderReturned
from marketplace.shared.errors import AlreadyTerminal, InvalidTransition, NotCancellable


class OrderStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class DeliveryStatus(Enum):
    PACKAGING = "packaging"
    TO_AGENT = "to_agent"
    ON_THE_WAY = "on_the_way"
    REACHED = "reached"
    DELIVERED = "delivered"


class PaymentMethod(Enum):
    CASH = "cash"
    STRIPE = "stripe"
    SSLCOMMERZ = "sslcommerz"


# Delivery states in the only order they may be visited
DELIVERY_SEQUENCE = [s.value for s in DeliveryStatus]

TERMINAL_STATUSES = {OrderStatus.COMPLETED.value, OrderStatus.RETURNED.value, OrderStatus.CANCELLED.value}


def delivery_rank(delivery_status):
    return DELIVERY_SEQUENCE.index(delivery_status)


@marketplace.value_object(part_of="Order")
class Buyer:
    buyer_id = Identifier(required=True)
    email = String(required=True, max_length=254)
    name = String(max_length=100)
    region = String(max_length=100)


@marketplace.value_object(part_of="Order")
class ShippingAddress:
    recipient_name = String(max_length=100)
    phone = String(max_length=20)
    address = String(required=True, max_length=500)
    district = String(max_length=100)
    region = String(max_length=100)


@marketplace.value_object(part_of="Order")
class OrderFees:
    delivery = Float(min_value=0.0, default=0.0)
    platform = Float(min_value=0.0, default=0.0)
    agent_commission = Float(min_value=0.0, default=0.0)


@marketplace.entity(part_of="Order")
class OrderLine:
    """One product in an order, priced at the moment its stock was reserved."""

    product_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    unit = String(max_length=20)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    seller_id = Identifier()
    seller_name = String(max_length=100)
    seller_region = String(max_length=100)

    @property
    def line_total(self):
        return self.price * self.quantity


@marketplace.entity(part_of="Order")
class TimelineEntry:
    sequence = Integer(required=True, min_value=1)
    status = String(required=True)
    delivery_status = String(required=True)
    actor_id = Identifier()
    actor_role = String(max_length=20)
    note = String(max_length=500)
    timestamp = DateTime(required=True)


@marketplace.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    buyer = ValueObject(Buyer, required=True)
    items = HasMany(OrderLine)
    subtotal = Float(min_value=0.0, default=0.0)
    fees = ValueObject(OrderFees)
    total_amount = Float(min_value=0.0, default=0.0)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)
    shipping_address = ValueObject(ShippingAddress)
    notes = Text()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    delivery_status = String(choices=DeliveryStatus, default=DeliveryStatus.PACKAGING.value)
    timeline = HasMany(TimelineEntry)
    delivered_at = DateTime()
    returned_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def completed_orders_are_delivered(self):
        if self.status == OrderStatus.COMPLETED.value and self.delivery_status != DeliveryStatus.DELIVERED.value:
            raise ValidationError({"status": ["A completed order must be delivered"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        buyer,
        lines,
        subtotal,
        fees,
        total_amount,
        shipping_address=None,
        payment_method=PaymentMethod.CASH.value,
        notes=None,
        actor_role=None,
    ):
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            buyer=buyer,
            subtotal=subtotal,
            fees=fees,
            total_amount=total_amount,
            payment_method=payment_method,
            shipping_address=shipping_address,
            notes=notes,
            status=OrderStatus.PENDING.value,
            delivery_status=DeliveryStatus.PACKAGING.value,
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(line)
        order._record(buyer.buyer_id, actor_role, "Order placed", now)

        order.raise_(
            OrderPlaced(
                order_id=order.id,
                order_number=order_number,
                buyer_id=buyer.buyer_id,
                line_count=len(lines),
                total_amount=total_amount,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Timeline
    # -------------------------------------------------------------------
    def _record(self, actor_id, actor_role, note=None, timestamp=None):
        timestamp = timestamp or datetime.now(UTC)
        self.add_timeline(
            TimelineEntry(
                sequence=len(self.timeline) + 1,
                status=self.status,
                delivery_status=self.delivery_status,
                actor_id=actor_id,
                actor_role=actor_role,
                note=note,
                timestamp=timestamp,
            )
        )
        self.updated_at = timestamp

    @property
    def history(self):
        return sorted(self.timeline, key=lambda entry: entry.sequence)

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def _ensure_open(self):
        if self.is_terminal:
            raise AlreadyTerminal(f"Order already {self.status}")

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def update_delivery_status(self, new_status, actor_id, actor_role):
        self._ensure_open()
        if new_status not in DELIVERY_SEQUENCE:
            raise InvalidTransition(f"Unknown delivery status: {new_status}")
        if delivery_rank(new_status) <= delivery_rank(self.delivery_status):
            raise InvalidTransition(f"Cannot move delivery from {self.delivery_status} to {new_status}")

        previous = self.delivery_status
        now = datetime.now(UTC)
        with atomic_change(self):
            self.delivery_status = new_status
            if new_status == DeliveryStatus.DELIVERED.value:
                self.status = OrderStatus.COMPLETED.value
                self.delivered_at = now
        self._record(actor_id, actor_role, f"Delivery status changed to {new_status}", now)

        self.raise_(
            OrderDeliveryUpdated(
                order_id=self.id,
                previous_delivery_status=previous,
                delivery_status=new_status,
                status=self.status,
                actor_id=actor_id,
                updated_at=now,
            )
        )

    def complete(self, actor_id, actor_role=None):
        self._ensure_open()

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = OrderStatus.COMPLETED.value
            self.delivery_status = DeliveryStatus.DELIVERED.value
            self.delivered_at = now
        self._record(actor_id, actor_role, "Order completed by buyer", now)
        self.raise_(OrderCompleted(order_id=self.id, completed_by=actor_id, completed_at=now))

    def cancel(self, actor_id, actor_role=None):
        """Mark the order cancelled. Only possible before it leaves packaging.

        The caller releases the stock and deletes the order afterwards.
        """
        self._ensure_open()
        if self.delivery_status != DeliveryStatus.PACKAGING.value:
            raise NotCancellable("Order can only be cancelled before shipment")

        self.status = OrderStatus.CANCELLED.value
        self._record(actor_id, actor_role, "Order cancelled")

    def mark_returned(self, actor_id, actor_role=None):
        self._ensure_open()

        now = datetime.now(UTC)
        self.status = OrderStatus.RETURNED.value
        self.returned_at = now
        self._record(actor_id, actor_role, "Order returned", now)
        self.raise_(OrderReturned(order_id=self.id, returned_by=actor_id, returned_at=now))
