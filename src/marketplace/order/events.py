"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """An order was placed and the stock for every line reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    buyer_id = Identifier(required=True)
    line_count = Integer(required=True)
    total_amount = Float(required=True)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderDeliveryUpdated:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_delivery_status = String(required=True)
    delivery_status = String(required=True)
    status = String(required=True)
    actor_id = Identifier()
    updated_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCompleted:
    __version__ = 1

    order_id = Identifier(required=True)
    completed_by = Identifier(required=True)
    completed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderReturned:
    """The order came back; its stock has been released."""

    __version__ = 1

    order_id = Identifier(required=True)
    returned_by = Identifier(required=True)
    returned_at = DateTime(required=True)
