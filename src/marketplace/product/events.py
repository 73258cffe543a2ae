"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class ProductListed:
    """A seller listed a product; it awaits moderation."""

    __version__ = 1

    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    title = String(required=True)
    crop_type = String(required=True)
    region = String(required=True)
    listed_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class ProductApproved:
    __version__ = 1

    product_id = Identifier(required=True)
    approved_by = Identifier(required=True)
    approved_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class ProductRejected:
    __version__ = 1

    product_id = Identifier(required=True)
    rejected_by = Identifier(required=True)
    reason = String(required=True)


@marketplace.event(part_of="Product")
class StockReserved:
    """Units were taken out of stock for an order."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@marketplace.event(part_of="Product")
class StockReleased:
    """Units went back into stock after a cancellation or a return."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    available = Integer(required=True)
