"""Product aggregate: a seller's listing of a crop, with its stock.

Stock only moves through ``reserve`` and ``release``. ``reserve`` checks and
decrements on the same loaded aggregate, so the checkout handler can reserve
every line of an order inside one unit of work.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Float, Identifier, Integer, String, Text, ValueObject

from marketplace.domain import marketplace
from marketplace.shared.errors import (
    ForbiddenError,
    InsufficientStock,
    InvalidInput,
    InvalidTransition,
    ProductUnavailable,
)


class ProductStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SOLD_OUT = "sold_out"


class Unit(Enum):
    KG = "kg"
    TON = "ton"
    QUINTAL = "quintal"
    PIECE = "piece"


class Quality(Enum):
    A = "A"
    B = "B"
    C = "C"


@marketplace.value_object(part_of="Product")
class SellerInfo:
    """Snapshot of the listing seller, taken when the product is listed."""

    seller_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    email = String(max_length=254)
    region = String(required=True, max_length=100)
    district = String(max_length=100)


@marketplace.aggregate
class Product:
    title = String(required=True, max_length=200)
    description = Text()
    crop_type = String(required=True, max_length=100)
    price_per_unit = Float(required=True, min_value=0.0)
    unit = String(choices=Unit, default=Unit.KG.value)
    minimum_order_quantity = Integer(min_value=1, default=1)
    available_stock = Integer(required=True, min_value=0)
    seller = ValueObject(SellerInfo, required=True)
    quality = String(choices=Quality, default=Quality.A.value)
    harvest_date = Date()
    status = String(choices=ProductStatus, default=ProductStatus.PENDING.value)
    approved_by = Identifier()
    approved_at = DateTime()
    rejection_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def sold_out_products_have_no_stock(self):
        if self.status == ProductStatus.SOLD_OUT.value and self.available_stock:
            raise ValidationError({"status": ["A sold out product cannot have stock"]})

    @invariant.post
    def rejected_products_carry_a_reason(self):
        if self.status == ProductStatus.REJECTED.value and not self.rejection_reason:
            raise ValidationError({"rejection_reason": ["A rejected product needs a reason"]})

    @classmethod
    def create(
        cls,
        title,
        crop_type,
        price_per_unit,
        available_stock,
        seller,
        unit=Unit.KG.value,
        minimum_order_quantity=1,
        quality=Quality.A.value,
        description=None,
        harvest_date=None,
    ):
        from marketplace.product.events import ProductListed

        now = datetime.now(UTC)
        product = cls(
            title=title,
            description=description,
            crop_type=crop_type,
            price_per_unit=price_per_unit,
            unit=unit,
            minimum_order_quantity=minimum_order_quantity,
            available_stock=available_stock,
            seller=seller,
            quality=quality,
            harvest_date=harvest_date,
            status=ProductStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductListed(
                product_id=product.id,
                seller_id=seller.seller_id,
                title=title,
                crop_type=crop_type,
                region=seller.region,
                listed_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Moderation
    # -------------------------------------------------------------------
    def _check_moderator(self, reviewer_role, reviewer_region):
        if reviewer_role == "admin":
            return
        if reviewer_role != "agent":
            raise ForbiddenError("Only agents and admins can moderate products")
        if not reviewer_region or reviewer_region.lower() != (self.seller.region or "").lower():
            raise ForbiddenError("Agents can only moderate products from their own region")

    def approve(self, reviewer_id, reviewer_role, reviewer_region=None):
        from marketplace.product.events import ProductApproved

        self._check_moderator(reviewer_role, reviewer_region)
        if self.status not in (ProductStatus.PENDING.value, ProductStatus.REJECTED.value):
            raise InvalidTransition(f"Cannot approve a product that is {self.status}")

        now = datetime.now(UTC)
        with atomic_change(self):
            self.rejection_reason = None
            self.status = ProductStatus.APPROVED.value
        self.approved_by = reviewer_id
        self.approved_at = now
        self.updated_at = now
        self.raise_(ProductApproved(product_id=self.id, approved_by=reviewer_id, approved_at=now))

    def reject(self, reviewer_id, reviewer_role, reason, reviewer_region=None):
        from marketplace.product.events import ProductRejected

        self._check_moderator(reviewer_role, reviewer_region)
        if not reason or not reason.strip():
            raise InvalidInput("A rejection reason is required", field="reason")
        if self.status not in (ProductStatus.PENDING.value, ProductStatus.APPROVED.value):
            raise InvalidTransition(f"Cannot reject a product that is {self.status}")

        self.rejection_reason = reason.strip()
        self.status = ProductStatus.REJECTED.value
        self.updated_at = datetime.now(UTC)
        self.raise_(ProductRejected(product_id=self.id, rejected_by=reviewer_id, reason=self.rejection_reason))

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def reserve(self, quantity):
        """Take ``quantity`` units out of stock and return the unit price."""
        from marketplace.product.events import StockReserved

        if quantity is None or quantity <= 0:
            raise InvalidInput("Quantity must be positive", field="quantity")
        if self.status == ProductStatus.SOLD_OUT.value:
            raise InsufficientStock(f"{self.title} is sold out")
        if self.status != ProductStatus.APPROVED.value:
            raise ProductUnavailable(f"{self.title} is not available for purchase")
        if self.available_stock < quantity:
            raise InsufficientStock(f"Insufficient stock for {self.title}: {self.available_stock} available")

        with atomic_change(self):
            self.available_stock -= quantity
            if self.available_stock == 0:
                self.status = ProductStatus.SOLD_OUT.value
        self.updated_at = datetime.now(UTC)
        self.raise_(StockReserved(product_id=self.id, quantity=quantity, remaining=self.available_stock))
        return self.price_per_unit

    def release(self, quantity):
        from marketplace.product.events import StockReleased

        if quantity is None or quantity <= 0:
            raise InvalidInput("Quantity must be positive", field="quantity")

        with atomic_change(self):
            self.available_stock += quantity
            if self.status == ProductStatus.SOLD_OUT.value:
                self.status = ProductStatus.APPROVED.value
        self.updated_at = datetime.now(UTC)
        self.raise_(StockReleased(product_id=self.id, quantity=quantity, available=self.available_stock))

    @property
    def is_available(self):
        return self.status == ProductStatus.APPROVED.value and self.available_stock > 0
