"""Cart aggregate: one per owner, created on first use and never deleted.

Lines are snapshots of the product at add time: later price changes in the
catalogue do not touch a line already in the cart. Totals are derived from
the lines on every read.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from marketplace.domain import marketplace
from marketplace.product.product import ProductStatus
from marketplace.shared import settings
from marketplace.shared.errors import BelowMinimumOrder, InvalidInput, NotFoundError, ProductUnavailable


class BatchOperation(Enum):
    UPDATE = "update"
    REMOVE = "remove"


@marketplace.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    price = Float(required=True, min_value=0.0)
    unit = String(max_length=20)
    quantity = Integer(required=True, min_value=1)
    minimum_order_quantity = Integer(min_value=1, default=1)
    seller_id = Identifier()
    seller_name = String(max_length=100)
    added_at = DateTime()

    @property
    def line_total(self):
        return self.price * self.quantity


@marketplace.aggregate
class Cart:
    owner_email = String(required=True, max_length=254, unique=True)
    owner_id = Identifier()
    items = HasMany(CartItem)
    delivery_charge = Float(min_value=0.0, default=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product(self):
        product_ids = [str(i.product_id) for i in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A product can appear only once in a cart"]})

    @invariant.post
    def lines_meet_their_minimum_order(self):
        for item in self.items:
            if item.quantity < (item.minimum_order_quantity or 1):
                raise ValidationError({"quantity": [f"Minimum order for {item.title} is {item.minimum_order_quantity}"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, owner_email, owner_id=None):
        now = datetime.now(UTC)
        return cls(
            owner_email=owner_email.strip().lower(),
            owner_id=owner_id,
            delivery_charge=0.0,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Derived totals
    # -------------------------------------------------------------------
    @property
    def total_items(self):
        return sum(i.quantity for i in self.items)

    @property
    def subtotal(self):
        return round(sum(i.line_total for i in self.items), 2)

    @property
    def total_amount(self):
        return round(self.subtotal + (self.delivery_charge or 0.0), 2)

    def line_for(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product, quantity):
        """Add ``quantity`` of ``product``. Returns True when it merged into an existing line."""
        if quantity is None or quantity <= 0:
            raise InvalidInput("Quantity must be positive", field="quantity")
        if product.status != ProductStatus.APPROVED.value:
            raise ProductUnavailable(f"{product.title} is not available")
        if quantity < product.minimum_order_quantity:
            raise BelowMinimumOrder(f"Minimum order quantity for {product.title} is {product.minimum_order_quantity}")

        now = datetime.now(UTC)
        existing = self.line_for(product.id)
        if existing:
            existing.quantity += quantity
        else:
            self.add_items(
                CartItem(
                    product_id=product.id,
                    title=product.title,
                    price=product.price_per_unit,
                    unit=product.unit,
                    quantity=quantity,
                    minimum_order_quantity=product.minimum_order_quantity,
                    seller_id=product.seller.seller_id,
                    seller_name=product.seller.name,
                    added_at=now,
                )
            )

        if not self.delivery_charge:
            self.delivery_charge = settings.default_delivery_charge()
        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                product_id=str(product.id),
                quantity=quantity,
                merged=existing is not None,
            )
        )
        return existing is not None

    def update_quantity(self, product_id, quantity):
        item = self.line_for(product_id)
        if item is None:
            raise NotFoundError("Item not found in cart", field="product_id")
        if quantity is None or quantity < (item.minimum_order_quantity or 1):
            raise BelowMinimumOrder(f"Minimum order quantity for {item.title} is {item.minimum_order_quantity}")

        previous_quantity = item.quantity
        item.quantity = quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_id):
        item = self.line_for(product_id)
        if item is None:
            return False

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), product_id=str(product_id)))
        return True

    def clear(self):
        for item in list(self.items):
            self.remove_items(item)
        self.delivery_charge = 0.0
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id)))

    # -------------------------------------------------------------------
    # Batch operations
    # -------------------------------------------------------------------
    def batch_apply(self, operations):
        """Apply update/remove operations, skipping any that cannot apply.

        Each operation is ``{"target_id", "kind", "quantity"}`` where
        ``target_id`` is the product id of a line. Returns the number of
        operations applied.
        """
        applied = 0
        for op in operations or []:
            if not isinstance(op, dict):
                continue
            item = self.line_for(op.get("target_id"))
            if item is None:
                continue

            kind = op.get("kind")
            if kind == BatchOperation.REMOVE.value:
                self.remove_item(item.product_id)
                applied += 1
            elif kind == BatchOperation.UPDATE.value:
                quantity = op.get("quantity")
                if not isinstance(quantity, int) or isinstance(quantity, bool):
                    continue
                if quantity < (item.minimum_order_quantity or 1):
                    continue
                self.update_quantity(item.product_id, quantity)
                applied += 1
        return applied

    def preview_merge(self, candidates):
        """What merging ``candidates`` into this cart would do, without doing it.

        ``candidates`` is a list of ``{"product_id", "quantity"}``. Entries
        without a product id or with a non-positive quantity are ignored.
        """
        current_ids = {str(i.product_id) for i in self.items}
        candidate_quantities = {}
        for candidate in candidates or []:
            product_id = candidate.get("product_id") if isinstance(candidate, dict) else None
            quantity = candidate.get("quantity") if isinstance(candidate, dict) else None
            if not product_id or not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
                continue
            candidate_quantities[str(product_id)] = candidate_quantities.get(str(product_id), 0) + quantity

        merged_ids = current_ids & candidate_quantities.keys()
        return {
            "current_line_count": len(current_ids),
            "candidate_line_count": len(candidate_quantities),
            "final_line_count": len(current_ids | candidate_quantities.keys()),
            "merged_line_count": len(merged_ids),
            "total_quantity_delta": sum(candidate_quantities.values()),
        }
