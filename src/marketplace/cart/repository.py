"""Owner lookups for the Cart aggregate."""

from marketplace.cart.cart import Cart
from marketplace.domain import marketplace


@marketplace.repository(part_of=Cart)
class CartRepository:
    def for_owner(self, owner_email: str) -> Cart | None:
        carts = self._dao.query.filter(owner_email=owner_email.strip().lower()).all().items
        return carts[0] if carts else None

    def get_or_open(self, owner_email: str, owner_id=None) -> Cart:
        """The owner's cart, opening and persisting an empty one on first use."""
        cart = self.for_owner(owner_email)
        if cart is None:
            cart = Cart.open(owner_email, owner_id=owner_id)
            self.add(cart)
        return cart
