"""Cart item management: commands and handler.

Every command addresses a cart by its owner's email; the cart is opened on
first use.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.domain import marketplace
from marketplace.product.product import Product
from marketplace.shared.errors import InvalidInput, error_message

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Cart")
class AddToCart:
    owner_email = String(required=True, max_length=254)
    owner_id = Identifier()
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Cart")
class AddMultipleToCart:
    owner_email = String(required=True, max_length=254)
    owner_id = Identifier()
    items = Text(required=True)  # JSON array of {product_id, quantity}


@marketplace.command(part_of="Cart")
class UpdateCartQuantity:
    owner_email = String(required=True, max_length=254)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@marketplace.command(part_of="Cart")
class RemoveFromCart:
    owner_email = String(required=True, max_length=254)
    product_id = Identifier(required=True)


@marketplace.command(part_of="Cart")
class ClearCart:
    owner_email = String(required=True, max_length=254)


@marketplace.command(part_of="Cart")
class BatchUpdateCart:
    owner_email = String(required=True, max_length=254)
    operations = Text(required=True)  # JSON array of {target_id, kind, quantity?}


def _load_json_list(raw, field):
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field} must be a JSON array", field=field)
    if not isinstance(value, list):
        raise InvalidInput(f"{field} must be a JSON array", field=field)
    return value


@marketplace.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_open(command.owner_email, owner_id=command.owner_id)
        product = current_domain.repository_for(Product).get(command.product_id)
        cart.add_item(product, command.quantity)
        repo.add(cart)
        return str(cart.id)

    @handle(AddMultipleToCart)
    def add_multiple_to_cart(self, command):
        """Add each entry on its own, reporting the ones that could not be added."""
        entries = _load_json_list(command.items, "items")

        repo = current_domain.repository_for(Cart)
        product_repo = current_domain.repository_for(Product)
        cart = repo.get_or_open(command.owner_email, owner_id=command.owner_id)

        added, merged, failed = 0, 0, []
        for entry in entries:
            product_id = entry.get("product_id") if isinstance(entry, dict) else None
            quantity = entry.get("quantity", 1) if isinstance(entry, dict) else None
            if not product_id or not isinstance(quantity, int):
                failed.append({"product_id": product_id, "reason": "product_id and an integer quantity are required"})
                continue
            try:
                product = product_repo.get(product_id)
                was_merged = cart.add_item(product, quantity)
            except ObjectNotFoundError:
                failed.append({"product_id": product_id, "reason": "Product not found"})
                continue
            except ValidationError as exc:
                failed.append({"product_id": product_id, "reason": error_message(exc)})
                continue

            if was_merged:
                merged += 1
            else:
                added += 1

        repo.add(cart)
        logger.info("Bulk add to cart", cart_id=str(cart.id), added=added, merged=merged, failed=len(failed))
        return {"cart_id": str(cart.id), "added": added, "merged": merged, "failed": failed}

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_open(command.owner_email)
        cart.update_quantity(command.product_id, command.quantity)
        repo.add(cart)
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_open(command.owner_email)
        cart.remove_item(command.product_id)
        repo.add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_open(command.owner_email)
        cart.clear()
        repo.add(cart)
        return str(cart.id)

    @handle(BatchUpdateCart)
    def batch_update_cart(self, command):
        operations = _load_json_list(command.operations, "operations")

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_open(command.owner_email)
        applied = cart.batch_apply(operations)
        repo.add(cart)
        return {"cart_id": str(cart.id), "applied": applied}
