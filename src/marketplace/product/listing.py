"""Product listing and removal: commands and handler."""

from datetime import date

import structlog
from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.product.product import Product, Quality, SellerInfo, Unit
from marketplace.region.regions import is_known_region
from marketplace.shared.errors import ForbiddenError, InvalidInput
from marketplace.user.user import Role, User

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Product")
class ListProduct:
    """List a new product. It stays pending until an agent or admin approves it."""

    seller_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    description = Text()
    crop_type = String(required=True, max_length=100)
    price_per_unit = Float(required=True, min_value=0.0)
    unit = String(choices=Unit, default=Unit.KG.value)
    minimum_order_quantity = Integer(min_value=1, default=1)
    available_stock = Integer(required=True, min_value=0)
    quality = String(choices=Quality, default=Quality.A.value)
    harvest_date = String(max_length=10)
    region = String(max_length=100)
    district = String(max_length=100)


@marketplace.command(part_of="Product")
class DeleteProduct:
    product_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True)


@marketplace.command_handler(part_of=Product)
class ProductListingHandler:
    @handle(ListProduct)
    def list_product(self, command):
        seller = current_domain.repository_for(User).get(command.seller_id)
        if not (seller.is_verified_seller or seller.role == Role.ADMIN.value):
            raise ForbiddenError("Only verified sellers can list products")

        region = command.region or seller.region
        if not is_known_region(region):
            raise InvalidInput("A valid seller region is required to list a product", field="region")

        harvest_date = date.fromisoformat(command.harvest_date) if command.harvest_date else None

        product = Product.create(
            title=command.title,
            description=command.description,
            crop_type=command.crop_type,
            price_per_unit=command.price_per_unit,
            unit=command.unit,
            minimum_order_quantity=command.minimum_order_quantity,
            available_stock=command.available_stock,
            quality=command.quality,
            harvest_date=harvest_date,
            seller=SellerInfo(
                seller_id=seller.id,
                name=seller.name,
                email=seller.email,
                region=region,
                district=command.district or seller.district,
            ),
        )
        current_domain.repository_for(Product).add(product)
        logger.info("Product listed", product_id=str(product.id), seller_id=str(seller.id))
        return str(product.id)

    @handle(DeleteProduct)
    def delete_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        owner = str(product.seller.seller_id) == str(command.actor_id)
        if not (owner or command.actor_role == Role.ADMIN.value):
            raise ForbiddenError("Only the listing seller or an admin can delete a product")

        repo._dao.delete(product)
        logger.info("Product deleted", product_id=str(command.product_id), actor_id=str(command.actor_id))
        return str(command.product_id)
