"""Product moderation: approve, reject and bulk moderation.

Agents moderate within their operational region only; admins moderate
anywhere. The reviewer's region is read from their account, never from
the request.
"""

import json
from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.product.product import Product
from marketplace.shared.errors import InvalidInput, error_message
from marketplace.user.user import User

logger = structlog.get_logger(__name__)


class ModerationAction(Enum):
    APPROVE = "approve"
    REJECT = "reject"


@marketplace.command(part_of="Product")
class ApproveProduct:
    product_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    reviewer_role = String(required=True)


@marketplace.command(part_of="Product")
class RejectProduct:
    product_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    reviewer_role = String(required=True)
    reason = String(required=True, max_length=500)


@marketplace.command(part_of="Product")
class BulkModerateProducts:
    product_ids = Text(required=True)  # JSON array of product ids
    action = String(required=True, choices=ModerationAction)
    reviewer_id = Identifier(required=True)
    reviewer_role = String(required=True)
    reason = String(max_length=500)


def _reviewer_region(reviewer_id):
    return current_domain.repository_for(User).get(reviewer_id).region


def _moderate(product, action, reviewer_id, reviewer_role, region, reason=None):
    if action == ModerationAction.APPROVE.value:
        product.approve(reviewer_id, reviewer_role, reviewer_region=region)
    else:
        product.reject(reviewer_id, reviewer_role, reason, reviewer_region=region)


@marketplace.command_handler(part_of=Product)
class ProductModerationHandler:
    @handle(ApproveProduct)
    def approve_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        region = _reviewer_region(command.reviewer_id)
        _moderate(product, ModerationAction.APPROVE.value, command.reviewer_id, command.reviewer_role, region)
        repo.add(product)
        logger.info("Product approved", product_id=str(product.id), reviewer_id=str(command.reviewer_id))
        return str(product.id)

    @handle(RejectProduct)
    def reject_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        region = _reviewer_region(command.reviewer_id)
        _moderate(
            product,
            ModerationAction.REJECT.value,
            command.reviewer_id,
            command.reviewer_role,
            region,
            reason=command.reason,
        )
        repo.add(product)
        logger.info("Product rejected", product_id=str(product.id), reviewer_id=str(command.reviewer_id))
        return str(product.id)

    @handle(BulkModerateProducts)
    def bulk_moderate(self, command):
        """Moderate each product on its own; one failure does not stop the rest."""
        product_ids = json.loads(command.product_ids)
        if not isinstance(product_ids, list) or not product_ids:
            raise InvalidInput("product_ids must be a non-empty list", field="product_ids")

        repo = current_domain.repository_for(Product)
        region = _reviewer_region(command.reviewer_id)
        successful, failed = [], []

        for product_id in product_ids:
            try:
                product = repo.get(product_id)
                _moderate(product, command.action, command.reviewer_id, command.reviewer_role, region, command.reason)
            except ValidationError as exc:
                failed.append({"product_id": product_id, "reason": error_message(exc)})
                continue
            except ObjectNotFoundError:
                failed.append({"product_id": product_id, "reason": "Product not found"})
                continue
            repo.add(product)
            successful.append(product_id)

        logger.info(
            "Bulk moderation complete",
            action=command.action,
            successful=len(successful),
            failed=len(failed),
        )
        return {"successful": successful, "failed": failed, "total": len(product_ids)}
