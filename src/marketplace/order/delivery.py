"""Delivery status updates: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.gate import Operation, authorize
from marketplace.order.order import DeliveryStatus, Order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class UpdateDeliveryStatus:
    order_id = Identifier(required=True)
    delivery_status = String(required=True, choices=DeliveryStatus)
    actor_id = Identifier(required=True)
    actor_role = String(required=True)


@marketplace.command_handler(part_of=Order)
class DeliveryStatusHandler:
    @handle(UpdateDeliveryStatus)
    def update_delivery_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        authorize(
            command.actor_role,
            command.actor_id,
            order,
            Operation.UPDATE_DELIVERY,
            target=command.delivery_status,
        )
        order.update_delivery_status(command.delivery_status, command.actor_id, command.actor_role)
        repo.add(order)

        logger.info(
            "Delivery status updated",
            order_id=str(order.id),
            delivery_status=order.delivery_status,
            status=order.status,
            actor_id=str(command.actor_id),
        )
        return str(order.id)
