"""Order cancellation: command and handler.

A cancelled order does not linger: once its stock is back in the catalogue
the order record is deleted.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.gate import Operation, authorize
from marketplace.order.order import Order
from marketplace.order.stock import release_lines

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True)


@marketplace.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        authorize(command.actor_role, command.actor_id, order, Operation.CANCEL)
        order.cancel(command.actor_id, command.actor_role)
        released = release_lines(order)
        repo._dao.delete(order)

        logger.info(
            "Order cancelled",
            order_id=str(command.order_id),
            order_number=order.order_number,
            actor_id=str(command.actor_id),
        )
        return {"order_id": str(command.order_id), "released": released}
