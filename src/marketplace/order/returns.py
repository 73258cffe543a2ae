"""Order returns: command and handler."""

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
class ReturnOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True)


@marketplace.command_handler(part_of=Order)
class ReturnOrderHandler:
    @handle(ReturnOrder)
    def return_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        authorize(command.actor_role, command.actor_id, order, Operation.RETURN)
        order.mark_returned(command.actor_id, command.actor_role)
        release_lines(order)
        repo.add(order)

        logger.info("Order returned", order_id=str(order.id), actor_id=str(command.actor_id))
        return str(order.id)
