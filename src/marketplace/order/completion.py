"""Order completion by the buyer: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.gate import Operation, authorize
from marketplace.order.order import Order


@marketplace.command(part_of="Order")
class CompleteOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True)


@marketplace.command_handler(part_of=Order)
class CompleteOrderHandler:
    @handle(CompleteOrder)
    def complete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        authorize(command.actor_role, command.actor_id, order, Operation.COMPLETE)
        order.complete(command.actor_id, command.actor_role)
        repo.add(order)
        return str(order.id)
