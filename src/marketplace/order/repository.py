"""Order queries."""

from marketplace.domain import marketplace
from marketplace.order.gate import Operation, can_transition
from marketplace.order.order import Order


@marketplace.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number: str) -> Order | None:
        orders = self._dao.query.filter(order_number=order_number).all().items
        return orders[0] if orders else None

    def visible_to(self, role, actor_id, actor_region=None, status=None) -> list[Order]:
        """Orders the actor may view, newest first."""
        query = self._dao.query.filter(status=status) if status else self._dao.query
        orders = [
            order
            for order in query.limit(None).all().items
            if can_transition(role, actor_id, order, Operation.VIEW, actor_region=actor_region)
        ]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)
