"""Who may do what to an order.

A single table keyed by ``(role, operation)`` answers every authorization
question about orders. A missing key means the role may never perform the
operation. Each rule names the delivery targets the role may set, the
delivery states the order must be in, and whose orders the role may touch.

``authorize`` raises on role, scope and target violations; the aggregate
itself raises on state violations (terminal orders, backward moves,
cancelling after packaging).
"""

from dataclasses import dataclass
from enum import Enum

from marketplace.order.order import DELIVERY_SEQUENCE, DeliveryStatus, delivery_rank
from marketplace.shared.errors import ForbiddenError, InvalidTransition
from marketplace.user.user import Role


class Operation(Enum):
    VIEW = "view"
    UPDATE_DELIVERY = "update_delivery"
    COMPLETE = "complete"
    CANCEL = "cancel"
    RETURN = "return"


class Scope(Enum):
    ANY = "any"
    BUYER = "buyer"  # the actor placed the order
    SELLER = "seller"  # the actor sells at least one line of the order
    REGION = "region"  # the buyer or a seller is in the actor's region


@dataclass(frozen=True)
class Permission:
    targets: frozenset | None = None  # None: any delivery status
    from_delivery: frozenset | None = None  # None: any current delivery status
    scope: Scope = Scope.ANY


_PACKAGING_ONLY = frozenset({DeliveryStatus.PACKAGING.value})

_RULES = {
    (Role.CONSUMER.value, Operation.VIEW): Permission(scope=Scope.BUYER),
    (Role.SELLER.value, Operation.VIEW): Permission(scope=Scope.SELLER),
    (Role.AGENT.value, Operation.VIEW): Permission(scope=Scope.REGION),
    (Role.ADMIN.value, Operation.VIEW): Permission(),
    (Role.CONSUMER.value, Operation.UPDATE_DELIVERY): Permission(
        targets=frozenset({DeliveryStatus.DELIVERED.value}),
        scope=Scope.BUYER,
    ),
    (Role.SELLER.value, Operation.UPDATE_DELIVERY): Permission(
        targets=frozenset({DeliveryStatus.PACKAGING.value, DeliveryStatus.TO_AGENT.value}),
        scope=Scope.SELLER,
    ),
    (Role.AGENT.value, Operation.UPDATE_DELIVERY): Permission(),
    (Role.ADMIN.value, Operation.UPDATE_DELIVERY): Permission(),
    # Completion belongs to whoever placed the order, whatever their role
    (Role.CONSUMER.value, Operation.COMPLETE): Permission(scope=Scope.BUYER),
    (Role.SELLER.value, Operation.COMPLETE): Permission(scope=Scope.BUYER),
    (Role.AGENT.value, Operation.COMPLETE): Permission(scope=Scope.BUYER),
    (Role.ADMIN.value, Operation.COMPLETE): Permission(scope=Scope.BUYER),
    (Role.CONSUMER.value, Operation.CANCEL): Permission(from_delivery=_PACKAGING_ONLY, scope=Scope.BUYER),
    (Role.AGENT.value, Operation.CANCEL): Permission(from_delivery=_PACKAGING_ONLY),
    (Role.ADMIN.value, Operation.CANCEL): Permission(from_delivery=_PACKAGING_ONLY),
    (Role.AGENT.value, Operation.RETURN): Permission(),
    (Role.ADMIN.value, Operation.RETURN): Permission(),
}


def permission_for(role, operation) -> Permission | None:
    return _RULES.get((role, operation))


def _in_scope(scope, actor_id, order, actor_region=None) -> bool:
    if scope == Scope.ANY:
        return True
    if scope == Scope.BUYER:
        return str(order.buyer.buyer_id) == str(actor_id)
    if scope == Scope.SELLER:
        return any(str(line.seller_id) == str(actor_id) for line in order.items)
    if scope == Scope.REGION:
        if not actor_region:
            return False
        region = actor_region.lower()
        regions = {(order.buyer.region or "").lower()} | {(line.seller_region or "").lower() for line in order.items}
        return region in regions
    return False


def _denial(role, actor_id, order, operation, target=None, actor_region=None):
    permission = permission_for(role, operation)
    if permission is None:
        return ForbiddenError(f"Role {role} cannot {operation.value.replace('_', ' ')} orders")
    if not _in_scope(permission.scope, actor_id, order, actor_region):
        return ForbiddenError(f"Not authorized to {operation.value.replace('_', ' ')} this order")
    if operation == Operation.UPDATE_DELIVERY:
        if target not in DELIVERY_SEQUENCE:
            return InvalidTransition(f"Unknown delivery status: {target}")
        if permission.targets is not None and target not in permission.targets:
            allowed = ", ".join(sorted(permission.targets, key=delivery_rank))
            return InvalidTransition(f"Role {role} can only set delivery status to {allowed}")
    return None


def can_transition(actor_role, actor_id, order, operation, target=None, actor_region=None) -> bool:
    """True when the actor may perform ``operation`` on ``order`` in its current state."""
    if _denial(actor_role, actor_id, order, operation, target, actor_region) is not None:
        return False

    permission = permission_for(actor_role, operation)
    if permission.from_delivery is not None and order.delivery_status not in permission.from_delivery:
        return False
    if operation == Operation.VIEW:
        return True
    if order.is_terminal:
        return False
    if operation == Operation.UPDATE_DELIVERY:
        return delivery_rank(target) > delivery_rank(order.delivery_status)
    return True


def authorize(actor_role, actor_id, order, operation, target=None, actor_region=None) -> None:
    denial = _denial(actor_role, actor_id, order, operation, target, actor_region)
    if denial is not None:
        raise denial
