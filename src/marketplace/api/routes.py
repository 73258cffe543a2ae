"""FastAPI routes for carts and orders."""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.api.auth import actor_region, current_actor
from marketplace.api.schemas import (
    AddMultipleResponse,
    AddMultipleToCartRequest,
    AddToCartRequest,
    BatchUpdateCartRequest,
    BatchUpdateResponse,
    CartResponse,
    CheckoutRequest,
    DeliveryStatusRequest,
    OrderEnvelope,
    OrderListResponse,
    OrderResponse,
    PreviewMergeRequest,
    PreviewMergeResponse,
    StatusResponse,
    UpdateCartQuantityRequest,
)
from marketplace.auth.tokens import Actor
from marketplace.cart.cart import Cart
from marketplace.cart.items import (
    AddMultipleToCart,
    AddToCart,
    BatchUpdateCart,
    ClearCart,
    RemoveFromCart,
    UpdateCartQuantity,
)
from marketplace.order.cancellation import CancelOrder
from marketplace.order.completion import CompleteOrder
from marketplace.order.delivery import UpdateDeliveryStatus
from marketplace.order.gate import Operation, authorize
from marketplace.order.order import Order
from marketplace.order.placement import PlaceOrder
from marketplace.order.returns import ReturnOrder
from marketplace.shared.errors import UnauthorizedError
from marketplace.user.user import Role

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


def _owner_email(email: str, actor: Actor) -> str:
    """Carts are private to their owner; admins may act on any cart."""
    email = email.strip().lower()
    if actor.role != Role.ADMIN.value and actor.email.lower() != email:
        raise UnauthorizedError("You can only access your own cart")
    return email


def _owner_id(email: str, actor: Actor) -> str | None:
    return actor.id if actor.email.lower() == email else None


def _cart(email: str) -> Cart:
    return current_domain.repository_for(Cart).get_or_open(email)


@cart_router.get("/{email}", response_model=CartResponse)
async def get_cart(email: str, actor: Actor = Depends(current_actor)) -> CartResponse:
    email = _owner_email(email, actor)
    return CartResponse.from_cart(_cart(email))


@cart_router.post("/items", response_model=CartResponse)
async def add_cart_item(body: AddToCartRequest, actor: Actor = Depends(current_actor)) -> CartResponse:
    email = _owner_email(body.email, actor)
    command = AddToCart(
        owner_email=email,
        owner_id=_owner_id(email, actor),
        product_id=body.product_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return CartResponse.from_cart(_cart(email))


@cart_router.post("/items/bulk", response_model=AddMultipleResponse)
async def add_multiple_cart_items(
    body: AddMultipleToCartRequest,
    actor: Actor = Depends(current_actor),
) -> AddMultipleResponse:
    email = _owner_email(body.email, actor)
    command = AddMultipleToCart(
        owner_email=email,
        owner_id=_owner_id(email, actor),
        items=json.dumps([item.model_dump() for item in body.items]),
    )
    result = current_domain.process(command, asynchronous=False)
    return AddMultipleResponse.from_cart(
        _cart(email),
        added=result["added"],
        merged=result["merged"],
        failed=result["failed"],
    )


@cart_router.put("/{email}/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    email: str,
    product_id: str,
    body: UpdateCartQuantityRequest,
    actor: Actor = Depends(current_actor),
) -> CartResponse:
    email = _owner_email(email, actor)
    command = UpdateCartQuantity(owner_email=email, product_id=product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return CartResponse.from_cart(_cart(email))


@cart_router.delete("/{email}/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(email: str, product_id: str, actor: Actor = Depends(current_actor)) -> CartResponse:
    email = _owner_email(email, actor)
    current_domain.process(RemoveFromCart(owner_email=email, product_id=product_id), asynchronous=False)
    return CartResponse.from_cart(_cart(email))


@cart_router.delete("/{email}", response_model=CartResponse)
async def clear_cart(email: str, actor: Actor = Depends(current_actor)) -> CartResponse:
    email = _owner_email(email, actor)
    current_domain.process(ClearCart(owner_email=email), asynchronous=False)
    return CartResponse.from_cart(_cart(email))


@cart_router.post("/{email}/batch", response_model=BatchUpdateResponse)
async def batch_update_cart(
    email: str,
    body: BatchUpdateCartRequest,
    actor: Actor = Depends(current_actor),
) -> BatchUpdateResponse:
    email = _owner_email(email, actor)
    command = BatchUpdateCart(
        owner_email=email,
        operations=json.dumps([op.model_dump() for op in body.operations]),
    )
    result = current_domain.process(command, asynchronous=False)
    return BatchUpdateResponse.from_cart(_cart(email), applied=result["applied"])


@cart_router.post("/{email}/preview-merge", response_model=PreviewMergeResponse)
async def preview_merge(
    email: str,
    body: PreviewMergeRequest,
    actor: Actor = Depends(current_actor),
) -> PreviewMergeResponse:
    email = _owner_email(email, actor)
    preview = _cart(email).preview_merge([item.model_dump() for item in body.items])
    return PreviewMergeResponse(**preview)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _order_envelope(order_id) -> OrderEnvelope:
    order = current_domain.repository_for(Order).get(order_id)
    return OrderEnvelope(order=OrderResponse.from_order(order))


@order_router.post("", status_code=201, response_model=OrderEnvelope)
async def checkout(body: CheckoutRequest, actor: Actor = Depends(current_actor)) -> OrderEnvelope:
    command = PlaceOrder(
        buyer_id=actor.id,
        items=json.dumps([item.model_dump() for item in body.items]) if body.items else None,
        from_cart=body.from_cart,
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        payment_method=body.payment_method,
        notes=body.notes,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)


@order_router.get("/mine", response_model=OrderListResponse)
async def my_orders(status: str | None = None, actor: Actor = Depends(current_actor)) -> OrderListResponse:
    orders = current_domain.repository_for(Order).visible_to(
        actor.role,
        actor.id,
        actor_region=actor_region(actor),
        status=status,
    )
    return OrderListResponse(orders=[OrderResponse.from_order(o) for o in orders])


@order_router.get("/{order_id}", response_model=OrderEnvelope)
async def get_order(order_id: str, actor: Actor = Depends(current_actor)) -> OrderEnvelope:
    order = current_domain.repository_for(Order).get(order_id)
    authorize(actor.role, actor.id, order, Operation.VIEW, actor_region=actor_region(actor))
    return OrderEnvelope(order=OrderResponse.from_order(order))


@order_router.patch("/{order_id}/delivery-status", response_model=OrderEnvelope)
async def update_delivery_status(
    order_id: str,
    body: DeliveryStatusRequest,
    actor: Actor = Depends(current_actor),
) -> OrderEnvelope:
    command = UpdateDeliveryStatus(
        order_id=order_id,
        delivery_status=body.delivery_status,
        actor_id=actor.id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)


@order_router.post("/{order_id}/complete", response_model=OrderEnvelope)
async def complete_order(order_id: str, actor: Actor = Depends(current_actor)) -> OrderEnvelope:
    command = CompleteOrder(order_id=order_id, actor_id=actor.id, actor_role=actor.role)
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)


@order_router.post("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    command = CancelOrder(order_id=order_id, actor_id=actor.id, actor_role=actor.role)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(message="Order cancelled successfully")


@order_router.post("/{order_id}/return", response_model=OrderEnvelope)
async def return_order(order_id: str, actor: Actor = Depends(current_actor)) -> OrderEnvelope:
    command = ReturnOrder(order_id=order_id, actor_id=actor.id, actor_role=actor.role)
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)
