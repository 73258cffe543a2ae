"""Application tests for moving orders after checkout."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError

from marketplace.order.cancellation import CancelOrder
from marketplace.order.completion import CompleteOrder
from marketplace.order.delivery import UpdateDeliveryStatus
from marketplace.order.order import Order, OrderStatus
from marketplace.order.returns import ReturnOrder
from marketplace.product.product import Product
from marketplace.shared.errors import AlreadyTerminal, ForbiddenError, InvalidTransition, NotCancellable
from marketplace.user.user import User


def _deliver(order_id, status, actor):
    return current_domain.process(
        UpdateDeliveryStatus(order_id=order_id, delivery_status=status, actor_id=actor.id, actor_role=actor.role),
        asynchronous=False,
    )


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).available_stock


class TestDeliveryUpdates:
    def test_seller_hands_over_then_agent_delivers(self, make_user, place_order):
        order_id, _, product = place_order()
        seller = current_domain.repository_for(User).get(product.seller.seller_id)
        agent = make_user(role="agent")

        _deliver(order_id, "to_agent", seller)
        _deliver(order_id, "on_the_way", agent)
        _deliver(order_id, "delivered", agent)

        order = _order(order_id)
        assert order.status == OrderStatus.COMPLETED.value
        assert [e.delivery_status for e in order.history] == ["packaging", "to_agent", "on_the_way", "delivered"]

    def test_seller_cannot_mark_delivered(self, place_order):
        order_id, _, product = place_order()
        seller = current_domain.repository_for(User).get(product.seller.seller_id)

        with pytest.raises(InvalidTransition):
            _deliver(order_id, "delivered", seller)
        assert _order(order_id).delivery_status == "packaging"

    def test_backward_move_is_rejected(self, make_user, place_order):
        order_id, _, _ = place_order()
        admin = make_user(role="admin")
        _deliver(order_id, "reached", admin)

        with pytest.raises(InvalidTransition):
            _deliver(order_id, "on_the_way", admin)
        assert _order(order_id).delivery_status == "reached"

    def test_stranger_cannot_update(self, make_user, place_order):
        order_id, _, _ = place_order()
        with pytest.raises(ForbiddenError):
            _deliver(order_id, "delivered", make_user())

    def test_terminal_order_rejects_updates(self, make_user, place_order):
        order_id, buyer, _ = place_order()
        _deliver(order_id, "delivered", buyer)

        with pytest.raises(AlreadyTerminal):
            _deliver(order_id, "delivered", make_user(role="admin"))


class TestCompletion:
    def test_buyer_completes(self, place_order):
        order_id, buyer, _ = place_order()
        current_domain.process(
            CompleteOrder(order_id=order_id, actor_id=buyer.id, actor_role=buyer.role),
            asynchronous=False,
        )
        order = _order(order_id)
        assert order.status == OrderStatus.COMPLETED.value
        assert order.delivery_status == "delivered"

    def test_admin_cannot_complete_for_buyer(self, make_user, place_order):
        order_id, _, _ = place_order()
        admin = make_user(role="admin")
        with pytest.raises(ForbiddenError):
            current_domain.process(
                CompleteOrder(order_id=order_id, actor_id=admin.id, actor_role="admin"),
                asynchronous=False,
            )


class TestCancellation:
    def test_cancel_restores_stock_and_removes_order(self, make_product, place_order):
        product = make_product(available_stock=10)
        order_id, buyer, _ = place_order(quantity=5, product=product)
        assert _stock(product.id) == 5

        result = current_domain.process(
            CancelOrder(order_id=order_id, actor_id=buyer.id, actor_role=buyer.role),
            asynchronous=False,
        )

        assert result == {"order_id": order_id, "released": [product.id]}
        assert _stock(product.id) == 10
        with pytest.raises(ObjectNotFoundError):
            _order(order_id)

    def test_cancel_after_packaging_is_refused(self, make_user, place_order):
        order_id, buyer, product = place_order()
        _deliver(order_id, "to_agent", make_user(role="admin"))

        with pytest.raises(NotCancellable):
            current_domain.process(
                CancelOrder(order_id=order_id, actor_id=buyer.id, actor_role=buyer.role),
                asynchronous=False,
            )
        assert _order(order_id).status == OrderStatus.PENDING.value
        assert _stock(product.id) == 5

    def test_seller_cannot_cancel(self, make_user, place_order):
        order_id, _, product = place_order()
        with pytest.raises(ForbiddenError):
            current_domain.process(
                CancelOrder(order_id=order_id, actor_id=product.seller.seller_id, actor_role="seller"),
                asynchronous=False,
            )

    def test_cancelling_sold_out_product_relists_it(self, make_product, place_order):
        product = make_product(available_stock=2)
        order_id, buyer, _ = place_order(quantity=2, product=product)

        current_domain.process(
            CancelOrder(order_id=order_id, actor_id=buyer.id, actor_role=buyer.role),
            asynchronous=False,
        )
        relisted = current_domain.repository_for(Product).get(product.id)
        assert relisted.status == "approved"
        assert relisted.available_stock == 2


class TestReturns:
    def test_agent_returns_order_and_stock_comes_back(self, make_user, place_order):
        order_id, _, product = place_order(quantity=3)
        agent = make_user(role="agent")
        _deliver(order_id, "reached", agent)

        current_domain.process(
            ReturnOrder(order_id=order_id, actor_id=agent.id, actor_role="agent"),
            asynchronous=False,
        )

        order = _order(order_id)
        assert order.status == OrderStatus.RETURNED.value
        assert order.returned_at is not None
        assert _stock(product.id) == 10

    def test_consumer_cannot_return(self, place_order):
        order_id, buyer, _ = place_order()
        with pytest.raises(ForbiddenError):
            current_domain.process(
                ReturnOrder(order_id=order_id, actor_id=buyer.id, actor_role=buyer.role),
                asynchronous=False,
            )


class TestVisibility:
    def test_each_role_sees_its_orders(self, make_user, make_product, place_order):
        rajshahi_seller = make_user(role="seller", region="Rajshahi")
        mine, buyer, _ = place_order()
        theirs, _, _ = place_order(product=make_product(seller=rajshahi_seller))

        repo = current_domain.repository_for(Order)
        assert [o.id for o in repo.visible_to("consumer", buyer.id)] == [mine]
        assert [o.id for o in repo.visible_to("seller", rajshahi_seller.id)] == [theirs]
        assert [o.id for o in repo.visible_to("agent", "agent-x", actor_region="Rajshahi")] == [theirs]
        assert len(repo.visible_to("admin", "admin-x")) == 2
