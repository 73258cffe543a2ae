"""Shared BDD fixtures and step definitions for the Order domain."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

from marketplace.order.cancellation import CancelOrder
from marketplace.order.delivery import UpdateDeliveryStatus
from marketplace.order.order import Order
from marketplace.order.placement import PlaceOrder
from marketplace.product.product import Product
from marketplace.shared.errors import error_message


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def placed():
    return {"order_id": None}


def _run(command, error):
    try:
        return current_domain.process(command, asynchronous=False)
    except ValidationError as exc:
        error["exc"] = exc
        return None


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a registered buyer", target_fixture="buyer")
def registered_buyer(make_user):
    return make_user()


@given(parsers.cfparse("an approved product with {stock:d} units in stock"), target_fixture="product")
def approved_product(make_product, stock):
    return make_product(available_stock=stock)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the buyer orders {quantity:d} units"))
def buyer_orders(buyer, product, quantity, shipping_address, placed, error):
    placed["order_id"] = _run(
        PlaceOrder(
            buyer_id=buyer.id,
            items=json.dumps([{"product_id": product.id, "quantity": quantity}]),
            shipping_address=json.dumps(shipping_address),
        ),
        error,
    )


@when("the buyer cancels the order")
def buyer_cancels(buyer, placed, error):
    _run(CancelOrder(order_id=placed["order_id"], actor_id=buyer.id, actor_role=buyer.role), error)


@when(parsers.cfparse('an admin sets the delivery status to "{status}"'))
def admin_sets_delivery(make_user, placed, status, error):
    admin = make_user(role="admin")
    _run(
        UpdateDeliveryStatus(order_id=placed["order_id"], delivery_status=status, actor_id=admin.id, actor_role="admin"),
        error,
    )


@when(parsers.cfparse('the buyer sets the delivery status to "{status}"'))
def buyer_sets_delivery(buyer, placed, status, error):
    _run(
        UpdateDeliveryStatus(
            order_id=placed["order_id"], delivery_status=status, actor_id=buyer.id, actor_role=buyer.role
        ),
        error,
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the product has {stock:d} units in stock"))
def product_stock(product, stock):
    assert current_domain.repository_for(Product).get(product.id).available_stock == stock


@then("the order no longer exists")
def order_gone(placed):
    assert current_domain.repository_for(Order)._dao.query.filter(id=placed["order_id"]).all().total == 0


@then(parsers.cfparse('the request is refused with "{message}"'))
def refused_with(error, message):
    assert error["exc"] is not None
    assert error_message(error["exc"]) == message


@then(parsers.cfparse('the delivery status is "{status}"'))
def delivery_status(placed, status):
    assert current_domain.repository_for(Order).get(placed["order_id"]).delivery_status == status


@then(parsers.cfparse('the order status is "{status}"'))
def order_status(placed, status):
    assert current_domain.repository_for(Order).get(placed["order_id"]).status == status


@then(parsers.cfparse("the order timeline has {count:d} entries"))
def timeline_entries(placed, count):
    assert len(current_domain.repository_for(Order).get(placed["order_id"]).timeline) == count
