"""Shared BDD fixtures and step definitions for the Cart domain."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

from marketplace.cart.cart import Cart
from marketplace.product.product import Product, SellerInfo


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def products():
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an empty cart", target_fixture="cart")
def empty_cart():
    return Cart.open("buyer@example.com", owner_id="buyer-001")


@given(parsers.cfparse('an approved product "{title}" priced {price:f} with minimum order {moq:d}'))
def approved_product(products, title, price, moq):
    product = Product.create(
        title=title,
        crop_type="rice",
        price_per_unit=price,
        available_stock=100,
        minimum_order_quantity=moq,
        seller=SellerInfo(seller_id="seller-001", name="Karim", region="Dhaka"),
    )
    product.approve("admin-001", "admin")
    products[title] = product


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('{quantity:d} units of "{title}" are added'))
def add_units(cart, products, quantity, title, error):
    try:
        cart.add_item(products[title], quantity)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the quantity of "{title}" is set to {quantity:d}'))
def set_quantity(cart, products, title, quantity, error):
    try:
        cart.update_quantity(products[title].id, quantity)
    except ValidationError as exc:
        error["exc"] = exc


@when("the cart is cleared")
def clear_cart(cart):
    cart.clear()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the cart has {count:d} line"))
@then(parsers.cfparse("the cart has {count:d} lines"))
def line_count(cart, count):
    assert len(cart.items) == count


@then(parsers.cfparse('the line for "{title}" has quantity {quantity:d}'))
def line_quantity(cart, products, title, quantity):
    assert cart.line_for(products[title].id).quantity == quantity


@then(parsers.cfparse("the cart subtotal is {amount:f}"))
def subtotal(cart, amount):
    assert cart.subtotal == amount


@then(parsers.cfparse("the delivery charge is {amount:f}"))
def delivery_charge(cart, amount):
    assert cart.delivery_charge == amount


@then(parsers.cfparse('the cart is rejected with "{message}"'))
def rejected_with(error, message):
    assert error["exc"] is not None
    assert error["exc"].message == message
