"""Tests for the Product aggregate: moderation and stock movements."""

import pytest
from protean.exceptions import ValidationError

from marketplace.product.events import ProductApproved, ProductListed, StockReleased, StockReserved
from marketplace.product.product import Product, ProductStatus, SellerInfo
from marketplace.shared.errors import (
    ForbiddenError,
    InsufficientStock,
    InvalidInput,
    InvalidTransition,
    ProductUnavailable,
)


def _make_product(status=None, stock=10, region="Dhaka", **overrides):
    defaults = {
        "title": "Miniket Rice",
        "crop_type": "rice",
        "price_per_unit": 50.0,
        "available_stock": stock,
        "minimum_order_quantity": 2,
        "seller": SellerInfo(seller_id="seller-001", name="Karim", email="karim@example.com", region=region),
    }
    defaults.update(overrides)
    product = Product.create(**defaults)
    if status == ProductStatus.APPROVED.value:
        product.approve("admin-001", "admin")
    return product


class TestProductCreation:
    def test_new_product_is_pending(self):
        product = _make_product()
        assert product.status == ProductStatus.PENDING.value
        assert product.available_stock == 10

    def test_listing_raises_event(self):
        product = _make_product()
        listed = [e for e in product._events if isinstance(e, ProductListed)]
        assert len(listed) == 1
        assert listed[0].region == "Dhaka"

    def test_negative_stock_is_rejected(self):
        with pytest.raises(ValidationError):
            _make_product(stock=-1)

    def test_unknown_unit_is_rejected(self):
        with pytest.raises(ValidationError):
            _make_product(unit="barrel")


class TestModeration:
    def test_admin_can_approve_any_region(self):
        product = _make_product(region="Sylhet")
        product.approve("admin-001", "admin")
        assert product.status == ProductStatus.APPROVED.value
        assert product.approved_by == "admin-001"
        assert product.approved_at is not None
        assert any(isinstance(e, ProductApproved) for e in product._events)

    def test_agent_can_approve_in_own_region(self):
        product = _make_product(region="Dhaka")
        product.approve("agent-001", "agent", reviewer_region="dhaka")
        assert product.status == ProductStatus.APPROVED.value

    def test_agent_cannot_approve_outside_region(self):
        product = _make_product(region="Khulna")
        with pytest.raises(ForbiddenError):
            product.approve("agent-001", "agent", reviewer_region="Dhaka")
        assert product.status == ProductStatus.PENDING.value

    def test_consumer_cannot_moderate(self):
        product = _make_product()
        with pytest.raises(ForbiddenError):
            product.approve("user-001", "consumer")

    def test_reject_requires_reason(self):
        product = _make_product()
        with pytest.raises(InvalidInput):
            product.reject("admin-001", "admin", "  ")

    def test_reject_records_reason(self):
        product = _make_product()
        product.reject("admin-001", "admin", "Blurry photos")
        assert product.status == ProductStatus.REJECTED.value
        assert product.rejection_reason == "Blurry photos"

    def test_rejected_product_can_be_approved_later(self):
        product = _make_product()
        product.reject("admin-001", "admin", "Missing details")
        product.approve("admin-001", "admin")
        assert product.status == ProductStatus.APPROVED.value
        assert product.rejection_reason is None

    def test_cannot_approve_twice(self):
        product = _make_product(status=ProductStatus.APPROVED.value)
        with pytest.raises(InvalidTransition):
            product.approve("admin-001", "admin")


class TestStock:
    def test_reserve_decrements_and_returns_price(self):
        product = _make_product(status=ProductStatus.APPROVED.value)
        price = product.reserve(4)
        assert price == 50.0
        assert product.available_stock == 6
        reserved = [e for e in product._events if isinstance(e, StockReserved)]
        assert reserved[-1].remaining == 6

    def test_reserve_more_than_stock_fails_without_change(self):
        product = _make_product(status=ProductStatus.APPROVED.value, stock=3)
        with pytest.raises(InsufficientStock):
            product.reserve(4)
        assert product.available_stock == 3

    def test_reserving_last_unit_sells_out(self):
        product = _make_product(status=ProductStatus.APPROVED.value, stock=5)
        product.reserve(5)
        assert product.available_stock == 0
        assert product.status == ProductStatus.SOLD_OUT.value

    def test_sold_out_product_cannot_be_reserved(self):
        product = _make_product(status=ProductStatus.APPROVED.value, stock=1)
        product.reserve(1)
        with pytest.raises(InsufficientStock):
            product.reserve(1)

    def test_pending_product_cannot_be_reserved(self):
        product = _make_product()
        with pytest.raises(ProductUnavailable):
            product.reserve(1)

    def test_reserve_rejects_non_positive_quantity(self):
        product = _make_product(status=ProductStatus.APPROVED.value)
        with pytest.raises(InvalidInput):
            product.reserve(0)

    def test_release_restores_stock(self):
        product = _make_product(status=ProductStatus.APPROVED.value)
        product.reserve(4)
        product.release(4)
        assert product.available_stock == 10
        assert any(isinstance(e, StockReleased) for e in product._events)

    def test_release_brings_sold_out_back(self):
        product = _make_product(status=ProductStatus.APPROVED.value, stock=2)
        product.reserve(2)
        product.release(1)
        assert product.status == ProductStatus.APPROVED.value
        assert product.available_stock == 1
