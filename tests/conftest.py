import os
import uuid
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before the domain is imported anywhere."""
    os.environ["PROTEAN_ENV"] = session.config.option.env
    # Cheap hashes keep account-heavy tests fast
    os.environ.setdefault("BCRYPT_ROUNDS", "4")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def marketplace_bed():
    from protean.integrations.pytest import DomainFixture

    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session", autouse=True)
def setup_db(marketplace_bed):
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db, setup_db

    setup_db(marketplace)

    yield

    drop_db(marketplace)


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_user():
    """Create a persisted user with the given role."""
    from protean import current_domain

    from marketplace.user.registration import RegisterUser
    from marketplace.user.user import Role, User

    def _make(role=Role.CONSUMER.value, email=None, name="Test User", region="Dhaka", district="Gazipur",
              password="secret123"):
        email = email or f"{role}-{uuid.uuid4().hex[:8]}@example.com"
        user_id = current_domain.process(
            RegisterUser(name=name, email=email, password=password, region=region, district=district),
            asynchronous=False,
        )
        repo = current_domain.repository_for(User)
        if role != Role.CONSUMER.value:
            user = repo.get(user_id)
            user.change_role(role, region=region, district=district)
            repo.add(user)
        return repo.get(user_id)

    return _make


@pytest.fixture()
def make_product(make_user):
    """List a product for a (new) verified seller and, by default, approve it."""
    from protean import current_domain

    from marketplace.product.listing import ListProduct
    from marketplace.product.moderation import ApproveProduct
    from marketplace.product.product import Product

    def _make(seller=None, approve=True, **overrides):
        seller = seller or make_user(role="seller")
        fields = {
            "title": "Miniket Rice",
            "crop_type": "rice",
            "price_per_unit": 50.0,
            "unit": "kg",
            "minimum_order_quantity": 1,
            "available_stock": 10,
        }
        fields.update(overrides)
        product_id = current_domain.process(ListProduct(seller_id=seller.id, **fields), asynchronous=False)
        if approve:
            admin = make_user(role="admin")
            current_domain.process(
                ApproveProduct(product_id=product_id, reviewer_id=admin.id, reviewer_role="admin"),
                asynchronous=False,
            )
        return current_domain.repository_for(Product).get(product_id)

    return _make


@pytest.fixture()
def shipping_address():
    return {
        "recipient_name": "Rahim Uddin",
        "phone": "+8801700000000",
        "address": "House 12, Road 5, Dhanmondi",
        "district": "Dhaka",
        "region": "Dhaka",
    }


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------
@pytest.fixture()
def client():
    from fastapi import FastAPI
    from fastapi.testclient import TestClient

    from marketplace.api import (
        application_router,
        auth_router,
        cart_router,
        order_router,
        product_router,
        region_router,
        register_error_handlers,
    )

    app = FastAPI()
    for router in (auth_router, application_router, product_router, region_router, cart_router, order_router):
        app.include_router(router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def auth_header():
    from marketplace.auth.tokens import issue_token

    def _header(user):
        return {"Authorization": f"Bearer {issue_token(user.id, user.email, user.role)}"}

    return _header
