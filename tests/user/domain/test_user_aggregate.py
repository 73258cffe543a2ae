"""Tests for the User aggregate."""

import pytest
from protean.exceptions import ValidationError

from marketplace.user.events import UserRegistered, UserRoleChanged
from marketplace.user.user import Role, User


def _register(**overrides):
    fields = {"name": "Rahim", "email": " Rahim@Example.com ", "password_hash": "hashed"}
    fields.update(overrides)
    return User.register(**fields)


class TestRegistration:
    def test_registered_user_is_an_unverified_consumer(self):
        user = _register()
        assert user.role == Role.CONSUMER.value
        assert user.verified is False
        assert user.is_active is True

    def test_email_is_normalised(self):
        assert _register().email == "rahim@example.com"

    def test_registration_raises_event(self):
        user = _register()
        registered = [e for e in user._events if isinstance(e, UserRegistered)]
        assert len(registered) == 1
        assert registered[0].email == "rahim@example.com"

    def test_unknown_role_is_rejected(self):
        with pytest.raises(ValidationError):
            User(name="X", email="x@example.com", password_hash="h", role="overlord")


class TestRoleChange:
    def test_promotion_to_seller_verifies(self):
        user = _register()
        user.change_role(Role.SELLER.value, region="Rajshahi", district="Bogra")

        assert user.role == Role.SELLER.value
        assert user.is_verified_seller is True
        assert user.region == "Rajshahi"
        changed = [e for e in user._events if isinstance(e, UserRoleChanged)]
        assert changed[-1].previous_role == Role.CONSUMER.value

    def test_agent_needs_a_region(self):
        user = _register()
        with pytest.raises(ValidationError):
            user.change_role(Role.AGENT.value)

    def test_agent_keeps_existing_region(self):
        user = _register(region="Sylhet")
        user.change_role(Role.AGENT.value)
        assert user.region == "Sylhet"

    def test_consumer_is_not_a_verified_seller(self):
        assert _register().is_verified_seller is False

    def test_unknown_target_role(self):
        with pytest.raises(ValidationError):
            _register().change_role("overlord")


def test_profile_hides_password_hash():
    profile = _register(region="Dhaka").to_profile()
    assert "password_hash" not in profile
    assert profile["email"] == "rahim@example.com"
    assert profile["region"] == "Dhaka"
