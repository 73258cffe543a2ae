"""User aggregate: every account on the marketplace, whatever its role."""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String

from marketplace.domain import marketplace


class Role(Enum):
    CONSUMER = "consumer"
    SELLER = "seller"
    AGENT = "agent"
    ADMIN = "admin"


@marketplace.aggregate
class User:
    """A registered account.

    Registration always produces a consumer. Sellers and agents are promoted
    through an approved application; admins are created from the command line.
    Agents carry an operational region, which scopes what they may moderate
    and which orders they see.
    """

    name: String(required=True, max_length=100)
    email: String(required=True, max_length=254, unique=True)
    password_hash: String(required=True, max_length=255)
    role: String(choices=Role, default=Role.CONSUMER.value)
    phone_number: String(max_length=20)
    region: String(max_length=100)
    district: String(max_length=100)
    verified: Boolean(default=False)
    is_active: Boolean(default=True)
    created_at: DateTime()

    @invariant.post
    def agents_must_have_an_operational_region(self):
        if self.role == Role.AGENT.value and not self.region:
            raise ValidationError({"region": ["Agents must be assigned an operational region"]})

    @classmethod
    def register(cls, name, email, password_hash, phone_number=None, region=None, district=None):
        from marketplace.user.events import UserRegistered

        now = datetime.now(UTC)
        user = cls(
            name=name,
            email=email.strip().lower(),
            password_hash=password_hash,
            role=Role.CONSUMER.value,
            phone_number=phone_number,
            region=region,
            district=district,
            created_at=now,
        )
        user.raise_(
            UserRegistered(
                user_id=user.id,
                email=user.email,
                role=user.role,
                registered_at=now,
            )
        )
        return user

    def change_role(self, new_role, region=None, district=None):
        from marketplace.user.events import UserRoleChanged

        if new_role not in {r.value for r in Role}:
            raise ValidationError({"role": [f"Unknown role: {new_role}"]})

        previous_role = self.role
        if region:
            self.region = region
        if district:
            self.district = district
        self.role = new_role
        if new_role in (Role.SELLER.value, Role.AGENT.value, Role.ADMIN.value):
            self.verified = True

        self.raise_(
            UserRoleChanged(
                user_id=self.id,
                previous_role=previous_role,
                new_role=new_role,
                region=self.region,
            )
        )

    @property
    def is_verified_seller(self):
        return self.role == Role.SELLER.value and bool(self.verified)

    def to_profile(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "phone_number": self.phone_number,
            "region": self.region,
            "district": self.district,
            "verified": bool(self.verified),
        }
