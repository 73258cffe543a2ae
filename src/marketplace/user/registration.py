"""User registration and role management: commands and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.auth.tokens import hash_password
from marketplace.domain import marketplace
from marketplace.shared.errors import DuplicateError, ForbiddenError
from marketplace.user.user import Role, User

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="User")
class RegisterUser:
    """Create a consumer account. The role is never taken from the caller."""

    name = String(required=True, max_length=100)
    email = String(required=True, max_length=254)
    password = String(required=True, min_length=6, max_length=128)
    phone_number = String(max_length=20)
    region = String(max_length=100)
    district = String(max_length=100)


@marketplace.command(part_of="User")
class CreateAdmin:
    name = String(required=True, max_length=100)
    email = String(required=True, max_length=254)
    password = String(required=True, min_length=6, max_length=128)


@marketplace.command(part_of="User")
class ChangeUserRole:
    actor_role = String(required=True)
    user_id = Identifier(required=True)
    role = String(required=True, choices=Role)
    region = String(max_length=100)
    district = String(max_length=100)


@marketplace.command_handler(part_of=User)
class UserAccountHandler:
    @handle(RegisterUser)
    def register_user(self, command):
        repo = current_domain.repository_for(User)
        if repo.find_by_email(command.email):
            raise DuplicateError("A user with this email already exists", field="email")

        user = User.register(
            name=command.name,
            email=command.email,
            password_hash=hash_password(command.password),
            phone_number=command.phone_number,
            region=command.region,
            district=command.district,
        )
        repo.add(user)
        logger.info("User registered", user_id=str(user.id))
        return str(user.id)

    @handle(CreateAdmin)
    def create_admin(self, command):
        repo = current_domain.repository_for(User)
        if repo.find_by_email(command.email):
            raise DuplicateError("A user with this email already exists", field="email")

        user = User.register(
            name=command.name,
            email=command.email,
            password_hash=hash_password(command.password),
        )
        user.change_role(Role.ADMIN.value)
        repo.add(user)
        logger.info("Admin account created", user_id=str(user.id))
        return str(user.id)

    @handle(ChangeUserRole)
    def change_user_role(self, command):
        if command.actor_role != Role.ADMIN.value:
            raise ForbiddenError("Only admins can change user roles")

        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        user.change_role(command.role, region=command.region, district=command.district)
        repo.add(user)
        logger.info("User role changed", user_id=str(user.id), role=user.role)
        return user.to_profile()
