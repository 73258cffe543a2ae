"""Credential checks for login."""

from protean.utils.globals import current_domain

from marketplace.auth.tokens import issue_token, verify_password
from marketplace.shared.errors import NotFoundError, UnauthorizedError
from marketplace.user.user import User


def authenticate(email: str, password: str) -> tuple[str, User]:
    """Return a fresh token and the user for valid credentials."""
    user = current_domain.repository_for(User).find_by_email(email)
    if user is None:
        raise NotFoundError("No account found for this email", field="email")
    if not user.is_active:
        raise UnauthorizedError("Account is disabled")
    if not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid credentials", field="password")
    return issue_token(user.id, user.email, user.role), user
