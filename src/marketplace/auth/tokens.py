"""Password hashing and access tokens.

Tokens are HS256 JWTs carrying ``{id, email, role}``. The secret, algorithm
and lifetime come from :mod:`marketplace.shared.settings`.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

from marketplace.shared import settings
from marketplace.shared.errors import UnauthorizedError


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as read from a verified token."""

    id: str
    email: str
    role: str


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=settings.bcrypt_rounds())).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def issue_token(user_id: str, email: str, role: str) -> str:
    now = datetime.now(UTC)
    payload = {
        "id": str(user_id),
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(hours=settings.token_lifetime_hours()),
    }
    return jwt.encode(payload, settings.jwt_secret(), algorithm=settings.jwt_algorithm())


def decode_token(token: str) -> Actor:
    try:
        payload = jwt.decode(token, settings.jwt_secret(), algorithms=[settings.jwt_algorithm()])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")

    if not all(payload.get(key) for key in ("id", "email", "role")):
        raise UnauthorizedError("Token is missing required claims")
    return Actor(id=str(payload["id"]), email=payload["email"], role=payload["role"])
