"""Request authentication for the API.

The token is read from ``Authorization: Bearer <token>`` first and from the
``jwt`` cookie otherwise.
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from protean.utils.globals import current_domain

from marketplace.auth.tokens import Actor, decode_token
from marketplace.shared.errors import ForbiddenError, UnauthorizedError
from marketplace.user.user import Role, User

TOKEN_COOKIE = "jwt"

bearer = HTTPBearer(scheme_name="AccessToken", bearerFormat="JWT", auto_error=False)


async def current_actor(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(bearer),
) -> Actor:
    token = credentials.credentials.strip() if credentials else request.cookies.get(TOKEN_COOKIE)
    if not token:
        raise UnauthorizedError("Authentication required")
    return decode_token(token)


def require_roles(*roles: Role):
    allowed = {role.value for role in roles}

    async def dependency(actor: Actor = Depends(current_actor)) -> Actor:
        if actor.role not in allowed:
            raise ForbiddenError("You do not have permission to perform this action")
        return actor

    return dependency


def actor_region(actor: Actor) -> str | None:
    """The operational region of an agent, read from their account."""
    if actor.role != Role.AGENT.value:
        return None
    return current_domain.repository_for(User).get(actor.id).region
