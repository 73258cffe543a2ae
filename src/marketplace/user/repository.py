"""Queries over the User aggregate."""

from marketplace.domain import marketplace
from marketplace.user.user import Role, User


@marketplace.repository(part_of=User)
class UserRepository:
    def find_by_email(self, email: str) -> User | None:
        if not email:
            return None
        users = self._dao.query.filter(email=email.strip().lower()).all().items
        return users[0] if users else None

    def find_agents(self, region: str | None = None) -> list[User]:
        agents = self._dao.query.filter(role=Role.AGENT.value).limit(None).all().items
        if region:
            agents = [a for a in agents if (a.region or "").lower() == region.lower()]
        return agents
