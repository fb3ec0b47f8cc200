"""Read-only lookups over the identity projection in ``users``."""

from dataclasses import dataclass
from typing import cast
from uuid import UUID

from sqlalchemy.orm import Session

from propcomms.core.roles import Role, resolve_claims
from propcomms.users.models.user import User


@dataclass(frozen=True)
class Contact:
    """Delivery addresses for one user; None means the channel is unavailable."""

    user_id: UUID
    name: str
    email: str | None = None
    phone: str | None = None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class UserDirectory:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_user(self, user_id: UUID) -> User | None:
        return cast(User | None, self.db.get(User, user_id))

    def get_users(self, user_ids: list[UUID]) -> dict[UUID, User]:
        if not user_ids:
            return {}
        users = self.db.query(User).filter(User.id.in_(user_ids)).all()
        return {u.id: u for u in users}

    @staticmethod
    def canonical_role(user: User) -> Role:
        return resolve_claims(role=user.role, roles=user.roles)

    @staticmethod
    def contact_for(user: User) -> Contact:
        return Contact(
            user_id=user.id,
            name=user.name,
            email=_clean(user.email),
            phone=_clean(user.phone),
        )

    def find_role_holder(self, organization_id: UUID, role: Role) -> User | None:
        """Pick the longest-standing active user of the organization holding ``role``.

        Role claims are free-form, so matching happens after canonical
        resolution rather than in SQL.
        """
        candidates = (
            self.db.query(User)
            .filter(
                User.organization_id == organization_id,
                User.is_active == True,  # noqa: E712
            )
            .order_by(User.created_at.asc(), User.id.asc())
            .all()
        )
        return next((u for u in candidates if self.canonical_role(u) == role), None)
