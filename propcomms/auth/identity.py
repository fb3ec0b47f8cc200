from dataclasses import dataclass
from uuid import UUID

from propcomms.core.roles import Role


@dataclass(frozen=True)
class Caller:
    """The authenticated principal behind a request.

    ``raw_role`` is kept exactly as the identity service supplied it for audit
    purposes; every decision uses the resolved ``role``.
    """

    user_id: UUID
    organization_id: UUID
    role: Role
    raw_role: str | None = None
