"""Role-level authorization decisions for thread messaging.

Everything here except :func:`is_participant` is a pure function of
canonical roles. Raw claims are run through ``resolve_role`` first, so
callers may pass either a :class:`Role` or whatever the identity service
supplied.
"""

from typing import Any
from uuid import UUID

from propcomms.core.roles import Role, resolve_role
from propcomms.messaging.repositories.thread_repository import ThreadRepository

# sender -> roles it may open a direct conversation with. Deliberately
# asymmetric: tenants reach admins only through escalation.
DIRECT_MESSAGE_RULES: dict[Role, frozenset[Role]] = {
    Role.TENANT: frozenset({Role.MANAGER}),
    Role.MANAGER: frozenset({Role.TENANT, Role.OWNER, Role.ADMIN}),
    Role.OWNER: frozenset({Role.MANAGER, Role.ADMIN}),
    Role.ADMIN: frozenset({Role.MANAGER, Role.OWNER, Role.SUPERADMIN}),
    Role.SUPERADMIN: frozenset(
        {Role.TENANT, Role.MANAGER, Role.OWNER, Role.ADMIN, Role.SUPERADMIN, Role.VENDOR}
    ),
}

ESCALATING_ROLES: frozenset[Role] = frozenset({Role.TENANT, Role.MANAGER, Role.OWNER})
ADMINISTRATIVE_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.SUPERADMIN})


def can_direct_message(sender_role: Any, recipient_role: Any) -> bool:
    allowed = DIRECT_MESSAGE_RULES.get(resolve_role(sender_role), frozenset())
    return resolve_role(recipient_role) in allowed


def can_escalate(caller_role: Any) -> bool:
    return resolve_role(caller_role) in ESCALATING_ROLES


def can_escalate_to(target_role: Any) -> bool:
    return resolve_role(target_role) in ADMINISTRATIVE_ROLES


def can_archive(caller_role: Any) -> bool:
    return resolve_role(caller_role) in ADMINISTRATIVE_ROLES


def can_view_organization(caller_role: Any) -> bool:
    """Organization-wide thread listings are an administrative view."""
    return resolve_role(caller_role) in ADMINISTRATIVE_ROLES


def is_participant(repository: ThreadRepository, thread_id: UUID, user_id: UUID) -> bool:
    return repository.is_participant(thread_id, user_id)
