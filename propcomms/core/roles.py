"""Canonical role resolution.

Role claims arrive in several shapes: a single ``role`` string, a ``roles``
list whose first entry is authoritative, mixed case, and a handful of
synonyms accumulated over the product's lifetime ("Super Admin", "su",
"property_manager", "Landlord", ...). Every authorization decision compares
roles through :func:`resolve_role` so that all of them agree.
"""

import enum
import re
from collections.abc import Sequence
from typing import Any


class Role(str, enum.Enum):
    TENANT = "tenant"
    MANAGER = "manager"
    OWNER = "owner"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"
    VENDOR = "vendor"
    UNKNOWN = "unknown"


ROLE_SYNONYMS: dict[str, Role] = {
    "tenant": Role.TENANT,
    "manager": Role.MANAGER,
    "property_manager": Role.MANAGER,
    "propertymanager": Role.MANAGER,
    "owner": Role.OWNER,
    "landlord": Role.OWNER,
    "admin": Role.ADMIN,
    "superadmin": Role.SUPERADMIN,
    "super_admin": Role.SUPERADMIN,
    "su": Role.SUPERADMIN,
    "vendor": Role.VENDOR,
    "service_provider": Role.VENDOR,
    "serviceprovider": Role.VENDOR,
}

_SEPARATORS = re.compile(r"[\s\-]+")


def _normalize_label(value: str) -> str:
    return _SEPARATORS.sub("_", value.strip().lower())


def resolve_role(raw: Any) -> Role:
    """Map a raw role claim onto the closed :class:`Role` set.

    Accepts a string, a :class:`Role`, or a list/tuple whose first element is
    used. Anything unrecognised resolves to ``Role.UNKNOWN``; this function
    never raises.
    """
    if isinstance(raw, Role):
        return raw
    if isinstance(raw, Sequence) and not isinstance(raw, str):
        raw = raw[0] if len(raw) > 0 else None
    if not isinstance(raw, str):
        return Role.UNKNOWN
    return ROLE_SYNONYMS.get(_normalize_label(raw), Role.UNKNOWN)


def resolve_claims(role: Any = None, roles: Any = None) -> Role:
    """Resolve a user record or token carrying both ``role`` and ``roles``.

    A non-empty ``roles`` list takes precedence over the scalar field.
    """
    if isinstance(roles, Sequence) and not isinstance(roles, str) and len(roles) > 0:
        return resolve_role(roles)
    return resolve_role(role)
