import logging
from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends, Header
from sqlalchemy.orm import Session

from propcomms.auth.identity import Caller
from propcomms.core import security
from propcomms.core.exceptions import ForbiddenError, UnauthorizedError
from propcomms.core.log_config import bind_caller
from propcomms.core.roles import resolve_claims
from propcomms.db.session import get_db
from propcomms.users.models.user import User

logger = logging.getLogger(__name__)


async def get_access_token(
    access_token: Annotated[str | None, Cookie()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Extract the access token from the cookie, falling back to a Bearer header."""
    if access_token:
        return access_token
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    raise UnauthorizedError()


async def get_current_caller(
    access_token: str = Depends(get_access_token),
    db: Session = Depends(get_db),
) -> Caller:
    """Resolve the caller's identity and canonical role from the access token"""
    payload = security.decode_token(access_token)
    if payload is None or payload.get("type", "access") != "access":
        raise UnauthorizedError("Could not validate credentials")

    subject = payload.get("sub")
    try:
        user_id = UUID(str(subject))
    except ValueError:
        raise UnauthorizedError("Could not validate credentials") from None

    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    if not user.is_active:
        raise ForbiddenError("Account is inactive")
    bind_caller(user.id)

    # Token claims win over the stored projection, which may lag behind
    claim_role = payload.get("role")
    claim_roles = payload.get("roles")
    if claim_role is None and not claim_roles:
        claim_role, claim_roles = user.role, user.roles

    role = resolve_claims(role=claim_role, roles=claim_roles)
    raw = claim_roles[0] if isinstance(claim_roles, list) and claim_roles else claim_role
    return Caller(
        user_id=user.id,
        organization_id=user.organization_id,
        role=role,
        raw_role=str(raw) if raw is not None else None,
    )
