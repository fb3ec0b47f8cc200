"""Escalation of a thread to an administrative role.

Escalation is append-only: every call writes a new audit row, and the
chosen role holder is added through the idempotent participant upsert so a
holder who is already present is left untouched.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from propcomms.core.exceptions import ForbiddenError, InvalidArgumentError
from propcomms.core.roles import resolve_role
from propcomms.messaging.models import ThreadEscalation
from propcomms.messaging.repositories.thread_repository import ThreadRepository
from propcomms.messaging.services import access_policy
from propcomms.users.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)


class EscalationService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.threads = ThreadRepository(db)
        self.directory = UserDirectory(db)

    def escalate(
        self,
        thread_id: UUID,
        caller_role: Any,
        target_role: Any,
        reason: str | None = None,
        caller_id: UUID | None = None,
        *,
        organization_id: UUID,
    ) -> ThreadEscalation:
        if not access_policy.can_escalate(caller_role):
            raise ForbiddenError("Your role cannot escalate threads")
        if not access_policy.can_escalate_to(target_role):
            raise InvalidArgumentError(
                "Threads can only be escalated to admin or superadmin", field="to_role"
            )

        from_role = resolve_role(caller_role)
        to_role = resolve_role(target_role)
        thread = self.threads.get_thread(thread_id)
        if thread.organization_id != organization_id:
            raise ForbiddenError("This thread belongs to another organization")

        holder = self.directory.find_role_holder(thread.organization_id, to_role)
        escalation = self.threads.create_escalation(
            thread_id=thread_id,
            from_role=from_role.value,
            to_role=to_role.value,
            reason=(reason or "").strip() or None,
            escalated_by_id=caller_id,
            assigned_user_id=holder.id if holder else None,
        )
        if holder is not None:
            self.threads.add_participant(thread_id, holder.id, to_role.value)
        else:
            logger.warning(
                "No %s found in organization %s; thread %s escalated without a handler",
                to_role.value,
                thread.organization_id,
                thread_id,
            )

        self.db.commit()
        self.db.refresh(escalation)
        logger.info(
            "Thread %s escalated from %s to %s (assigned=%s)",
            thread_id,
            from_role.value,
            to_role.value,
            escalation.assigned_user_id,
        )
        return escalation
