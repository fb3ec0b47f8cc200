import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from propcomms.core.datetime_utils import utcnow
from propcomms.core.exceptions import ForbiddenError
from propcomms.messaging.models import ThreadArchive
from propcomms.messaging.repositories.thread_repository import ThreadRepository
from propcomms.messaging.services import access_policy

logger = logging.getLogger(__name__)


class ArchiveService:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.threads = ThreadRepository(db)
        self.clock = clock

    def archive(
        self,
        thread_id: UUID,
        caller_role: Any,
        caller_id: UUID,
        reason: str | None = None,
        *,
        organization_id: UUID,
    ) -> ThreadArchive:
        """Archive a thread, or overwrite who archived it and why on repeat calls.

        Only administrators of the thread's own organization may archive it.
        """
        if not access_policy.can_archive(caller_role):
            raise ForbiddenError("Only administrators can archive threads")
        thread = self.threads.get_thread(thread_id)
        if thread.organization_id != organization_id:
            raise ForbiddenError("This thread belongs to another organization")

        archive = self.threads.upsert_archive(
            thread_id=thread_id,
            archived_by=caller_id,
            reason=(reason or "").strip() or None,
            archived_at=self.clock(),
        )
        self.db.commit()
        logger.info("Thread %s archived by %s", thread_id, caller_id)
        return archive
