from uuid import UUID

from sqlalchemy.orm import Session

from propcomms.auth.identity import Caller
from propcomms.core.constants import LIST_PREVIEW_MAX_LENGTH, PREVIEW_ELLIPSIS
from propcomms.core.exceptions import ForbiddenError, InvalidArgumentError
from propcomms.messaging.models import MessageThread
from propcomms.messaging.repositories.thread_repository import ThreadRepository
from propcomms.messaging.schemas.message import MessageResponse
from propcomms.messaging.schemas.thread import (
    ArchiveInfo,
    EscalationInfo,
    MessagePreview,
    ParticipantInfo,
    ThreadDetail,
    ThreadListItem,
    ThreadListResponse,
)
from propcomms.messaging.services import access_policy

SCOPE_MINE = "mine"
SCOPE_ORGANIZATION = "organization"


class ThreadService:
    """Read side of messaging: thread listings and thread detail."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.threads = ThreadRepository(db)

    def list_threads(
        self,
        caller: Caller,
        scope: str = SCOPE_MINE,
        include_archived: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> ThreadListResponse:
        if scope == SCOPE_MINE:
            threads, total = self.threads.list_threads_for_user(
                caller.user_id, include_archived=include_archived, page=page, limit=limit
            )
        elif scope == SCOPE_ORGANIZATION:
            if not access_policy.can_view_organization(caller.role):
                raise ForbiddenError("Only administrators can list organization threads")
            threads, total = self.threads.list_threads_for_organization(
                caller.organization_id, include_archived=include_archived, page=page, limit=limit
            )
        else:
            raise InvalidArgumentError(f"Unknown scope '{scope}'", field="scope")

        return ThreadListResponse(
            threads=[self._build_list_item(t, caller.user_id) for t in threads],
            total=total,
        )

    def get_thread(self, thread_id: UUID, caller: Caller) -> ThreadDetail:
        thread, messages = self.threads.get_thread_with_messages(thread_id)
        if not access_policy.is_participant(self.threads, thread_id, caller.user_id):
            raise ForbiddenError("You are not a participant of this thread")

        archive = self.threads.get_archive(thread_id)
        return ThreadDetail(
            id=thread.id,
            organization_id=thread.organization_id,
            subject=thread.subject,
            property_id=thread.property_id,
            created_at=thread.created_at,
            updated_at=thread.updated_at,
            participants=[
                ParticipantInfo.model_validate(p)
                for p in self.threads.list_participants(thread_id)
            ],
            messages=[MessageResponse.model_validate(m) for m in messages],
            escalations=[
                EscalationInfo.model_validate(e) for e in self.threads.list_escalations(thread_id)
            ],
            archive=ArchiveInfo.model_validate(archive) if archive else None,
            is_archived=archive is not None,
        )

    def _build_list_item(self, thread: MessageThread, user_id: UUID) -> ThreadListItem:
        last = self.threads.last_message(thread.id)
        preview = None
        if last is not None:
            body = last.body
            if len(body) > LIST_PREVIEW_MAX_LENGTH:
                body = body[:LIST_PREVIEW_MAX_LENGTH] + PREVIEW_ELLIPSIS
            preview = MessagePreview(body=body, sender_id=last.sender_id, created_at=last.created_at)

        return ThreadListItem(
            id=thread.id,
            subject=thread.subject,
            property_id=thread.property_id,
            participant_count=self.threads.count_participants(thread.id),
            last_message=preview,
            unread_count=self.threads.count_unread(thread.id, user_id),
            is_archived=thread.is_archived,
            updated_at=thread.updated_at,
        )
