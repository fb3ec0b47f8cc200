from uuid import UUID

from pydantic import BaseModel, Field

from propcomms.core.constants import MESSAGE_BODY_MAX_LENGTH, THREAD_SUBJECT_MAX_LENGTH
from propcomms.core.datetime_utils import UTCDatetime
from propcomms.messaging.schemas.message import MessageResponse


class ThreadCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=THREAD_SUBJECT_MAX_LENGTH)
    participant_ids: list[UUID] = Field(..., min_length=1)
    property_id: UUID | None = None
    initial_message: str | None = Field(None, max_length=MESSAGE_BODY_MAX_LENGTH)


class ParticipantInfo(BaseModel):
    user_id: UUID
    role: str
    joined_at: UTCDatetime

    class Config:
        from_attributes = True


class MessagePreview(BaseModel):
    body: str
    sender_id: UUID
    created_at: UTCDatetime


class ThreadListItem(BaseModel):
    id: UUID
    subject: str
    property_id: UUID | None = None
    participant_count: int
    last_message: MessagePreview | None = None
    unread_count: int = 0
    is_archived: bool = False
    updated_at: UTCDatetime


class ThreadListResponse(BaseModel):
    threads: list[ThreadListItem]
    total: int


class EscalationInfo(BaseModel):
    id: UUID
    from_role: str
    to_role: str
    reason: str | None = None
    assigned_user_id: UUID | None = None
    created_at: UTCDatetime

    class Config:
        from_attributes = True


class ArchiveInfo(BaseModel):
    thread_id: UUID
    archived_by: UUID
    reason: str | None = None
    archived_at: UTCDatetime

    class Config:
        from_attributes = True


class ThreadDetail(BaseModel):
    id: UUID
    organization_id: UUID
    subject: str
    property_id: UUID | None = None
    created_at: UTCDatetime
    updated_at: UTCDatetime
    participants: list[ParticipantInfo]
    messages: list[MessageResponse]
    escalations: list[EscalationInfo] = []
    archive: ArchiveInfo | None = None
    is_archived: bool = False
