from uuid import UUID

from pydantic import BaseModel, Field

from propcomms.core.datetime_utils import UTCDatetime


class EscalationCreate(BaseModel):
    to_role: str = Field(..., min_length=1, max_length=50)
    reason: str | None = Field(None, max_length=1000)


class EscalationResponse(BaseModel):
    id: UUID
    thread_id: UUID
    from_role: str
    to_role: str
    reason: str | None = None
    assigned_user_id: UUID | None = None
    created_at: UTCDatetime

    class Config:
        from_attributes = True


class ArchiveCreate(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class ArchiveResponse(BaseModel):
    thread_id: UUID
    archived_by: UUID
    reason: str | None = None
    archived_at: UTCDatetime

    class Config:
        from_attributes = True
