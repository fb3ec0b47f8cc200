from uuid import UUID

from pydantic import BaseModel

from propcomms.core.datetime_utils import UTCDatetime


class NotificationResponse(BaseModel):
    id: UUID
    message_id: UUID
    channel: str
    status: str
    error_message: str | None = None
    created_at: UTCDatetime
    sent_at: UTCDatetime | None = None

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    total: int


class UnreadCountResponse(BaseModel):
    unread_count: int
