from uuid import UUID

from pydantic import BaseModel, Field

from propcomms.core.constants import MESSAGE_BODY_MAX_LENGTH
from propcomms.core.datetime_utils import UTCDatetime


class MessageCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=MESSAGE_BODY_MAX_LENGTH)


class AttachmentCreate(BaseModel):
    file_url: str = Field(..., min_length=1, max_length=500)
    file_type: str = Field(..., min_length=3, max_length=100)
    file_name: str = Field(..., min_length=1, max_length=255)


class AttachmentResponse(BaseModel):
    id: UUID
    message_id: UUID
    file_url: str
    file_type: str
    file_name: str
    created_at: UTCDatetime

    class Config:
        from_attributes = True


class ReadReceiptResponse(BaseModel):
    message_id: UUID
    user_id: UUID
    read_at: UTCDatetime

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    id: UUID
    thread_id: UUID
    sender_id: UUID
    body: str
    created_at: UTCDatetime
    attachments: list[AttachmentResponse] = []
    reads: list[ReadReceiptResponse] = []

    class Config:
        from_attributes = True
