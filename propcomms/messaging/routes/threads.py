from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from propcomms.auth.dependencies import get_current_caller
from propcomms.auth.identity import Caller
from propcomms.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from propcomms.db.session import get_db
from propcomms.messaging.schemas.escalation import (
    ArchiveCreate,
    ArchiveResponse,
    EscalationCreate,
    EscalationResponse,
)
from propcomms.messaging.schemas.message import (
    AttachmentCreate,
    AttachmentResponse,
    MessageCreate,
    MessageResponse,
    ReadReceiptResponse,
)
from propcomms.messaging.schemas.thread import ThreadCreate, ThreadDetail, ThreadListResponse
from propcomms.messaging.services.archive_service import ArchiveService
from propcomms.messaging.services.escalation_service import EscalationService
from propcomms.messaging.services.message_service import MessageService
from propcomms.messaging.services.read_tracker import ReadTracker
from propcomms.messaging.services.thread_service import ThreadService

router = APIRouter()


@router.post("/threads", response_model=ThreadDetail, status_code=201)
def create_thread(
    data: ThreadCreate,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> ThreadDetail:
    thread_id, _ = MessageService(db).create_thread(caller, data)
    return ThreadService(db).get_thread(thread_id, caller)


@router.get("/threads", response_model=ThreadListResponse)
def list_threads(
    scope: Literal["mine", "organization"] = Query("mine"),
    include_archived: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> ThreadListResponse:
    return ThreadService(db).list_threads(
        caller,
        scope=scope,
        include_archived=include_archived,
        page=page,
        limit=limit,
    )


@router.get("/threads/{thread_id}", response_model=ThreadDetail)
def get_thread(
    thread_id: UUID,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> ThreadDetail:
    return ThreadService(db).get_thread(thread_id, caller)


@router.post("/threads/{thread_id}/messages", response_model=MessageResponse, status_code=201)
def post_message(
    thread_id: UUID,
    data: MessageCreate,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> MessageResponse:
    message = MessageService(db).post_message(thread_id, caller.user_id, data.body)
    return MessageResponse.model_validate(message)


@router.post(
    "/threads/{thread_id}/escalate", response_model=EscalationResponse, status_code=201
)
def escalate_thread(
    thread_id: UUID,
    data: EscalationCreate,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> EscalationResponse:
    escalation = EscalationService(db).escalate(
        thread_id,
        caller_role=caller.role,
        target_role=data.to_role,
        reason=data.reason,
        caller_id=caller.user_id,
        organization_id=caller.organization_id,
    )
    return EscalationResponse.model_validate(escalation)


@router.post("/threads/{thread_id}/archive", response_model=ArchiveResponse)
def archive_thread(
    thread_id: UUID,
    data: ArchiveCreate,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> ArchiveResponse:
    archive = ArchiveService(db).archive(
        thread_id,
        caller_role=caller.role,
        caller_id=caller.user_id,
        reason=data.reason,
        organization_id=caller.organization_id,
    )
    return ArchiveResponse.model_validate(archive)


@router.post(
    "/threads/{thread_id}/messages/{message_id}/read", response_model=ReadReceiptResponse
)
def mark_message_read(
    thread_id: UUID,
    message_id: UUID,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> ReadReceiptResponse:
    receipt = ReadTracker(db).mark_read(thread_id, message_id, caller.user_id)
    return ReadReceiptResponse.model_validate(receipt)


@router.post(
    "/threads/{thread_id}/messages/{message_id}/attachments",
    response_model=AttachmentResponse,
    status_code=201,
)
def attach_file(
    thread_id: UUID,
    message_id: UUID,
    data: AttachmentCreate,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> AttachmentResponse:
    attachment = MessageService(db).attach_file(
        thread_id,
        message_id,
        caller.user_id,
        file_url=data.file_url,
        file_type=data.file_type,
        file_name=data.file_name,
    )
    return AttachmentResponse.model_validate(attachment)
