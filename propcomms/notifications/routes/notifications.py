from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from propcomms.auth.dependencies import get_current_caller
from propcomms.auth.identity import Caller
from propcomms.core.constants import MAX_PAGE_SIZE, NOTIFICATIONS_PAGE_SIZE
from propcomms.db.session import get_db
from propcomms.notifications.models.notification import NotificationChannel
from propcomms.notifications.schemas.notification import (
    NotificationListResponse,
    UnreadCountResponse,
)
from propcomms.notifications.services.inbox_service import InboxService

router = APIRouter()


@router.get("/notifications", response_model=NotificationListResponse)
def list_notifications(
    channel: NotificationChannel | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(NOTIFICATIONS_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> NotificationListResponse:
    service = InboxService(db)
    return service.list_notifications(caller.user_id, channel=channel, page=page, limit=limit)


@router.get("/notifications/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> UnreadCountResponse:
    service = InboxService(db)
    count = await service.get_unread_count_cached(caller.user_id)
    return UnreadCountResponse(unread_count=count)
