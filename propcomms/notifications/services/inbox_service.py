import logging
from uuid import UUID

from sqlalchemy.orm import Session

from propcomms.core import redis as redis_module
from propcomms.core.constants import UNREAD_COUNT_CACHE_TTL_SECONDS
from propcomms.notifications.models.notification import NotificationChannel
from propcomms.notifications.repositories.notification_repository import NotificationRepository
from propcomms.notifications.schemas.notification import (
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)


class InboxService:
    """Read side of the notification rows written by the dispatcher."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repository = NotificationRepository(db)

    def list_notifications(
        self,
        user_id: UUID,
        channel: NotificationChannel | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> NotificationListResponse:
        items, total = self.repository.list_for_user(user_id, channel, page, limit)
        return NotificationListResponse(
            notifications=[NotificationResponse.model_validate(n) for n in items],
            total=total,
        )

    def get_unread_count(self, user_id: UUID) -> int:
        return self.repository.count_unread(user_id)

    async def get_unread_count_cached(self, user_id: UUID) -> int:
        cache_key = redis_module.unread_notifications_key(user_id)
        try:
            if redis_module.redis_client:
                cached = await redis_module.redis_client.get(cache_key)
                if cached is not None:
                    return int(cached)
        except Exception:
            logger.warning("Redis cache read failed for unread notification count")

        count = self.get_unread_count(user_id)

        try:
            if redis_module.redis_client:
                await redis_module.redis_client.setex(
                    cache_key, UNREAD_COUNT_CACHE_TTL_SECONDS, str(count)
                )
        except Exception:
            logger.warning("Redis cache write failed for unread notification count")

        return count
