from datetime import datetime
from typing import cast
from uuid import UUID, uuid4

from sqlalchemy import func
from sqlalchemy.orm import Session

from propcomms.core.repository import BaseRepository
from propcomms.notifications.models.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
)


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, Notification)

    def record(
        self,
        message_id: UUID,
        user_id: UUID,
        channel: NotificationChannel,
        status: NotificationStatus,
        error_message: str | None = None,
        sent_at: datetime | None = None,
    ) -> None:
        """Write the (message, user, channel) row once; later writes are ignored."""
        stmt = (
            self.insert_stmt(Notification)
            .values(
                id=uuid4(),
                message_id=message_id,
                user_id=user_id,
                channel=channel.value,
                status=status.value,
                error_message=error_message,
                sent_at=sent_at,
            )
            .on_conflict_do_nothing(index_elements=["message_id", "user_id", "channel"])
        )
        self.db.execute(stmt)

    def list_for_user(
        self,
        user_id: UUID,
        channel: NotificationChannel | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[Notification], int]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if channel is not None:
            query = query.filter(Notification.channel == channel.value)

        total = query.count()
        items = (
            query.order_by(Notification.created_at.desc(), Notification.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return cast(list[Notification], items), total

    def count_unread(self, user_id: UUID) -> int:
        result: int = (
            self.db.query(func.count(Notification.id))
            .filter(
                Notification.user_id == user_id,
                Notification.channel == NotificationChannel.IN_APP.value,
                Notification.status == NotificationStatus.UNREAD.value,
            )
            .scalar()
            or 0
        )
        return result
