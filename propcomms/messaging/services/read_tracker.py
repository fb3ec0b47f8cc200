from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from propcomms.core.datetime_utils import utcnow
from propcomms.core.exceptions import ForbiddenError, NotFoundError
from propcomms.messaging.models import ReadReceipt
from propcomms.messaging.repositories.thread_repository import ThreadRepository
from propcomms.messaging.services import access_policy


class ReadTracker:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.threads = ThreadRepository(db)
        self.clock = clock

    def mark_read(self, thread_id: UUID, message_id: UUID, user_id: UUID) -> ReadReceipt:
        """Record that ``user_id`` has seen the message; repeat calls refresh read_at."""
        self.threads.get_thread(thread_id)
        if not access_policy.is_participant(self.threads, thread_id, user_id):
            raise ForbiddenError("You are not a participant of this thread")

        message = self.threads.get_message(message_id)
        if message.thread_id != thread_id:
            raise NotFoundError(f"message {message_id} not found", resource="message")

        receipt = self.threads.upsert_read_receipt(message_id, user_id, self.clock())
        self.db.commit()
        return receipt
