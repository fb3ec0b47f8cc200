"""Celery tasks for notification fan-out."""

import logging
from uuid import UUID

import structlog

from propcomms.core.celery_app import celery_app
from propcomms.db.session import SessionLocal
from propcomms.messaging.models import Message
from propcomms.messaging.repositories.thread_repository import ThreadRepository
from propcomms.notifications.services.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


@celery_app.task(max_retries=0)
def dispatch_message_notifications(message_id: str) -> dict[str, int]:
    """Deliver a committed message to the participants present when it was posted.

    Single attempt: channel failures are recorded by the dispatcher, and a
    storage fault fails the task without a retry.
    """
    with structlog.contextvars.bound_contextvars(message_id=message_id):
        db = SessionLocal()
        try:
            message = db.get(Message, UUID(message_id))
            if message is None:
                logger.error("Message %s not found, skipping notifications", message_id)
                return {"in_app": 0, "sent": 0, "failed": 0}

            # Someone added by a later escalation is not told about earlier messages
            recipients = ThreadRepository(db).list_participants(
                message.thread_id, joined_by=message.created_at
            )
            result = NotificationDispatcher.from_settings(db).dispatch(message, recipients)
            return result.summary()
        except Exception as exc:
            logger.exception("dispatch_message_notifications failed for %s: %s", message_id, exc)
            db.rollback()
            raise
        finally:
            db.close()
