"""
Database base module - imports all models for Alembic migration detection.

While the imports appear unused, they register every table on
``Base.metadata`` so that Alembic autogenerate and Celery workers see the
full schema and relationships resolve.
"""

from propcomms.messaging.models import (
    Message,
    MessageAttachment,
    MessageThread,
    ReadReceipt,
    ThreadArchive,
    ThreadEscalation,
    ThreadParticipant,
)
from propcomms.notifications.models.notification import Notification
from propcomms.users.models.user import User

__all__ = [
    "Message",
    "MessageAttachment",
    "MessageThread",
    "Notification",
    "ReadReceipt",
    "ThreadArchive",
    "ThreadEscalation",
    "ThreadParticipant",
    "User",
]
