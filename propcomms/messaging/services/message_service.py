import logging
import re
from uuid import UUID

from sqlalchemy.orm import Session

from propcomms.auth.identity import Caller
from propcomms.core.config import settings
from propcomms.core.exceptions import ForbiddenError, InvalidArgumentError, NotFoundError
from propcomms.messaging.models import Message, MessageAttachment
from propcomms.messaging.repositories.thread_repository import ParticipantSpec, ThreadRepository
from propcomms.messaging.schemas.thread import ThreadCreate
from propcomms.messaging.services import access_policy
from propcomms.users.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)

_MIME_TYPE = re.compile(r"^[\w.+-]+/[\w.+-]+$")


class MessageService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.threads = ThreadRepository(db)
        self.directory = UserDirectory(db)

    def create_thread(self, caller: Caller, data: ThreadCreate) -> tuple[UUID, Message | None]:
        """Open a thread between the caller and ``data.participant_ids``.

        Returns the new thread id and the first message, if one was given.
        """
        subject = data.subject.strip()
        if not subject:
            raise InvalidArgumentError("Subject must not be empty", field="subject")

        other_ids = [uid for uid in dict.fromkeys(data.participant_ids) if uid != caller.user_id]
        if not other_ids:
            raise InvalidArgumentError(
                "A thread needs at least one other participant", field="participant_ids"
            )

        users = self.directory.get_users(other_ids)
        participants = [ParticipantSpec(user_id=caller.user_id, role=caller.role.value)]
        for user_id in other_ids:
            user = users.get(user_id)
            if user is None or not user.is_active:
                raise NotFoundError(f"user {user_id} not found", resource="user")
            if user.organization_id != caller.organization_id:
                raise ForbiddenError("Participants must belong to your organization")
            recipient_role = UserDirectory.canonical_role(user)
            if not access_policy.can_direct_message(caller.role, recipient_role):
                raise ForbiddenError(
                    f"A {caller.role.value} cannot message a {recipient_role.value} directly"
                )
            participants.append(ParticipantSpec(user_id=user_id, role=recipient_role.value))

        thread = self.threads.create_thread(
            organization_id=caller.organization_id,
            subject=subject,
            participants=participants,
            property_id=data.property_id,
            created_by_id=caller.user_id,
        )
        self.db.commit()
        logger.info(
            "Thread %s created by %s with %d participants",
            thread.id,
            caller.user_id,
            len(participants),
        )

        first_message = None
        if data.initial_message and data.initial_message.strip():
            first_message = self.post_message(thread.id, caller.user_id, data.initial_message)
        return thread.id, first_message

    def post_message(self, thread_id: UUID, sender_id: UUID, body: str) -> Message:
        """Persist a message, then hand notification fan-out to the worker.

        The message is committed before anything is enqueued; enqueue
        failures are logged and never reported to the sender.
        """
        body = body.strip()
        if not body:
            raise InvalidArgumentError("Message body must not be empty", field="body")

        thread = self.threads.get_thread(thread_id)
        if not self.threads.is_participant(thread_id, sender_id):
            raise ForbiddenError("You are not a participant of this thread")

        if thread.is_archived:
            if settings.BLOCK_POSTING_TO_ARCHIVED:
                raise ForbiddenError("This thread is archived")
            logger.warning(
                "Message posted to archived thread %s by %s", thread_id, sender_id
            )

        message = self.threads.append_message(thread_id, sender_id, body)
        self.db.commit()
        self.db.refresh(message)

        self._enqueue_notifications(message.id)
        return message

    def attach_file(
        self,
        thread_id: UUID,
        message_id: UUID,
        user_id: UUID,
        file_url: str,
        file_type: str,
        file_name: str,
    ) -> MessageAttachment:
        file_url = file_url.strip()
        file_type = file_type.strip().lower()
        file_name = file_name.strip()
        if not file_url:
            raise InvalidArgumentError("File reference must not be empty", field="file_url")
        if file_url.lower().startswith(("http://", "https://")):
            raise InvalidArgumentError(
                "File reference must be a storage key, not a public URL", field="file_url"
            )
        if not _MIME_TYPE.match(file_type):
            raise InvalidArgumentError("File type must be a MIME type", field="file_type")
        if not file_name:
            raise InvalidArgumentError("File name must not be empty", field="file_name")

        self.threads.get_thread(thread_id)
        message = self.threads.get_message(message_id)
        if message.thread_id != thread_id:
            raise NotFoundError(f"message {message_id} not found", resource="message")
        if not self.threads.is_participant(thread_id, user_id):
            raise ForbiddenError("You are not a participant of this thread")

        attachment = self.threads.append_attachment(
            message_id=message_id,
            uploaded_by_id=user_id,
            file_url=file_url,
            file_type=file_type,
            file_name=file_name,
        )
        self.db.commit()
        self.db.refresh(attachment)
        return attachment

    @staticmethod
    def _enqueue_notifications(message_id: UUID) -> None:
        try:
            from propcomms.notifications.tasks import dispatch_message_notifications

            dispatch_message_notifications.delay(str(message_id))
        except (ImportError, AttributeError) as exc:
            logger.error("Celery task import failed: %s", exc, exc_info=True)
        except Exception as exc:
            logger.warning("Failed to enqueue notifications for message %s: %s", message_id, exc)
