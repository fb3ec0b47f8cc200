"""Fan-out of a newly posted message to the other participants of its thread.

Every recipient gets an in-app row first. Email and SMS attempts are then run
concurrently, each under its own timeout and behind a shared semaphore, and
every attempt ends up as exactly one ``sent`` or ``failed`` row. A transport
failure is logged and recorded, never raised.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from propcomms.core.config import settings
from propcomms.core.constants import ERROR_MESSAGE_MAX_LENGTH
from propcomms.messaging.models import Message, MessageThread, ThreadParticipant
from propcomms.notifications.email_templates import build_new_message_email, build_sms_text
from propcomms.notifications.models.notification import NotificationChannel, NotificationStatus
from propcomms.notifications.repositories.notification_repository import NotificationRepository
from propcomms.notifications.services.email_service import EmailService, get_email_service
from propcomms.notifications.services.sms_service import SmsMessage, SmsService, get_sms_service
from propcomms.users.services.user_directory import Contact, UserDirectory

logger = logging.getLogger(__name__)


@dataclass
class ChannelAttempt:
    recipient_id: UUID
    channel: NotificationChannel
    timeout: float
    send: Callable[[], Awaitable[bool]]


@dataclass
class DeliveryOutcome:
    recipient_id: UUID
    channel: NotificationChannel
    status: NotificationStatus
    error: str | None = None


@dataclass
class DispatchResult:
    message_id: UUID
    in_app: int = 0
    sent: int = 0
    failed: int = 0
    outcomes: list[DeliveryOutcome] = field(default_factory=list)

    def summary(self) -> dict[str, int]:
        return {"in_app": self.in_app, "sent": self.sent, "failed": self.failed}


class NotificationDispatcher:
    def __init__(
        self,
        db: Session,
        email_service: EmailService | None,
        sms_service: SmsService | None,
        directory: UserDirectory | None = None,
        max_concurrency: int | None = None,
        email_timeout: float | None = None,
        sms_timeout: float | None = None,
    ) -> None:
        self.db = db
        self.email_service = email_service
        self.sms_service = sms_service
        self.directory = directory or UserDirectory(db)
        self.notifications = NotificationRepository(db)
        self.max_concurrency = max(1, max_concurrency or settings.NOTIFICATION_MAX_CONCURRENCY)
        self.email_timeout = email_timeout or settings.EMAIL_TIMEOUT_SECONDS
        self.sms_timeout = sms_timeout or settings.SMS_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls, db: Session) -> "NotificationDispatcher":
        return cls(db, email_service=get_email_service(), sms_service=get_sms_service())

    def dispatch(
        self, message: Message, recipients: Sequence[ThreadParticipant]
    ) -> DispatchResult:
        """Synchronous entry point for worker code that owns no event loop."""
        return asyncio.run(self.dispatch_async(message, recipients))

    async def dispatch_async(
        self, message: Message, recipients: Sequence[ThreadParticipant]
    ) -> DispatchResult:
        result = DispatchResult(message_id=message.id)

        recipient_ids: list[UUID] = []
        for participant in recipients:
            if participant.user_id == message.sender_id or participant.user_id in recipient_ids:
                continue
            recipient_ids.append(participant.user_id)
        if not recipient_ids:
            logger.info("No recipients for message %s", message.id)
            return result

        for recipient_id in recipient_ids:
            self.notifications.record(
                message.id,
                recipient_id,
                NotificationChannel.IN_APP,
                NotificationStatus.UNREAD,
            )
            result.in_app += 1
        self.db.commit()

        attempts = self._plan_attempts(message, recipient_ids)
        if attempts:
            semaphore = asyncio.Semaphore(self.max_concurrency)
            outcomes = await asyncio.gather(
                *(self._run_attempt(message.id, attempt, semaphore) for attempt in attempts)
            )
            delivered_at = datetime.now(UTC)
            for outcome in outcomes:
                self.notifications.record(
                    message.id,
                    outcome.recipient_id,
                    outcome.channel,
                    outcome.status,
                    error_message=outcome.error,
                    sent_at=delivered_at if outcome.status == NotificationStatus.SENT else None,
                )
                if outcome.status == NotificationStatus.SENT:
                    result.sent += 1
                else:
                    result.failed += 1
                result.outcomes.append(outcome)
            self.db.commit()

        logger.info(
            "Notifications for message %s: in_app=%d, sent=%d, failed=%d",
            message.id,
            result.in_app,
            result.sent,
            result.failed,
        )
        return result

    def _plan_attempts(self, message: Message, recipient_ids: list[UUID]) -> list[ChannelAttempt]:
        if self.email_service is None and self.sms_service is None:
            return []

        users = self.directory.get_users(recipient_ids)
        thread = self.db.get(MessageThread, message.thread_id)
        subject = thread.subject if thread is not None else ""
        sender = self.directory.get_user(message.sender_id)
        sender_name = sender.name if sender is not None else "Someone"
        sms_text = build_sms_text(message.body)

        attempts: list[ChannelAttempt] = []
        for recipient_id in recipient_ids:
            user = users.get(recipient_id)
            if user is None:
                logger.warning("Recipient %s has no directory entry", recipient_id)
                continue
            contact = UserDirectory.contact_for(user)

            if self.email_service is not None and contact.email:
                attempts.append(
                    ChannelAttempt(
                        recipient_id=recipient_id,
                        channel=NotificationChannel.EMAIL,
                        timeout=self.email_timeout,
                        send=_email_sender(
                            self.email_service, contact, sender_name, subject, message
                        ),
                    )
                )
            if self.sms_service is not None and contact.phone:
                attempts.append(
                    ChannelAttempt(
                        recipient_id=recipient_id,
                        channel=NotificationChannel.SMS,
                        timeout=self.sms_timeout,
                        send=_sms_sender(self.sms_service, contact, sms_text),
                    )
                )
        return attempts

    async def _run_attempt(
        self, message_id: UUID, attempt: ChannelAttempt, semaphore: asyncio.Semaphore
    ) -> DeliveryOutcome:
        async with semaphore:
            try:
                delivered = await asyncio.wait_for(attempt.send(), timeout=attempt.timeout)
            except asyncio.TimeoutError:
                error = f"{attempt.channel.value} delivery timed out after {attempt.timeout}s"
            except Exception as exc:
                error = str(exc) or type(exc).__name__
            else:
                if delivered:
                    return DeliveryOutcome(
                        attempt.recipient_id, attempt.channel, NotificationStatus.SENT
                    )
                error = f"{attempt.channel.value} transport returned False"

        logger.warning(
            "Notification delivery failed: message=%s recipient=%s channel=%s error=%s",
            message_id,
            attempt.recipient_id,
            attempt.channel.value,
            error,
        )
        return DeliveryOutcome(
            attempt.recipient_id,
            attempt.channel,
            NotificationStatus.FAILED,
            error=error[:ERROR_MESSAGE_MAX_LENGTH],
        )


def _email_sender(
    email_service: EmailService,
    contact: Contact,
    sender_name: str,
    subject: str,
    message: Message,
) -> Callable[[], Awaitable[bool]]:
    email_msg = build_new_message_email(
        recipient_name=contact.name,
        recipient_email=contact.email or "",
        sender_name=sender_name,
        thread_subject=subject,
        message_body=message.body,
        thread_id=message.thread_id,
    )
    return lambda: email_service.send_email(email_msg)


def _sms_sender(
    sms_service: SmsService, contact: Contact, text: str
) -> Callable[[], Awaitable[bool]]:
    sms_msg = SmsMessage(to=contact.phone or "", body=text)
    return lambda: sms_service.send_sms(sms_msg)
