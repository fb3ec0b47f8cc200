"""Persistence for threads and everything that hangs off them.

No business policy lives here: callers decide who may do what, the
repository only guarantees natural-key uniqueness (participants, read
receipts, archives) through single-statement upserts and raises
``NotFoundError`` for missing threads or messages.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import cast
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Query, Session, selectinload

from propcomms.core.exceptions import NotFoundError
from propcomms.core.repository import BaseRepository
from propcomms.messaging.models import (
    Message,
    MessageAttachment,
    MessageThread,
    ReadReceipt,
    ThreadArchive,
    ThreadEscalation,
    ThreadParticipant,
)


@dataclass(frozen=True)
class ParticipantSpec:
    user_id: UUID
    role: str


class ThreadRepository(BaseRepository[MessageThread]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, MessageThread)

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def create_thread(
        self,
        organization_id: UUID,
        subject: str,
        participants: list[ParticipantSpec],
        property_id: UUID | None = None,
        created_by_id: UUID | None = None,
    ) -> MessageThread:
        """Create a thread together with its initial participant set."""
        now = datetime.now(UTC)
        thread = MessageThread(
            organization_id=organization_id,
            subject=subject,
            property_id=property_id,
            created_by_id=created_by_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(thread)
        self.db.flush()

        seen: set[UUID] = set()
        for entry in participants:
            if entry.user_id in seen:
                continue
            seen.add(entry.user_id)
            self.db.add(
                ThreadParticipant(
                    thread_id=thread.id, user_id=entry.user_id, role=entry.role, joined_at=now
                )
            )
        self.db.flush()
        return thread

    def get_thread(self, thread_id: UUID) -> MessageThread:
        return self.get_or_raise(thread_id, resource="thread")

    def get_thread_with_messages(
        self, thread_id: UUID
    ) -> tuple[MessageThread, list[Message]]:
        """Fetch a thread and its messages in display order."""
        thread = self.get_thread(thread_id)
        messages = (
            self.db.query(Message)
            .options(selectinload(Message.attachments), selectinload(Message.reads))
            .filter(Message.thread_id == thread_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
            .all()
        )
        return thread, messages

    def list_threads_for_user(
        self,
        user_id: UUID,
        include_archived: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[MessageThread], int]:
        participant_sub = (
            select(ThreadParticipant.thread_id)
            .where(ThreadParticipant.user_id == user_id)
            .scalar_subquery()
        )
        query = self.db.query(MessageThread).filter(MessageThread.id.in_(participant_sub))
        return self._paginate(query, include_archived, page, limit)

    def list_threads_for_organization(
        self,
        organization_id: UUID,
        include_archived: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[MessageThread], int]:
        query = self.db.query(MessageThread).filter(
            MessageThread.organization_id == organization_id
        )
        return self._paginate(query, include_archived, page, limit)

    def _paginate(
        self,
        query: Query[MessageThread],
        include_archived: bool,
        page: int,
        limit: int,
    ) -> tuple[list[MessageThread], int]:
        if not include_archived:
            archived_sub = select(ThreadArchive.thread_id).scalar_subquery()
            query = query.filter(MessageThread.id.not_in(archived_sub))

        total = query.count()
        threads = (
            query.options(selectinload(MessageThread.archive))
            .order_by(MessageThread.updated_at.desc(), MessageThread.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return threads, total

    def touch_thread(self, thread: MessageThread, when: datetime) -> None:
        thread.updated_at = when
        self.db.flush()

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def add_participant(self, thread_id: UUID, user_id: UUID, role: str) -> ThreadParticipant:
        """Add a participant; adding an existing (thread, user) pair is a no-op."""
        thread = self.get_thread(thread_id)
        stmt = (
            self.insert_stmt(ThreadParticipant)
            .values(
                id=uuid4(),
                thread_id=thread_id,
                user_id=user_id,
                role=role,
                joined_at=datetime.now(UTC),
            )
            .on_conflict_do_nothing(index_elements=["thread_id", "user_id"])
        )
        self.db.execute(stmt)
        self.db.expire(thread, ["participants"])
        return cast(ThreadParticipant, self.get_participant(thread_id, user_id))

    def get_participant(self, thread_id: UUID, user_id: UUID) -> ThreadParticipant | None:
        participant = self.db.execute(
            select(ThreadParticipant)
            .where(
                ThreadParticipant.thread_id == thread_id,
                ThreadParticipant.user_id == user_id,
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return cast(ThreadParticipant | None, participant)

    def is_participant(self, thread_id: UUID, user_id: UUID) -> bool:
        return self.get_participant(thread_id, user_id) is not None

    def list_participants(
        self, thread_id: UUID, joined_by: datetime | None = None
    ) -> list[ThreadParticipant]:
        """Participants in join order; ``joined_by`` keeps only those present at that instant."""
        query = select(ThreadParticipant).where(ThreadParticipant.thread_id == thread_id)
        if joined_by is not None:
            query = query.where(ThreadParticipant.joined_at <= joined_by)
        return list(
            self.db.execute(
                query.order_by(ThreadParticipant.joined_at.asc(), ThreadParticipant.id.asc())
                .execution_options(populate_existing=True)
            )
            .scalars()
            .unique()
            .all()
        )

    def count_participants(self, thread_id: UUID) -> int:
        result: int = (
            self.db.query(func.count(ThreadParticipant.id))
            .filter(ThreadParticipant.thread_id == thread_id)
            .scalar()
            or 0
        )
        return result

    # ------------------------------------------------------------------
    # Messages and attachments
    # ------------------------------------------------------------------

    def append_message(self, thread_id: UUID, sender_id: UUID, body: str) -> Message:
        """Append a message and bump the thread's updated_at to its timestamp."""
        thread = self.get_thread(thread_id)
        now = datetime.now(UTC)
        message = Message(thread_id=thread_id, sender_id=sender_id, body=body, created_at=now)
        self.db.add(message)
        self.touch_thread(thread, now)
        return message

    def get_message(self, message_id: UUID) -> Message:
        message = self.db.get(Message, message_id)
        if message is None:
            raise NotFoundError(f"message {message_id} not found", resource="message")
        return cast(Message, message)

    def last_message(self, thread_id: UUID) -> Message | None:
        return cast(
            Message | None,
            self.db.query(Message)
            .filter(Message.thread_id == thread_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .first(),
        )

    def count_unread(self, thread_id: UUID, user_id: UUID) -> int:
        """Messages by others in the thread that ``user_id`` has no receipt for."""
        read_sub = (
            select(ReadReceipt.message_id).where(ReadReceipt.user_id == user_id).scalar_subquery()
        )
        result: int = (
            self.db.query(func.count(Message.id))
            .filter(
                Message.thread_id == thread_id,
                Message.sender_id != user_id,
                Message.id.not_in(read_sub),
            )
            .scalar()
            or 0
        )
        return result

    def append_attachment(
        self,
        message_id: UUID,
        uploaded_by_id: UUID,
        file_url: str,
        file_type: str,
        file_name: str,
    ) -> MessageAttachment:
        self.get_message(message_id)
        attachment = MessageAttachment(
            message_id=message_id,
            uploaded_by_id=uploaded_by_id,
            file_url=file_url,
            file_type=file_type,
            file_name=file_name,
            created_at=datetime.now(UTC),
        )
        self.db.add(attachment)
        self.db.flush()
        return attachment

    # ------------------------------------------------------------------
    # Read receipts
    # ------------------------------------------------------------------

    def upsert_read_receipt(self, message_id: UUID, user_id: UUID, read_at: datetime) -> ReadReceipt:
        """Create the (message, user) receipt or refresh its read_at."""
        message = self.get_message(message_id)
        stmt = self.insert_stmt(ReadReceipt).values(
            id=uuid4(), message_id=message_id, user_id=user_id, read_at=read_at
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["message_id", "user_id"],
            set_={"read_at": stmt.excluded.read_at},
        )
        self.db.execute(stmt)
        self.db.expire(message, ["reads"])
        receipt = self.db.execute(
            select(ReadReceipt)
            .where(ReadReceipt.message_id == message_id, ReadReceipt.user_id == user_id)
            .execution_options(populate_existing=True)
        ).scalar_one()
        return cast(ReadReceipt, receipt)

    def count_read_receipts(self, message_id: UUID, user_id: UUID) -> int:
        result: int = (
            self.db.query(func.count(ReadReceipt.id))
            .filter(ReadReceipt.message_id == message_id, ReadReceipt.user_id == user_id)
            .scalar()
            or 0
        )
        return result

    # ------------------------------------------------------------------
    # Escalations and archives
    # ------------------------------------------------------------------

    def create_escalation(
        self,
        thread_id: UUID,
        from_role: str,
        to_role: str,
        reason: str | None = None,
        escalated_by_id: UUID | None = None,
        assigned_user_id: UUID | None = None,
    ) -> ThreadEscalation:
        self.get_thread(thread_id)
        escalation = ThreadEscalation(
            thread_id=thread_id,
            from_role=from_role,
            to_role=to_role,
            reason=reason,
            escalated_by_id=escalated_by_id,
            assigned_user_id=assigned_user_id,
            created_at=datetime.now(UTC),
        )
        self.db.add(escalation)
        self.db.flush()
        return escalation

    def list_escalations(self, thread_id: UUID) -> list[ThreadEscalation]:
        return list(
            self.db.query(ThreadEscalation)
            .filter(ThreadEscalation.thread_id == thread_id)
            .order_by(ThreadEscalation.created_at.asc(), ThreadEscalation.id.asc())
            .all()
        )

    def upsert_archive(
        self,
        thread_id: UUID,
        archived_by: UUID,
        reason: str | None,
        archived_at: datetime,
    ) -> ThreadArchive:
        """Create the thread's archive record or overwrite its metadata."""
        thread = self.get_thread(thread_id)
        stmt = self.insert_stmt(ThreadArchive).values(
            thread_id=thread_id, archived_by=archived_by, reason=reason, archived_at=archived_at
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["thread_id"],
            set_={
                "archived_by": stmt.excluded.archived_by,
                "reason": stmt.excluded.reason,
                "archived_at": stmt.excluded.archived_at,
            },
        )
        self.db.execute(stmt)
        self.db.expire(thread, ["archive"])
        return cast(ThreadArchive, self.get_archive(thread_id))

    def get_archive(self, thread_id: UUID) -> ThreadArchive | None:
        archive = self.db.execute(
            select(ThreadArchive)
            .where(ThreadArchive.thread_id == thread_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return cast(ThreadArchive | None, archive)

    def count_archives(self, thread_id: UUID) -> int:
        result: int = (
            self.db.query(func.count(ThreadArchive.thread_id))
            .filter(ThreadArchive.thread_id == thread_id)
            .scalar()
            or 0
        )
        return result
