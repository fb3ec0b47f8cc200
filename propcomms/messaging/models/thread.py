import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propcomms.db.session import Base


class MessageThread(Base):
    __tablename__ = "message_threads"
    __table_args__ = (
        Index("ix_message_threads_updated_at", "updated_at"),
        Index("ix_message_threads_organization", "organization_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4, index=True)
    organization_id: Mapped[uuid.UUID]
    subject: Mapped[str] = mapped_column(String(255))
    property_id: Mapped[uuid.UUID | None] = mapped_column(default=None)
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), default=None
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    participants = relationship(
        "ThreadParticipant", back_populates="thread", order_by="ThreadParticipant.joined_at"
    )
    messages = relationship(
        "Message",
        back_populates="thread",
        order_by="Message.created_at",
    )
    escalations = relationship(
        "ThreadEscalation", back_populates="thread", order_by="ThreadEscalation.created_at"
    )
    archive = relationship("ThreadArchive", back_populates="thread", uselist=False)

    @property
    def is_archived(self) -> bool:
        return self.archive is not None
