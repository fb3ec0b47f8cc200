import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propcomms.db.session import Base


class ThreadEscalation(Base):
    """Append-only audit record of a thread being escalated to an admin role."""

    __tablename__ = "thread_escalations"
    __table_args__ = (Index("ix_thread_escalations_thread", "thread_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4, index=True)
    thread_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("message_threads.id", ondelete="CASCADE")
    )
    escalated_by_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), default=None
    )
    from_role: Mapped[str] = mapped_column(String(50))
    to_role: Mapped[str] = mapped_column(String(50))
    reason: Mapped[str | None] = mapped_column(Text, default=None)
    # Role holder added to the thread, None when nobody holds the target role
    assigned_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    thread = relationship("MessageThread", back_populates="escalations")
