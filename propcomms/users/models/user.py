import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from propcomms.db.session import Base


class User(Base):
    """
    Local projection of an identity-service account.

    Attributes:
        id: Unique UUID primary key
        organization_id: Property-management organization the user belongs to
        name: Display name
        email: Email address used for notifications (nullable)
        phone: Phone number used for SMS notifications (nullable)
        role: Raw role claim exactly as the identity service supplies it
        roles: Optional list-shaped role claim; first entry wins when present
        is_active: Whether the account is active
    """

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_organization", "organization_id"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4, index=True)
    organization_id: Mapped[uuid.UUID]
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    phone: Mapped[str | None] = mapped_column(String(32), default=None)

    role: Mapped[str] = mapped_column(String(50), default="tenant")
    roles: Mapped[list[Any] | None] = mapped_column(JSON, default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role})>"
