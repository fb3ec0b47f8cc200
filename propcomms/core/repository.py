"""Base repository pattern implementation."""

from typing import Generic, TypeVar, cast
from uuid import UUID

from sqlalchemy.engine import Dialect
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from propcomms.core.exceptions import NotFoundError

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType]):
    """Generic repository with the lookups every domain repository needs.

    Repositories flush but never commit: the calling service owns the unit
    of work.
    """

    def __init__(self, db: Session, model: type[ModelType]):
        self.db = db
        self.model = model

    def get_by_id(self, entity_id: UUID) -> ModelType | None:
        return cast(ModelType | None, self.db.get(self.model, entity_id))

    def get_or_raise(self, entity_id: UUID, resource: str | None = None) -> ModelType:
        """Get a single entity by ID or raise NotFoundError."""
        instance = self.get_by_id(entity_id)
        if instance is None:
            name = resource or getattr(self.model, "__tablename__", "resource")
            raise NotFoundError(f"{name} {entity_id} not found", resource=name)
        return instance

    def insert_stmt(self, model: type) -> postgresql.Insert | sqlite.Insert:
        """Dialect-specific INSERT supporting ``ON CONFLICT`` clauses.

        Natural-key uniqueness (participants, read receipts, archives,
        notifications) is enforced by single-statement upserts rather than
        find-then-write.
        """
        dialect: Dialect = self.db.get_bind().dialect
        if dialect.name == "postgresql":
            return postgresql.insert(model)
        if dialect.name == "sqlite":
            return sqlite.insert(model)
        raise NotImplementedError(f"Upserts are not supported on {dialect.name}")
