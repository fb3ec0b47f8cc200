from datetime import UTC, datetime
from typing import Annotated

from pydantic.functional_serializers import PlainSerializer


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(v: datetime) -> datetime:
    """Attach UTC to naive values read back from backends without tz support."""
    if v.tzinfo is None:
        return v.replace(tzinfo=UTC)
    return v


def _serialize_utc_datetime(v: datetime | None) -> str | None:
    if v is None:
        return None
    return as_utc(v).isoformat()


UTCDatetime = Annotated[datetime, PlainSerializer(_serialize_utc_datetime)]
