"""Primary keys and timestamps shared by the users and services tables."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class TimestampMixin(SQLModel):
    # Timezone-aware UTC; SQLite drops the offset on read, PostgreSQL keeps it
    created_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=DateTime(timezone=True)
    )
    updated_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=DateTime(timezone=True)
    )

    def touch(self) -> None:
        """Record a modification; ``created_at`` never changes after insert."""
        self.updated_at = utcnow()
