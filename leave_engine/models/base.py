from __future__ import annotations

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(UTC)


def timestamp_field(*, index: bool = False) -> datetime:
    """Timezone-aware timestamp column defaulting to now on both sides."""
    return Field(  # type: ignore[no-any-return]
        default_factory=utc_now,
        index=index,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.current_timestamp()},
    )


class UUIDBase(SQLModel):
    """Base model with UUID primary key."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, sa_type=sa.Uuid)


class TimestampMixin(SQLModel):
    """Adds created_at to leave engine tables."""

    created_at: datetime = timestamp_field()
