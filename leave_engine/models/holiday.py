# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase


class Holiday(UUIDBase, TimestampMixin, table=True):
    """An organization holiday; a non-working day for the calendar classifier."""

    __tablename__ = "holiday"
    __table_args__ = (sa.UniqueConstraint("organization_id", "date", name="uq_holiday_organization_date"),)

    organization_id: uuid.UUID = Field(index=True)
    date: datetime.date
    name: str = Field(max_length=255)
    description: str | None = None
