# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field


class CreateHolidayRequest(BaseModel):
    """Request body for creating an organization holiday."""

    date: date
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)


class HolidayResponse(BaseModel):
    """Response schema for an organization holiday."""

    id: uuid.UUID
    organization_id: uuid.UUID
    date: date
    name: str
    description: str | None


class HolidayListResponse(BaseModel):
    """Paginated list of organization holidays."""

    items: list[HolidayResponse]
    total: int
