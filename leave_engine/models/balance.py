# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import UUIDBase, timestamp_field


class LeaveBalance(UUIDBase, table=True):
    """Ledger row: allowance and consumption for one employee, leave type and year.

    Written only through the ledger service, which bumps ``version`` on every
    change and refuses writes whose expected version is stale.
    """

    __tablename__ = "leave_balance"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "leave_type", "year", name="uq_balance_employee_type_year"),
        sa.Index("ix_balance_organization_year", "organization_id", "year"),
    )

    organization_id: uuid.UUID
    employee_id: uuid.UUID = Field(index=True)
    leave_type: str = Field(max_length=50)
    year: int
    total_allowed: Decimal = Field(default=Decimal(0), max_digits=6, decimal_places=2)
    used: Decimal = Field(default=Decimal(0), max_digits=6, decimal_places=2)
    carry_forwarded: Decimal = Field(default=Decimal(0), max_digits=6, decimal_places=2)
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
    updated_at: datetime = timestamp_field()
