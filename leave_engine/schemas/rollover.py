# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

# ---------------------------------------------------------------------------
# Rollover run
# ---------------------------------------------------------------------------


class RolloverRequest(BaseModel):
    """Manual rollover trigger. Defaults to the current year."""

    target_year: int | None = None


class RolloverRunResponse(BaseModel):
    target_year: int
    processed: int
    succeeded: int
    errors: int
    purged: int


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class BalanceSummaryResponse(BaseModel):
    """Aggregate view of a year's ledger rows."""

    year: int
    total_employees: int
    total_balances: int
    balances_by_leave_type: dict[str, int]
    total_carry_forwarded: float
    average_annual_allowance: float


class CarryForwardReportItem(BaseModel):
    employee_id: uuid.UUID
    employee_name: str | None
    previous_total_allowed: float
    previous_used: float
    unused: float
    carry_forwarded: float
    new_total_allowed: float


class CarryForwardReportResponse(BaseModel):
    """Per-employee annual carry-forward outcome for a year."""

    year: int
    items: list[CarryForwardReportItem]
    total: int
