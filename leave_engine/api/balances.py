# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from leave_engine.api.deps import AuthDep, validate_organization_scope
from leave_engine.db import SessionDep
from leave_engine.exceptions import NotAuthorized
from leave_engine.schemas.balance import BalanceListResponse
from leave_engine.services import ledger
from leave_engine.services.organization import organization_today

balances_router = APIRouter(
    prefix="/organizations/{organization_id}/employees/{employee_id}/balances",
    tags=["balances"],
    dependencies=[Depends(validate_organization_scope)],
)


@balances_router.get("", response_model=BalanceListResponse)
async def list_employee_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None),
) -> BalanceListResponse:
    """Ledger rows of an employee for a year (defaults to the current year)."""
    if employee_id != auth.user_id and not auth.is_approver:
        raise NotAuthorized("Not authorized to view this employee's balances")
    if year is None:
        year = (await organization_today(auth.organization_id)).year
    return await ledger.list_employee_balances(session, auth.organization_id, employee_id, year)
