# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from leave_engine.api.deps import AdminDep, validate_organization_scope
from leave_engine.db import SessionDep
from leave_engine.schemas.rollover import (
    BalanceSummaryResponse,
    CarryForwardReportResponse,
    RolloverRequest,
    RolloverRunResponse,
)
from leave_engine.services import report
from leave_engine.services.organization import organization_today
from leave_engine.services.rollover import run_annual_rollover

rollover_router = APIRouter(
    prefix="/organizations/{organization_id}/rollover",
    tags=["rollover"],
    dependencies=[Depends(validate_organization_scope)],
)


@rollover_router.post("", response_model=RolloverRunResponse)
async def trigger_rollover(
    session: SessionDep,
    auth: AdminDep,
    payload: RolloverRequest | None = None,
) -> RolloverRunResponse:
    """Run the annual rollover for this organization (admin only)."""
    result = await run_annual_rollover(
        session,
        payload.target_year if payload else None,
        organization_id=auth.organization_id,
        actor_id=auth.user_id,
    )
    return RolloverRunResponse(
        target_year=result.target_year,
        processed=result.processed,
        succeeded=result.succeeded,
        errors=result.errors,
        purged=result.purged,
    )


@rollover_router.get("/summary", response_model=BalanceSummaryResponse)
async def balance_summary(
    session: SessionDep,
    auth: AdminDep,
    year: int | None = Query(default=None),
) -> BalanceSummaryResponse:
    if year is None:
        year = (await organization_today(auth.organization_id)).year
    return await report.get_balance_summary(session, auth.organization_id, year)


@rollover_router.get("/carry-forward-report", response_model=CarryForwardReportResponse)
async def carry_forward_report(
    session: SessionDep,
    auth: AdminDep,
    year: int | None = Query(default=None),
) -> CarryForwardReportResponse:
    """Per-employee annual carry-forward for a year."""
    if year is None:
        year = (await organization_today(auth.organization_id)).year
    return await report.get_carry_forward_report(session, auth.organization_id, year)
