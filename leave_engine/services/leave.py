# ruff: noqa: TC003
"""Leave request lifecycle: apply, edit, approve/reject, delete.

Balance is checked at submission but only debited on approval. Every
ledger-touching operation runs through ``ledger.retry_on_conflict`` so a
concurrent write to the same balance row is retried on a fresh transaction.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlmodel import col

from leave_engine.config import get_settings
from leave_engine.db import unit_of_work
from leave_engine.defaults import CURRENT_YEAR_ONLY_LEAVE_TYPES
from leave_engine.exceptions import (
    AppError,
    IneligibleEmployee,
    InsufficientBalance,
    InvalidDateRange,
    InvalidStatusTransition,
    LeaveWindowRejected,
    MissingApprover,
    MissingDocument,
    NoBalanceConfigured,
    NotAuthorized,
    NotFound,
)
from leave_engine.models.enums import (
    AuditAction,
    AuditEntityType,
    EmployeeStatus,
    HalfDayType,
    LeaveStatus,
    LeaveType,
    NotificationEvent,
)
from leave_engine.models.leave import LeaveRequest
from leave_engine.schemas.leave import LeaveListResponse, LeaveResponse
from leave_engine.services import clock, ledger
from leave_engine.services.attachment import resolve_attachment_url
from leave_engine.services.audit import audit_snapshot, write_audit_log
from leave_engine.services.employee import get_direct_reports, get_employee_directory
from leave_engine.services.notification import notify_safely
from leave_engine.services.organization import organization_today
from leave_engine.services.rule import get_active_rule, is_rule_applicable
from leave_engine.services.validation import validate_leave_dates

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.models.balance import LeaveBalance
    from leave_engine.schemas.auth import AuthContext
    from leave_engine.schemas.leave import ApplyLeaveRequest, UpdateLeaveRequest

logger = logging.getLogger(__name__)

HALF_DAY = Decimal("0.5")

# Allowed status moves. Anything else is an InvalidStatusTransition.
_TRANSITIONS = frozenset(
    {
        (LeaveStatus.PENDING, LeaveStatus.APPROVED),
        (LeaveStatus.PENDING, LeaveStatus.REJECTED),
        (LeaveStatus.APPROVED, LeaveStatus.REJECTED),
        (LeaveStatus.REJECTED, LeaveStatus.APPROVED),
    }
)

# Fields an edit may touch. Status, days, approver and balance year are
# never taken from the payload.
_EDITABLE_FIELDS = ("start_date", "end_date", "is_half_day", "half_day_type", "reason", "attachment_ref")
_REQUIRED_FIELDS = frozenset({"start_date", "end_date", "is_half_day"})


def compute_applied_days(start_date: date, end_date: date, is_half_day: bool) -> Decimal:
    """Inclusive calendar-day count, or half a day."""
    if is_half_day:
        return HALF_DAY
    return Decimal((end_date - start_date).days + 1)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_leave_response(leave: LeaveRequest) -> LeaveResponse:
    """Map a leave model to its response schema."""
    return LeaveResponse(
        id=leave.id,
        organization_id=leave.organization_id,
        employee_id=leave.employee_id,
        leave_type=LeaveType(leave.leave_type),
        start_date=leave.start_date,
        end_date=leave.end_date,
        applied_days=float(leave.applied_days),
        balance_year=leave.balance_year,
        is_half_day=leave.is_half_day,
        half_day_type=HalfDayType(leave.half_day_type) if leave.half_day_type else None,
        status=LeaveStatus(leave.status),
        approved_by=leave.approved_by,
        reason=leave.reason,
        rejection_reason=leave.rejection_reason,
        attachment_ref=leave.attachment_ref,
        attachment_url=resolve_attachment_url(leave.attachment_ref),
        decided_at=leave.decided_at,
        created_at=leave.created_at,
    )


def _notification_payload(leave: LeaveRequest) -> dict[str, Any]:
    return {
        "leave_id": str(leave.id),
        "employee_id": str(leave.employee_id),
        "leave_type": leave.leave_type,
        "start_date": leave.start_date.isoformat(),
        "end_date": leave.end_date.isoformat(),
        "applied_days": float(leave.applied_days),
        "status": leave.status,
    }


async def _get_leave_or_404(
    session: AsyncSession,
    organization_id: uuid.UUID,
    leave_id: uuid.UUID,
) -> LeaveRequest:
    """Fetch a leave request scoped to the organization. Raises 404 if not found."""
    result = await session.execute(
        select(LeaveRequest)
        .where(
            col(LeaveRequest.id) == leave_id,
            col(LeaveRequest.organization_id) == organization_id,
        )
        .execution_options(populate_existing=True)
    )
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFound("Leave request not found")
    return leave


def _check_date_span(start_date: date, end_date: date, is_half_day: bool, leave_type: str, today: date) -> None:
    if end_date < start_date:
        raise InvalidDateRange("End date cannot be before start date")
    if start_date < today:
        raise InvalidDateRange("Leave cannot start in the past")
    if is_half_day and start_date != end_date:
        raise InvalidDateRange("Half-day leave must start and end on the same date")
    if leave_type in CURRENT_YEAR_ONLY_LEAVE_TYPES and end_date > date(today.year, 12, 31):
        raise InvalidDateRange(f"{leave_type} leave must end within {today.year}")


async def _check_window(
    session: AsyncSession,
    organization_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> None:
    if not get_settings().enforce_window_validation:
        return
    verdict = await validate_leave_dates(session, organization_id, start_date, end_date)
    if not verdict.is_valid:
        raise LeaveWindowRejected(verdict.message)


def _ensure_capacity(balance: LeaveBalance, days: Decimal) -> None:
    """Submission-time check; nothing is reserved until approval."""
    if balance.used + days > balance.total_allowed:
        available = balance.total_allowed - balance.used
        raise InsufficientBalance(
            f"Insufficient {balance.leave_type} balance: {available} day(s) available, {days} requested"
        )


def _ensure_can_modify(auth: AuthContext, leave: LeaveRequest) -> None:
    """Approvers may change any request; owners only their pending ones."""
    if auth.is_approver:
        return
    if auth.user_id == leave.employee_id and leave.status == LeaveStatus.PENDING:
        return
    raise NotAuthorized("Not authorized to modify this leave request")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def apply_leave(
    session: AsyncSession,
    auth: AuthContext,
    payload: ApplyLeaveRequest,
) -> LeaveResponse:
    """Submit a leave request in PENDING state.

    Flow:
    1. Resolve the employee and reject inactive ones
    2. Check the date span against today and the leave type
    3. Resolve the active rule and the eligibility filter
    4. Require an attachment where the rule asks for one
    5. Run the window validator
    6. Pre-check the current-year balance (no debit)
    7. Persist, audit, commit
    8. Notify the manager
    """
    employee_id = payload.employee_id or auth.user_id
    if employee_id != auth.user_id and not auth.is_approver:
        raise NotAuthorized("Only approvers may apply for leave on behalf of another employee")

    employee = await get_employee_directory().get_employee(auth.organization_id, employee_id)
    if employee is None:
        raise NotFound("Employee not found")
    if employee.status == EmployeeStatus.INACTIVE:
        raise IneligibleEmployee("Inactive employees cannot apply for leave")

    today = await organization_today(auth.organization_id)
    leave_type = payload.leave_type.value

    async with unit_of_work(session):
        _check_date_span(payload.start_date, payload.end_date, payload.is_half_day, leave_type, today)

        rule = await get_active_rule(session, auth.organization_id, leave_type)
        if not is_rule_applicable(rule, employee, today):
            raise IneligibleEmployee(f"Employee is not eligible for {leave_type} leave")
        if rule.requires_document and not payload.attachment_ref:
            raise MissingDocument(f"{leave_type} leave requires a supporting document")

        await _check_window(session, auth.organization_id, payload.start_date, payload.end_date)

        applied_days = compute_applied_days(payload.start_date, payload.end_date, payload.is_half_day)
        balance = await ledger.require_balance(session, employee_id, leave_type, today.year)
        _ensure_capacity(balance, applied_days)

        leave = LeaveRequest(
            organization_id=auth.organization_id,
            employee_id=employee_id,
            leave_type=leave_type,
            start_date=payload.start_date,
            end_date=payload.end_date,
            applied_days=applied_days,
            balance_year=balance.year,
            is_half_day=payload.is_half_day,
            half_day_type=payload.half_day_type.value if payload.is_half_day and payload.half_day_type else None,
            status=LeaveStatus.PENDING.value,
            reason=payload.reason,
            attachment_ref=payload.attachment_ref,
        )
        session.add(leave)
        await session.flush()

        await write_audit_log(
            session,
            organization_id=auth.organization_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE,
            entity_id=leave.id,
            action=AuditAction.CREATE,
            after_json=audit_snapshot(leave),
        )

    await notify_safely(employee.manager_id, NotificationEvent.LEAVE_APPLIED, _notification_payload(leave))
    return _build_leave_response(leave)


async def update_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    payload: UpdateLeaveRequest,
) -> LeaveResponse:
    """Edit a leave request through an explicit field merge.

    Day changes on an approved request move the ledger by the difference;
    on a pending request they re-run the submission capacity check.
    """

    async def _apply() -> LeaveRequest:
        leave = await _get_leave_or_404(session, auth.organization_id, leave_id)
        _ensure_can_modify(auth, leave)
        before = audit_snapshot(leave)

        changes: dict[str, Any] = {}
        for field in _EDITABLE_FIELDS:
            if field not in payload.model_fields_set:
                continue
            value = getattr(payload, field)
            if value is None and field in _REQUIRED_FIELDS:
                continue
            changes[field] = value

        start_date = changes.get("start_date", leave.start_date)
        end_date = changes.get("end_date", leave.end_date)
        is_half_day = changes.get("is_half_day", leave.is_half_day)
        half_day_type = changes.get("half_day_type", leave.half_day_type)
        if not is_half_day:
            half_day_type = None
        elif half_day_type is None:
            raise AppError("half_day_type is required for half-day leave", status_code=400)

        span_changed = (start_date, end_date, is_half_day) != (leave.start_date, leave.end_date, leave.is_half_day)
        old_days = leave.applied_days
        new_days = old_days
        if span_changed:
            today = await organization_today(auth.organization_id)
            _check_date_span(start_date, end_date, is_half_day, leave.leave_type, today)
            await _check_window(session, auth.organization_id, start_date, end_date)
            new_days = compute_applied_days(start_date, end_date, is_half_day)

        if new_days != old_days:
            if leave.status == LeaveStatus.APPROVED:
                if leave.approved_by is None:
                    raise MissingApprover("Approved leave has no approver on record")
                await ledger.adjust_for_edit(
                    session, leave.employee_id, leave.leave_type, leave.balance_year, old_days, new_days
                )
            elif leave.status == LeaveStatus.PENDING:
                year = (await organization_today(auth.organization_id)).year
                balance = await ledger.require_balance(session, leave.employee_id, leave.leave_type, year)
                _ensure_capacity(balance, new_days)
                leave.balance_year = year

        leave.start_date = start_date
        leave.end_date = end_date
        leave.is_half_day = is_half_day
        leave.half_day_type = half_day_type.value if isinstance(half_day_type, HalfDayType) else half_day_type
        leave.applied_days = new_days
        if "reason" in changes:
            leave.reason = changes["reason"]
        if "attachment_ref" in changes:
            leave.attachment_ref = changes["attachment_ref"]
        await session.flush()

        await write_audit_log(
            session,
            organization_id=auth.organization_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE,
            entity_id=leave.id,
            action=AuditAction.UPDATE,
            before_json=before,
            after_json=audit_snapshot(leave),
        )
        return leave

    leave = await ledger.retry_on_conflict(session, _apply, description=f"edit of leave {leave_id}")
    return _build_leave_response(leave)


async def set_leave_status(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    target: LeaveStatus,
    *,
    approver_id: uuid.UUID | None,
    rejection_reason: str | None = None,
) -> LeaveResponse:
    """Move a request to APPROVED or REJECTED, debiting or crediting the ledger.

    An approval that would overflow the balance fails and leaves the
    request in its prior state.
    """
    if not auth.is_approver:
        raise NotAuthorized("Only admins and managers can approve or reject leave")

    async def _transition() -> LeaveRequest:
        leave = await _get_leave_or_404(session, auth.organization_id, leave_id)
        current = LeaveStatus(leave.status)
        if (current, target) not in _TRANSITIONS:
            raise InvalidStatusTransition(f"Cannot move leave from {current} to {target}")

        before = audit_snapshot(leave)

        if target == LeaveStatus.APPROVED:
            if approver_id is None:
                raise MissingApprover("An approver is required to approve leave")
            # The ledger year is fixed at approval time, not at submission.
            year = (await organization_today(auth.organization_id)).year
            await ledger.debit(session, leave.employee_id, leave.leave_type, year, leave.applied_days)
            leave.balance_year = year
            leave.approved_by = approver_id
            leave.rejection_reason = None
            action = AuditAction.APPROVE
        else:
            if current == LeaveStatus.APPROVED:
                await ledger.credit(
                    session, leave.employee_id, leave.leave_type, leave.balance_year, leave.applied_days
                )
            leave.approved_by = None
            leave.rejection_reason = rejection_reason
            action = AuditAction.REJECT

        leave.status = target.value
        leave.decided_at = clock.now()
        await session.flush()

        await write_audit_log(
            session,
            organization_id=auth.organization_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE,
            entity_id=leave.id,
            action=action,
            before_json=before,
            after_json=audit_snapshot(leave),
        )
        return leave

    leave = await ledger.retry_on_conflict(session, _transition, description=f"{target} of leave {leave_id}")

    event = NotificationEvent.LEAVE_APPROVED if target == LeaveStatus.APPROVED else NotificationEvent.LEAVE_REJECTED
    await notify_safely(leave.employee_id, event, _notification_payload(leave))
    return _build_leave_response(leave)


async def approve_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    approver_id: uuid.UUID | None,
) -> LeaveResponse:
    return await set_leave_status(session, auth, leave_id, LeaveStatus.APPROVED, approver_id=approver_id)


async def reject_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    rejection_reason: str | None = None,
) -> LeaveResponse:
    return await set_leave_status(
        session,
        auth,
        leave_id,
        LeaveStatus.REJECTED,
        approver_id=None,
        rejection_reason=rejection_reason,
    )


async def delete_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
) -> None:
    """Remove a request, crediting back any days its approval consumed."""

    async def _delete() -> None:
        leave = await _get_leave_or_404(session, auth.organization_id, leave_id)
        _ensure_can_modify(auth, leave)

        if leave.status == LeaveStatus.APPROVED:
            try:
                await ledger.credit(
                    session, leave.employee_id, leave.leave_type, leave.balance_year, leave.applied_days
                )
            except NoBalanceConfigured:
                logger.warning(
                    "No %s balance for %s left to credit on delete of leave %s",
                    leave.leave_type,
                    leave.balance_year,
                    leave.id,
                )

        await write_audit_log(
            session,
            organization_id=auth.organization_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE,
            entity_id=leave.id,
            action=AuditAction.DELETE,
            before_json=audit_snapshot(leave),
        )
        await session.delete(leave)

    await ledger.retry_on_conflict(session, _delete, description=f"delete of leave {leave_id}")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_leave(
    session: AsyncSession,
    organization_id: uuid.UUID,
    leave_id: uuid.UUID,
) -> LeaveResponse:
    """Get a single leave request by ID."""
    leave = await _get_leave_or_404(session, organization_id, leave_id)
    return _build_leave_response(leave)


async def list_leaves(
    session: AsyncSession,
    organization_id: uuid.UUID,
    *,
    employee_ids: list[uuid.UUID] | None = None,
    leave_type: LeaveType | None = None,
    status_filter: LeaveStatus | None = None,
    start_from: date | None = None,
    start_to: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LeaveListResponse:
    """List leave requests with optional filters, newest start date first."""
    base_filters = [col(LeaveRequest.organization_id) == organization_id]

    if employee_ids is not None:
        base_filters.append(col(LeaveRequest.employee_id).in_(employee_ids))
    if leave_type is not None:
        base_filters.append(col(LeaveRequest.leave_type) == leave_type.value)
    if status_filter is not None:
        base_filters.append(col(LeaveRequest.status) == status_filter.value)
    if start_from is not None:
        base_filters.append(col(LeaveRequest.start_date) >= start_from)
    if start_to is not None:
        base_filters.append(col(LeaveRequest.start_date) <= start_to)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*base_filters)
        .order_by(col(LeaveRequest.start_date).desc(), col(LeaveRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    leaves = list(result.scalars().all())

    return LeaveListResponse(items=[_build_leave_response(leave) for leave in leaves], total=total)


async def list_subordinate_leaves(
    session: AsyncSession,
    auth: AuthContext,
    *,
    status_filter: LeaveStatus | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LeaveListResponse:
    """Leave requests of the caller's direct reports."""
    reports = await get_direct_reports(auth.organization_id, auth.user_id)
    if not reports:
        return LeaveListResponse(items=[], total=0)
    return await list_leaves(
        session,
        auth.organization_id,
        employee_ids=[e.id for e in reports],
        status_filter=status_filter,
        offset=offset,
        limit=limit,
    )
