"""Annual rollover: recompute a year's ledger rows from rules and the prior year.

Runs on Jan 1 from the worker, or on demand. Re-running for the same year
overwrites rather than accumulates.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from leave_engine.config import get_settings
from leave_engine.db import unit_of_work
from leave_engine.defaults import CARRY_FORWARD_LEAVE_TYPE
from leave_engine.models.enums import AuditAction, AuditEntityType, EmployeeStatus
from leave_engine.services import clock, ledger
from leave_engine.services.assignment import get_assigned_rules
from leave_engine.services.audit import audit_snapshot, write_audit_log
from leave_engine.services.employee import get_employee_directory
from leave_engine.services.organization import organization_today
from leave_engine.services.rule import is_rule_applicable, list_active_rules

if TYPE_CHECKING:
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.models.rule import LeaveRule
    from leave_engine.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = uuid.UUID(int=0)

_ROLLOVER_STATUSES = frozenset({EmployeeStatus.ACTIVE, EmployeeStatus.ON_LEAVE})
_ZERO = Decimal(0)


@dataclass
class RolloverRunResult:
    """Result of a rollover run."""

    target_year: int
    processed: int = 0
    succeeded: int = 0
    errors: int = 0
    purged: int = 0
    details: list[dict[str, object]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def carry_forward_amount(previous_total: Decimal, previous_used: Decimal, cap: Decimal) -> Decimal:
    """Unused days, floored at zero and capped."""
    return min(max(previous_total - previous_used, _ZERO), cap)


async def _resolve_entitlements(
    session: AsyncSession,
    employee: EmployeeInfo,
    today: date,
) -> list[tuple[LeaveRule, Decimal]]:
    """(rule, base allowance) pairs that apply to the employee.

    Assignments win; with none, every active organization rule is a candidate.
    Both paths go through the eligibility filter.
    """
    assigned = await get_assigned_rules(session, employee.id)
    if assigned:
        return [
            (rule, assignment.custom_max_allowed if assignment.custom_max_allowed is not None else rule.max_allowed)
            for assignment, rule in assigned
            if rule.is_active and is_rule_applicable(rule, employee, today)
        ]

    rules = await list_active_rules(session, employee.organization_id)
    return [(rule, rule.max_allowed) for rule in rules if is_rule_applicable(rule, employee, today)]


async def _roll_employee(
    session: AsyncSession,
    employee: EmployeeInfo,
    target_year: int,
    actor_id: uuid.UUID,
) -> list[dict[str, object]]:
    today = await organization_today(employee.organization_id)
    cap = Decimal(get_settings().carry_forward_cap)
    written: list[dict[str, object]] = []

    for rule, base_allowance in await _resolve_entitlements(session, employee, today):
        carried = _ZERO
        if rule.leave_type == CARRY_FORWARD_LEAVE_TYPE:
            previous = await ledger.get_balance(session, employee.id, rule.leave_type, target_year - 1)
            if previous is not None:
                carried = carry_forward_amount(previous.total_allowed, previous.used, cap)

        balance = await ledger.reset_year(
            session,
            organization_id=employee.organization_id,
            employee_id=employee.id,
            leave_type=rule.leave_type,
            year=target_year,
            total_allowed=base_allowance + carried,
            carry_forwarded=carried,
        )

        await write_audit_log(
            session,
            organization_id=employee.organization_id,
            actor_id=actor_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=balance.id,
            action=AuditAction.ROLLOVER,
            after_json=audit_snapshot(balance),
        )
        written.append(
            {
                "employee_id": str(employee.id),
                "leave_type": rule.leave_type,
                "total_allowed": float(balance.total_allowed),
                "carry_forwarded": float(balance.carry_forwarded),
            }
        )

    return written


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def run_annual_rollover(
    session: AsyncSession,
    target_year: int | None = None,
    *,
    organization_id: uuid.UUID | None = None,
    actor_id: uuid.UUID = SYSTEM_ACTOR,
) -> RolloverRunResult:
    """Recompute ``target_year`` balances for every active or on-leave employee.

    Each employee is committed in its own unit of work. A failing employee is
    logged and counted; the run carries on with the rest. Old rows are then
    purged past the retention window; a purge failure is logged only.
    """
    settings = get_settings()
    if target_year is None:
        today = await organization_today(organization_id) if organization_id else clock.today()
        target_year = today.year

    result = RolloverRunResult(target_year=target_year)

    employees = await get_employee_directory().list_employees(organization_id)
    for employee in employees:
        if employee.status not in _ROLLOVER_STATUSES:
            continue
        result.processed += 1

        async def _operation(employee: EmployeeInfo = employee) -> list[dict[str, object]]:
            return await _roll_employee(session, employee, target_year, actor_id)

        try:
            written = await ledger.retry_on_conflict(
                session, _operation, description=f"rollover {target_year} of employee {employee.id}"
            )
        except Exception:
            logger.exception("Rollover %s failed for employee=%s", target_year, employee.id)
            result.errors += 1
            continue

        result.succeeded += 1
        result.details.extend(written)

    cutoff_year = target_year - settings.balance_retention_years
    try:
        async with unit_of_work(session):
            result.purged = await ledger.purge_balances_before(session, cutoff_year, organization_id)
    except Exception:
        logger.exception("Purge of balances before %s failed", cutoff_year)

    logger.info(
        "Rollover %s: processed=%d succeeded=%d errors=%d purged=%d",
        target_year,
        result.processed,
        result.succeeded,
        result.errors,
        result.purged,
    )
    return result
