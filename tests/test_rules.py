"""Tests for the rule catalog: CRUD, regional defaults and the eligibility filter."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select
from sqlmodel import col

from leave_engine.models.audit import AuditLog
from leave_engine.models.enums import EmployeeStatus, Gender, LeaveType, Region
from leave_engine.models.rule import LeaveRule
from leave_engine.services.employee import EmployeeInfo
from leave_engine.services.organization import OrganizationInfo
from leave_engine.services.rule import is_rule_applicable, tenure_months

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from tests.conftest import Collaborators

ORG_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
EMPLOYEE_ID = uuid.uuid4()
ADMIN_HEADERS = {
    "X-Organization-Id": str(ORG_ID),
    "X-User-Id": str(ADMIN_ID),
    "X-Role": "admin",
}
EMPLOYEE_HEADERS = {
    "X-Organization-Id": str(ORG_ID),
    "X-User-Id": str(EMPLOYEE_ID),
    "X-Role": "employee",
}
RULES_URL = f"/organizations/{ORG_ID}/rules"
ASSIGNMENTS_URL = f"/organizations/{ORG_ID}/assignments"


def _employee(gender: Gender = Gender.MALE, joining_date: date = date(2024, 1, 15)) -> EmployeeInfo:
    return EmployeeInfo(
        id=EMPLOYEE_ID,
        organization_id=ORG_ID,
        first_name="Sam",
        last_name="Rivera",
        email="sam@example.com",
        gender=gender,
        joining_date=joining_date,
        status=EmployeeStatus.ACTIVE,
    )


async def _create_rule(client: AsyncClient, leave_type: str = "ANNUAL", **fields: object) -> dict:  # type: ignore[type-arg]
    resp = await client.post(
        RULES_URL,
        json={"leave_type": leave_type, "max_allowed": 12, **fields},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201, resp.text
    data: dict = resp.json()  # type: ignore[type-arg]
    return data


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------


async def test_create_rule(async_client: AsyncClient) -> None:
    data = await _create_rule(async_client, "SICK", max_allowed=2, min_tenure_months=3)
    assert data["leave_type"] == "SICK"
    assert data["max_allowed"] == 2.0
    assert data["min_tenure_months"] == 3
    assert data["is_active"] is True
    assert data["organization_id"] == str(ORG_ID)


async def test_carry_forward_max_defaults_per_leave_type(async_client: AsyncClient) -> None:
    annual = await _create_rule(async_client, "ANNUAL")
    casual = await _create_rule(async_client, "CASUAL")
    assert annual["carry_forward_max"] == 10.0
    assert casual["carry_forward_max"] == 0.0


async def test_duplicate_rule_is_rejected(async_client: AsyncClient) -> None:
    await _create_rule(async_client, "ANNUAL")
    resp = await async_client.post(
        RULES_URL, json={"leave_type": "ANNUAL", "max_allowed": 5}, headers=ADMIN_HEADERS
    )
    assert resp.status_code == 409
    assert resp.json()["error"] == "DuplicateRule"


async def test_create_rule_requires_admin(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        RULES_URL, json={"leave_type": "ANNUAL", "max_allowed": 5}, headers=EMPLOYEE_HEADERS
    )
    assert resp.status_code == 403


async def test_organization_scope_mismatch(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"/organizations/{uuid.uuid4()}/rules", headers=ADMIN_HEADERS)
    assert resp.status_code == 403


async def test_list_and_get_by_type(async_client: AsyncClient) -> None:
    await _create_rule(async_client, "ANNUAL")
    await _create_rule(async_client, "SICK", is_active=False)

    resp = await async_client.get(RULES_URL, headers=EMPLOYEE_HEADERS)
    assert resp.json()["total"] == 2

    resp = await async_client.get(RULES_URL, params={"active_only": True}, headers=EMPLOYEE_HEADERS)
    assert [r["leave_type"] for r in resp.json()["items"]] == ["ANNUAL"]

    resp = await async_client.get(f"{RULES_URL}/by-type/SICK", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    resp = await async_client.get(f"{RULES_URL}/by-type/MATERNITY", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------


async def test_update_only_touches_given_fields(async_client: AsyncClient) -> None:
    rule = await _create_rule(async_client, "CASUAL", applicable_gender="FEMALE", min_tenure_months=6)

    resp = await async_client.patch(f"{RULES_URL}/{rule['id']}", json={"max_allowed": 15}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["max_allowed"] == 15.0
    assert data["applicable_gender"] == "FEMALE"
    assert data["min_tenure_months"] == 6


async def test_update_can_clear_gender_restriction(async_client: AsyncClient) -> None:
    rule = await _create_rule(async_client, "CASUAL", applicable_gender="FEMALE")

    resp = await async_client.patch(
        f"{RULES_URL}/{rule['id']}", json={"applicable_gender": None}, headers=ADMIN_HEADERS
    )
    assert resp.json()["applicable_gender"] is None


async def test_update_writes_audit(async_client: AsyncClient, db_session: AsyncSession) -> None:
    rule = await _create_rule(async_client, "ANNUAL")
    await async_client.patch(f"{RULES_URL}/{rule['id']}", json={"is_active": False}, headers=ADMIN_HEADERS)

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(rule["id"])).order_by(col(AuditLog.created_at))
    )
    actions = [entry.action for entry in result.scalars().all()]
    assert actions == ["CREATE", "UPDATE"]


async def test_delete_unused_rule(async_client: AsyncClient, db_session: AsyncSession) -> None:
    rule = await _create_rule(async_client, "ANNUAL")
    resp = await async_client.delete(f"{RULES_URL}/{rule['id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 204

    result = await db_session.execute(select(LeaveRule))
    assert result.scalars().all() == []


async def test_delete_rule_with_active_balance_is_refused(
    async_client: AsyncClient, collaborators: Collaborators
) -> None:
    collaborators.employees.seed(_employee())
    rule = await _create_rule(async_client, "ANNUAL")
    resp = await async_client.post(
        ASSIGNMENTS_URL,
        json={"employee_id": str(EMPLOYEE_ID), "rule_id": rule["id"]},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201

    resp = await async_client.delete(f"{RULES_URL}/{rule['id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 409
    assert resp.json()["error"] == "RuleInUse"


# ---------------------------------------------------------------------------
# Regional defaults
# ---------------------------------------------------------------------------


async def test_initialize_defaults_for_india(async_client: AsyncClient, collaborators: Collaborators) -> None:
    collaborators.organizations.seed(
        OrganizationInfo(id=ORG_ID, name="Acme", region=Region.INDIA, timezone="Asia/Kolkata")
    )

    resp = await async_client.post(f"{RULES_URL}/defaults", json={"region": "INDIA"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 201
    rules = {r["leave_type"]: r for r in resp.json()["items"]}
    assert set(rules) == {t.value for t in LeaveType}
    assert rules["MATERNITY"]["max_allowed"] == 182.0
    assert rules["MATERNITY"]["applicable_gender"] == "FEMALE"
    assert rules["ANNUAL"]["carry_forward_max"] == 10.0
    assert rules["EMERGENCY"]["requires_document"] is True


async def test_initialize_defaults_skips_existing_rules(
    async_client: AsyncClient, collaborators: Collaborators
) -> None:
    collaborators.organizations.seed(
        OrganizationInfo(id=ORG_ID, name="Acme", region=Region.QATAR, timezone="Asia/Qatar")
    )
    await _create_rule(async_client, "ANNUAL", max_allowed=21)

    resp = await async_client.post(f"{RULES_URL}/defaults", json={"region": "QATAR"}, headers=ADMIN_HEADERS)
    created = {r["leave_type"]: r for r in resp.json()["items"]}
    assert "ANNUAL" not in created
    assert created["MATERNITY"]["max_allowed"] == 50.0

    resp = await async_client.post(f"{RULES_URL}/defaults", json={"region": "QATAR"}, headers=ADMIN_HEADERS)
    assert resp.json()["total"] == 0


async def test_initialize_defaults_unknown_organization(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{RULES_URL}/defaults", json={"region": "INDIA"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("joining", "today", "expected"),
    [
        (date(2025, 1, 31), date(2025, 2, 1), 1),
        (date(2024, 6, 15), date(2026, 3, 2), 21),
        (date(2026, 5, 1), date(2026, 3, 2), 0),
        (date(2026, 3, 2), date(2026, 3, 2), 0),
    ],
)
def test_tenure_months(joining: date, today: date, expected: int) -> None:
    assert tenure_months(joining, today) == expected


def test_gender_restriction() -> None:
    rule = LeaveRule(organization_id=ORG_ID, leave_type="CASUAL", max_allowed=Decimal(5), applicable_gender="FEMALE")
    assert not is_rule_applicable(rule, _employee(Gender.MALE), date(2026, 3, 2))
    assert is_rule_applicable(rule, _employee(Gender.FEMALE), date(2026, 3, 2))


def test_maternity_needs_female_even_without_restriction() -> None:
    rule = LeaveRule(organization_id=ORG_ID, leave_type="MATERNITY", max_allowed=Decimal(50))
    assert not is_rule_applicable(rule, _employee(Gender.MALE), date(2026, 3, 2))


def test_minimum_tenure() -> None:
    rule = LeaveRule(organization_id=ORG_ID, leave_type="ANNUAL", max_allowed=Decimal(11), min_tenure_months=6)
    assert not is_rule_applicable(rule, _employee(joining_date=date(2025, 10, 1)), date(2026, 3, 2))
    assert is_rule_applicable(rule, _employee(joining_date=date(2025, 9, 1)), date(2026, 3, 2))
