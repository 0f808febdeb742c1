"""Tests for audit snapshots and the audit log query."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from leave_engine.models.holiday import Holiday
from leave_engine.services.audit import audit_snapshot

if TYPE_CHECKING:
    from httpx import AsyncClient

ORG_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
ADMIN_HEADERS = {"X-Organization-Id": str(ORG_ID), "X-User-Id": str(ADMIN_ID), "X-Role": "admin"}
MANAGER_HEADERS = {**ADMIN_HEADERS, "X-Role": "manager"}
AUDIT_URL = f"/organizations/{ORG_ID}/audit-log"
RULES_URL = f"/organizations/{ORG_ID}/rules"


def test_snapshot_is_json_safe() -> None:
    holiday = Holiday(
        id=uuid.uuid4(),
        organization_id=ORG_ID,
        date=date(2026, 12, 18),
        name="National Day",
        created_at=datetime(2026, 1, 5, 8, 0, tzinfo=UTC),
    )
    snapshot = audit_snapshot(holiday)
    assert snapshot["organization_id"] == str(ORG_ID)
    assert snapshot["date"] == "2026-12-18"
    assert snapshot["created_at"] == "2026-01-05T08:00:00+00:00"
    assert snapshot["description"] is None


async def test_rule_history_newest_first(async_client: AsyncClient) -> None:
    rule = (
        await async_client.post(RULES_URL, json={"leave_type": "SICK", "max_allowed": 5}, headers=ADMIN_HEADERS)
    ).json()
    await async_client.patch(f"{RULES_URL}/{rule['id']}", json={"max_allowed": 7}, headers=ADMIN_HEADERS)

    resp = await async_client.get(AUDIT_URL, params={"entity_id": rule["id"]}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    assert [e["action"] for e in data["items"]] == ["UPDATE", "CREATE"]
    update = data["items"][0]
    assert Decimal(update["before_json"]["max_allowed"]) == 5
    assert Decimal(update["after_json"]["max_allowed"]) == 7


async def test_filter_by_entity_type_and_action(async_client: AsyncClient) -> None:
    await async_client.post(RULES_URL, json={"leave_type": "SICK", "max_allowed": 5}, headers=ADMIN_HEADERS)
    await async_client.post(
        f"/organizations/{ORG_ID}/holidays", json={"date": "2026-12-18", "name": "National Day"}, headers=ADMIN_HEADERS
    )

    resp = await async_client.get(
        AUDIT_URL, params={"entity_type": "HOLIDAY", "action": "CREATE"}, headers=ADMIN_HEADERS
    )
    [entry] = resp.json()["items"]
    assert entry["entity_type"] == "HOLIDAY"
    assert entry["actor_id"] == str(ADMIN_ID)


async def test_audit_log_is_admin_only(async_client: AsyncClient) -> None:
    resp = await async_client.get(AUDIT_URL, headers=MANAGER_HEADERS)
    assert resp.status_code == 403
