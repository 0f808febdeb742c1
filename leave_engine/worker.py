"""Worker process for the scheduled annual rollover.

Wakes at each organization's local midnight and, when that local date is the
configured rollover date, recomputes the organization's balances for the
year that has just opened.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from leave_engine.config import configure_logging, get_settings
from leave_engine.db import get_session_factory
from leave_engine.services import clock
from leave_engine.services.employee import get_employee_directory
from leave_engine.services.organization import DEFAULT_TIMEZONE, get_organization_timezone

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable
    from datetime import date

logger = logging.getLogger(__name__)


def is_rollover_day(today: date) -> bool:
    settings = get_settings()
    return (today.month, today.day) == (settings.rollover_month, settings.rollover_day)


def seconds_until_next_midnight(now: datetime, timezones: Iterable[str]) -> float:
    """Seconds from ``now`` to the earliest upcoming local midnight among ``timezones``."""
    waits = []
    for tz_name in set(timezones) or {DEFAULT_TIMEZONE}:
        local = now.astimezone(ZoneInfo(tz_name))
        midnight = datetime.combine(local.date() + timedelta(days=1), datetime.min.time(), tzinfo=local.tzinfo)
        waits.append((midnight - now).total_seconds())
    return min(waits)


async def _organization_timezones() -> dict[uuid.UUID, str]:
    employees = await get_employee_directory().list_employees(None)
    return {
        organization_id: await get_organization_timezone(organization_id)
        for organization_id in {e.organization_id for e in employees}
    }


async def run_scheduled_rollover(completed: set[tuple[uuid.UUID, int]] | None = None) -> None:
    """Roll every organization whose local date is the rollover date.

    ``completed`` remembers (organization, year) pairs already rolled by this
    process so a second wake on the same day does not reset fresh balances.
    Failures are logged per organization, never raised.
    """
    from leave_engine.services.rollover import run_annual_rollover

    completed = completed if completed is not None else set()
    for organization_id, tz_name in (await _organization_timezones()).items():
        today = clock.today(tz_name)
        if not is_rollover_day(today):
            logger.debug("Rollover skipped for organization=%s: %s is not the rollover date", organization_id, today)
            continue
        if (organization_id, today.year) in completed:
            continue

        logger.info("Running annual rollover for %s (organization=%s)", today.year, organization_id)
        try:
            async with get_session_factory()() as session:
                result = await run_annual_rollover(session, today.year, organization_id=organization_id)
        except Exception:
            logger.exception("Rollover run failed for %s (organization=%s)", today.year, organization_id)
            continue

        completed.add((organization_id, today.year))
        logger.info(
            "Rollover run complete for %s (organization=%s): processed=%d succeeded=%d errors=%d purged=%d",
            today.year,
            organization_id,
            result.processed,
            result.succeeded,
            result.errors,
            result.purged,
        )


async def run_rollover_loop() -> None:
    """Main worker loop."""
    settings = get_settings()
    completed: set[tuple[uuid.UUID, int]] = set()
    logger.info("Rollover worker started")
    while True:
        await run_scheduled_rollover(completed)
        timezones = (await _organization_timezones()).values()
        delay = min(seconds_until_next_midnight(clock.now(), timezones), settings.worker_interval_seconds)
        logger.debug("Next rollover check in %.0fs", delay)
        await asyncio.sleep(delay)


def main() -> None:
    """Entry point for the worker process."""
    configure_logging()
    asyncio.run(run_rollover_loop())


if __name__ == "__main__":
    main()
