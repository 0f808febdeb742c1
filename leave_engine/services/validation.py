"""Leave window validation: weekend/holiday overlap and sandwich detection."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from leave_engine.config import get_settings
from leave_engine.exceptions import InvalidDateRange
from leave_engine.schemas.leave import HolidayDate, LeaveDateValidation, LeaveDateValidationDetails
from leave_engine.services.calendar import classify, is_working_day
from leave_engine.services.holiday import fetch_holiday_map

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterator, Mapping

    from sqlalchemy.ext.asyncio import AsyncSession

VALID_MESSAGE = "Leave dates are valid"
INVALID_MESSAGE = "Leave dates include organization holidays or weekend days (Friday/Saturday)"

_ONE_DAY = timedelta(days=1)


def _as_date(value: date) -> date:
    """Drop any time component, keeping the calendar date as given."""
    if isinstance(value, datetime):
        return value.date()
    return value


def _days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += _ONE_DAY


def find_sandwiched_days(start: date, end: date, holidays: Mapping[date, str]) -> list[date]:
    """Return the non-working days strictly between two working-day boundaries.

    Empty when either boundary is itself a weekend or holiday.
    """
    if not (is_working_day(start, holidays) and is_working_day(end, holidays)):
        return []
    return [day for day in _days(start + _ONE_DAY, end - _ONE_DAY) if not is_working_day(day, holidays)]


def evaluate_leave_window(start: date, end: date, holidays: Mapping[date, str]) -> LeaveDateValidation:
    """Evaluate an inclusive leave window against a holiday map.

    Sandwiching is checked first: a window bounded by working days that
    encloses weekends or holidays is valid, the enclosed days counting as
    leave. Otherwise any weekend or holiday inside the window makes it invalid.
    """
    start = _as_date(start)
    end = _as_date(end)
    if end < start:
        raise InvalidDateRange("End date cannot be before start date")

    weekend_dates: list[date] = []
    holiday_dates: list[HolidayDate] = []
    for day in _days(start, end):
        verdict = classify(day, holidays)
        if verdict.is_weekend:
            weekend_dates.append(day)
        if verdict.is_holiday:
            holiday_dates.append(HolidayDate(date=day, name=verdict.holiday_name or ""))

    sandwiched = find_sandwiched_days(start, end, holidays)

    has_weekends = bool(weekend_dates)
    has_holidays = bool(holiday_dates)
    is_sandwiching = bool(sandwiched)

    if is_sandwiching:
        is_valid = True
        message = f"{VALID_MESSAGE}; {len(sandwiched)} enclosed non-working day(s) count as leave"
    elif has_weekends or has_holidays:
        is_valid = False
        message = INVALID_MESSAGE
    else:
        is_valid = True
        message = VALID_MESSAGE

    return LeaveDateValidation(
        is_valid=is_valid,
        message=message,
        details=LeaveDateValidationDetails(
            has_weekends=has_weekends,
            has_holidays=has_holidays,
            is_sandwiching=is_sandwiching,
            weekend_dates=weekend_dates if has_weekends else None,
            holiday_dates=holiday_dates if has_holidays else None,
            sandwiching_dates=sandwiched if is_sandwiching else None,
        ),
    )


async def validate_leave_dates(
    session: AsyncSession,
    organization_id: uuid.UUID,
    start: date,
    end: date,
) -> LeaveDateValidation:
    """Fetch the organization's holidays around the window and evaluate it."""
    start = _as_date(start)
    end = _as_date(end)
    if end < start:
        raise InvalidDateRange("End date cannot be before start date")

    buffer = timedelta(days=get_settings().holiday_buffer_days)
    holidays = await fetch_holiday_map(session, organization_id, start - buffer, end + buffer)
    return evaluate_leave_window(start, end, holidays)
