"""Calendar classification: weekends and organization holidays."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date

# Organization weekend is Friday and Saturday (date.weekday(): Monday=0).
WEEKEND_WEEKDAYS = frozenset({4, 5})


@dataclass(frozen=True)
class DayClassification:
    """Working-day status of a single calendar date."""

    is_weekend: bool
    is_holiday: bool
    holiday_name: str | None = None

    @property
    def is_working_day(self) -> bool:
        return not (self.is_weekend or self.is_holiday)


def classify(day: date, holidays: Mapping[date, str]) -> DayClassification:
    """Classify ``day`` against the weekend rule and a holiday map keyed by date."""
    holiday_name = holidays.get(day)
    return DayClassification(
        is_weekend=day.weekday() in WEEKEND_WEEKDAYS,
        is_holiday=holiday_name is not None,
        holiday_name=holiday_name,
    )


def is_working_day(day: date, holidays: Mapping[date, str]) -> bool:
    return classify(day, holidays).is_working_day
