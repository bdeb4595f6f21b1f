"""Preset date windows over the daily series."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional, Sequence, TypeVar

from app.schemas import RangePreset
from models.records import DailyPoint, TableRow

_Dated = TypeVar("_Dated", DailyPoint, TableRow)

_PRESET_SHIFTS = {
    RangePreset.one_month: (0, 1),
    RangePreset.six_months: (0, 6),
    RangePreset.one_year: (1, 0),
    RangePreset.two_years: (2, 0),
}


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive calendar window."""

    start: date
    end: date


def shift_back(day: date, years: int = 0, months: int = 0) -> date:
    """Move ``day`` back by whole years and months, clamping to the month's end.

    Mar 31 minus one month is Feb 28 (or 29), never a day in March, so a
    window never starts after the calendar month it names.
    """
    month_index = day.year * 12 + (day.month - 1) - years * 12 - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def resolve_preset_range(
    points: Sequence[DailyPoint],
    preset: RangePreset,
    today: Optional[date] = None,
) -> DateRange:
    if not points:
        anchor = today or datetime.now(timezone.utc).date()
        return DateRange(start=anchor, end=anchor)

    start = points[0].date
    end = points[-1].date
    if preset is RangePreset.all:
        return DateRange(start=start, end=end)

    years, months = _PRESET_SHIFTS[preset]
    return DateRange(start=shift_back(end, years=years, months=months), end=end)


def filter_by_range(points: Sequence[_Dated], window: DateRange) -> List[_Dated]:
    return [point for point in points if window.start <= point.date <= window.end]
