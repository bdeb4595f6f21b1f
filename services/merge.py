"""Union of per-source daily series into canonical daily points."""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional

from models.records import DailyPoint, DailySourcePoint


def _index(points: Iterable[DailySourcePoint]) -> Dict[date, Optional[int]]:
    return {point.date: point.value for point in points}


def merge_daily(
    primary: Iterable[DailySourcePoint] = (),
    secondary: Iterable[DailySourcePoint] = (),
    loads: Iterable[DailySourcePoint] = (),
) -> List[DailyPoint]:
    """Build one ``DailyPoint`` per date any source reported, sorted by date."""
    primary_by_date = _index(primary)
    secondary_by_date = _index(secondary)
    loads_by_date = _index(loads)

    dates = set(primary_by_date) | set(secondary_by_date) | set(loads_by_date)
    return [
        DailyPoint(
            date=day,
            primary_max=primary_by_date.get(day),
            secondary_max=secondary_by_date.get(day),
            derived_loads=loads_by_date.get(day),
        )
        for day in sorted(dates)
    ]
