"""Summary statistics and gap-aware deltas for presentation."""

from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Callable, List, Optional, Sequence

from models.records import DailyPoint, ExtremePoint, StatsSummary, TableRow
from services.rounding import round_half_up

DEFAULT_MAX_DELTA_GAP_DAYS = 7

FieldPicker = Callable[[DailyPoint], Optional[int]]


def latest_value(points: Sequence[DailyPoint]) -> Optional[int]:
    for point in reversed(points):
        if point.primary_max is not None:
            return point.primary_max
    return None


def _fallback_last_updated_at(points: Sequence[DailyPoint]) -> Optional[datetime]:
    if not points:
        return None
    return datetime.combine(points[-1].date, time(0, 0, 0), tzinfo=timezone.utc)


def build_stats(
    points: Sequence[DailyPoint], last_updated_at: Optional[datetime] = None
) -> StatsSummary:
    """Current value, all-time peak and low of the primary series.

    An extreme keeps the first date on which it was reached.
    """
    peak: Optional[ExtremePoint] = None
    low: Optional[ExtremePoint] = None

    for point in points:
        value = point.primary_max
        if value is None:
            continue
        if peak is None or value > peak.value:
            peak = ExtremePoint(value=value, date=point.date)
        if low is None or value < low.value:
            low = ExtremePoint(value=value, date=point.date)

    return StatsSummary(
        current_value=latest_value(points),
        all_time_peak=peak,
        all_time_low=low,
        last_updated_at=last_updated_at or _fallback_last_updated_at(points),
    )


def compute_delta(
    points: Sequence[DailyPoint],
    index: int,
    pick: FieldPicker,
    max_gap_days: int = DEFAULT_MAX_DELTA_GAP_DAYS,
) -> Optional[int]:
    """Change against the nearest earlier day holding a value.

    Adjacent days give the exact difference; gaps up to ``max_gap_days`` give
    the difference amortized per day.
    """
    current = points[index]
    value = pick(current)
    if value is None:
        return None

    for previous_index in range(index - 1, -1, -1):
        previous = points[previous_index]
        gap = (current.date - previous.date).days
        if gap > max_gap_days:
            return None
        previous_value = pick(previous)
        if previous_value is None:
            continue
        if gap <= 0:
            return None
        if gap == 1:
            return value - previous_value
        return round_half_up((value - previous_value) / gap)

    return None


def build_table_rows(
    points: Sequence[DailyPoint], max_gap_days: int = DEFAULT_MAX_DELTA_GAP_DAYS
) -> List[TableRow]:
    rows: List[TableRow] = []
    for index, point in enumerate(points):
        rows.append(
            TableRow(
                date=point.date,
                primary_max=point.primary_max,
                secondary_max=point.secondary_max,
                derived_loads=point.derived_loads,
                primary_delta=compute_delta(points, index, lambda item: item.primary_max, max_gap_days),
                secondary_delta=compute_delta(
                    points, index, lambda item: item.secondary_max, max_gap_days
                ),
                loads_delta=compute_delta(points, index, lambda item: item.derived_loads, max_gap_days),
            )
        )
    return rows
