from __future__ import annotations

from datetime import date, datetime, timezone

from models.records import DailyPoint, ExtremePoint
from services.metrics import build_stats, build_table_rows, compute_delta, latest_value

SAMPLE = [
    DailyPoint(date=date(2026, 1, 1), primary_max=100, secondary_max=20, derived_loads=None),
    DailyPoint(date=date(2026, 1, 2), primary_max=130, secondary_max=22, derived_loads=1000),
    DailyPoint(date=date(2026, 1, 3), primary_max=110, secondary_max=None, derived_loads=1200),
]


def _primary(item: DailyPoint):
    return item.primary_max


def test_build_stats_computes_current_peak_and_low() -> None:
    stats = build_stats(SAMPLE)

    assert stats.current_value == 110
    assert stats.all_time_peak == ExtremePoint(value=130, date=date(2026, 1, 2))
    assert stats.all_time_low == ExtremePoint(value=100, date=date(2026, 1, 1))
    assert stats.last_updated_at == datetime(2026, 1, 3, tzinfo=timezone.utc)


def test_build_stats_prefers_supplied_freshness_timestamp() -> None:
    updated_at = datetime(2026, 1, 3, 17, 45, tzinfo=timezone.utc)

    assert build_stats(SAMPLE, updated_at).last_updated_at == updated_at


def test_current_value_skips_trailing_nulls() -> None:
    points = SAMPLE + [DailyPoint(date=date(2026, 1, 4), secondary_max=30)]

    assert latest_value(points) == 110
    assert build_stats(points).last_updated_at == datetime(2026, 1, 4, tzinfo=timezone.utc)


def test_extremes_keep_first_day_on_ties() -> None:
    values = [50, 70, 40, 60, 90, 80, 40, 85, 90, 60]
    points = [
        DailyPoint(date=date(2026, 1, day), primary_max=value)
        for day, value in enumerate(values, start=1)
    ]

    stats = build_stats(points)

    assert stats.all_time_peak == ExtremePoint(value=90, date=date(2026, 1, 5))
    assert stats.all_time_low == ExtremePoint(value=40, date=date(2026, 1, 3))


def test_empty_dataset_resolves_to_nulls() -> None:
    stats = build_stats([])

    assert stats.current_value is None
    assert stats.all_time_peak is None
    assert stats.all_time_low is None
    assert stats.last_updated_at is None
    assert build_table_rows([]) == []


def test_stats_ignore_days_without_primary_value() -> None:
    points = [DailyPoint(date=date(2026, 1, 1), secondary_max=5)]

    stats = build_stats(points)

    assert stats.current_value is None
    assert stats.all_time_peak is None
    assert stats.last_updated_at == datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_table_rows_add_day_over_day_deltas() -> None:
    rows = build_table_rows(SAMPLE)

    assert [row.primary_delta for row in rows] == [None, 30, -20]
    assert [row.secondary_delta for row in rows] == [None, 2, None]
    assert [row.loads_delta for row in rows] == [None, None, 200]
    assert rows[1].primary_max == 130
    assert rows[1].derived_loads == 1000


def test_delta_is_amortized_across_a_gap() -> None:
    points = [
        DailyPoint(date=date(2026, 1, 1), primary_max=100),
        DailyPoint(date=date(2026, 1, 2)),
        DailyPoint(date=date(2026, 1, 3)),
        DailyPoint(date=date(2026, 1, 5), primary_max=200),
    ]

    assert compute_delta(points, 3, _primary) == 25


def test_amortized_delta_rounds_half_up() -> None:
    points = [
        DailyPoint(date=date(2026, 1, 1), primary_max=100),
        DailyPoint(date=date(2026, 1, 3), primary_max=95),
        DailyPoint(date=date(2026, 1, 5), primary_max=100),
    ]

    assert compute_delta(points, 1, _primary) == -2
    assert compute_delta(points, 2, _primary) == 3


def test_delta_is_null_beyond_lookback_window() -> None:
    points = [
        DailyPoint(date=date(2026, 1, 1), primary_max=100),
        DailyPoint(date=date(2026, 1, 8), primary_max=170),
        DailyPoint(date=date(2026, 1, 16), primary_max=250),
    ]

    assert compute_delta(points, 1, _primary) == 10
    assert compute_delta(points, 2, _primary) is None
    assert compute_delta(points, 2, _primary, max_gap_days=8) == 10


def test_delta_is_null_for_non_increasing_dates() -> None:
    points = [
        DailyPoint(date=date(2026, 1, 2), primary_max=100),
        DailyPoint(date=date(2026, 1, 2), primary_max=120),
    ]

    assert compute_delta(points, 1, _primary) is None
