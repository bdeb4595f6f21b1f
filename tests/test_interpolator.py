from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from models.records import DailySourcePoint, RawSample
from services.interpolator import (
    CounterInterpolator,
    find_bracket,
    prepare_samples,
    value_at,
)


def _sample(timestamp: str, value: int) -> RawSample:
    parsed = datetime.fromisoformat(timestamp).replace(tzinfo=timezone.utc)
    return RawSample(source_id="counter", timestamp=parsed, value=value)


def _at(timestamp: str) -> datetime:
    return datetime.fromisoformat(timestamp).replace(tzinfo=timezone.utc)


def _loads(samples, cutoff: date = date(2020, 1, 1)) -> list:
    return CounterInterpolator(cutoff=cutoff).daily_loads(samples)


def test_prepare_samples_dedupes_by_timestamp_keeping_larger_value() -> None:
    prepared = prepare_samples(
        [
            _sample("2026-01-02T00:00:00", 200),
            _sample("2026-01-01T00:00:00", 100),
            _sample("2026-01-01T00:00:00", 120),
        ]
    )

    assert [(item.timestamp, item.value) for item in prepared] == [
        (_at("2026-01-01T00:00:00"), 120),
        (_at("2026-01-02T00:00:00"), 200),
    ]


def test_find_bracket_edges() -> None:
    prepared = prepare_samples(
        [_sample("2026-01-01T06:00:00", 10), _sample("2026-01-01T18:00:00", 20)]
    )

    assert find_bracket((), _at("2026-01-01T12:00:00")) is None
    assert find_bracket(prepared, _at("2026-01-01T00:00:00")) is None
    assert find_bracket(prepared, _at("2026-01-02T00:00:00")) is None

    exact = find_bracket(prepared, _at("2026-01-01T18:00:00"))
    assert exact is not None
    assert exact[0] is exact[1]

    inner = find_bracket(prepared, _at("2026-01-01T12:00:00"))
    assert inner == (prepared[0], prepared[1])


def test_value_at_interpolates_linearly() -> None:
    prepared = prepare_samples(
        [_sample("2026-01-01T12:00:00", 100), _sample("2026-01-02T12:00:00", 300)]
    )

    assert value_at(prepared, _at("2026-01-02T00:00:00")) == pytest.approx(200.0)
    assert value_at(prepared, _at("2026-01-01T18:00:00")) == pytest.approx(150.0)


def test_daily_loads_from_midnight_samples() -> None:
    samples = [
        _sample("2026-01-01T00:00:00", 1000),
        _sample("2026-01-02T00:00:00", 1500),
        _sample("2026-01-03T00:00:00", 1700),
    ]

    assert _loads(samples) == [
        DailySourcePoint(date=date(2026, 1, 1), value=500),
        DailySourcePoint(date=date(2026, 1, 2), value=200),
    ]


def test_daily_loads_interpolates_between_irregular_samples() -> None:
    samples = [
        _sample("2026-01-01T12:00:00", 100),
        _sample("2026-01-02T12:00:00", 300),
        _sample("2026-01-03T12:00:00", 500),
    ]

    assert _loads(samples) == [
        DailySourcePoint(date=date(2026, 1, 1), value=None),
        DailySourcePoint(date=date(2026, 1, 2), value=200),
    ]


def test_gap_longer_than_limit_makes_boundaries_undefined() -> None:
    samples = [
        _sample("2026-01-01T00:00:00", 0),
        _sample("2026-01-01T12:00:00", 50),
        _sample("2026-01-04T00:00:00", 300),
        _sample("2026-01-05T00:00:00", 400),
    ]

    assert [point.value for point in _loads(samples)] == [None, None, None, 100]


def test_gap_of_exactly_the_limit_is_interpolated() -> None:
    samples = [_sample("2026-01-01T00:00:00", 0), _sample("2026-01-03T00:00:00", 480)]

    assert [point.value for point in _loads(samples)] == [240, 240]


def test_custom_gap_limit() -> None:
    samples = [_sample("2026-01-01T00:00:00", 0), _sample("2026-01-03T00:00:00", 480)]
    interpolator = CounterInterpolator(cutoff=date(2020, 1, 1), max_gap=timedelta(hours=24))

    assert [point.value for point in interpolator.daily_loads(samples)] == [None, None]


def test_decreasing_bracket_is_undefined() -> None:
    samples = [
        _sample("2026-01-01T00:00:00", 100),
        _sample("2026-01-01T18:00:00", 200),
        _sample("2026-01-02T06:00:00", 150),
        _sample("2026-01-03T00:00:00", 300),
    ]

    assert [point.value for point in _loads(samples)] == [None, None]


def test_negative_daily_loads_are_suppressed() -> None:
    samples = [
        _sample("2026-01-01T00:00:00", 500),
        _sample("2026-01-01T12:00:00", 100),
        _sample("2026-01-02T12:00:00", 200),
    ]

    assert _loads(samples) == [DailySourcePoint(date=date(2026, 1, 1), value=None)]


def test_days_before_cutoff_are_never_emitted() -> None:
    samples = [_sample(f"2024-07-0{day}T00:00:00", day * 10) for day in range(1, 6)]

    loads = _loads(samples, cutoff=date(2024, 7, 3))

    assert loads == [
        DailySourcePoint(date=date(2024, 7, 3), value=10),
        DailySourcePoint(date=date(2024, 7, 4), value=10),
    ]


def test_loads_round_half_up() -> None:
    samples = [_sample("2026-01-01T00:00:00", 0), _sample("2026-01-03T00:00:00", 1)]

    assert [point.value for point in _loads(samples)] == [1, 1]


def test_no_samples_or_single_day_yield_nothing() -> None:
    assert _loads([]) == []
    assert _loads([_sample("2026-01-01T00:00:00", 5), _sample("2026-01-01T20:00:00", 9)]) == []
