"""Daily loads derived from an irregularly sampled cumulative counter."""

from __future__ import annotations

import logging
from bisect import bisect_left
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models.records import DailySourcePoint, RawSample
from services.rounding import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_MAX_GAP = timedelta(hours=48)


@dataclass(frozen=True, slots=True)
class CounterSample:
    timestamp: datetime
    value: int


def prepare_samples(samples: Iterable[RawSample]) -> Tuple[CounterSample, ...]:
    """Deduplicate by exact timestamp, keeping the larger value, and sort."""
    by_timestamp: Dict[datetime, int] = {}
    for sample in samples:
        existing = by_timestamp.get(sample.timestamp)
        if existing is None or sample.value > existing:
            by_timestamp[sample.timestamp] = sample.value
    return tuple(
        CounterSample(timestamp=timestamp, value=by_timestamp[timestamp])
        for timestamp in sorted(by_timestamp)
    )


def find_bracket(
    samples: Sequence[CounterSample], target: datetime
) -> Optional[Tuple[CounterSample, CounterSample]]:
    """Return the samples ``(prev, next)`` with ``prev <= target <= next``.

    A sample lying exactly on ``target`` is returned as both ends. ``None``
    when ``target`` falls outside the sampled range.
    """
    if not samples:
        return None
    index = bisect_left(samples, target, key=lambda sample: sample.timestamp)
    if index < len(samples) and samples[index].timestamp == target:
        return samples[index], samples[index]
    if index == 0 or index == len(samples):
        return None
    return samples[index - 1], samples[index]


def value_at(
    samples: Sequence[CounterSample],
    target: datetime,
    max_gap: timedelta = DEFAULT_MAX_GAP,
) -> Optional[float]:
    """Linearly interpolated counter value at ``target``, or ``None`` if undefined."""
    bracket = find_bracket(samples, target)
    if bracket is None:
        return None
    previous, following = bracket
    if previous is following:
        return float(previous.value)

    span = following.timestamp - previous.timestamp
    if span > max_gap:
        return None
    if following.value < previous.value:
        return None

    fraction = (target - previous.timestamp) / span
    return previous.value + (following.value - previous.value) * fraction


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time(0, 0, 0), tzinfo=timezone.utc)


class CounterInterpolator:
    """Turns cumulative counter samples into per-day increments.

    Days before ``cutoff`` are never emitted. Every day from the first sampled
    day (or the cutoff, whichever is later) up to the day holding the last
    sample is evaluated; a day whose boundaries cannot be interpolated, or
    whose increment comes out negative, is reported with a ``None`` value.
    """

    def __init__(self, cutoff: date, max_gap: timedelta = DEFAULT_MAX_GAP) -> None:
        self.cutoff = cutoff
        self.max_gap = max_gap

    def daily_loads(self, samples: Iterable[RawSample]) -> List[DailySourcePoint]:
        prepared = prepare_samples(samples)
        if not prepared:
            return []

        first_day = max(self.cutoff, prepared[0].timestamp.date())
        last_day = prepared[-1].timestamp.date()

        boundaries: Dict[date, Optional[float]] = {}

        def boundary(day: date) -> Optional[float]:
            if day not in boundaries:
                boundaries[day] = value_at(prepared, _midnight(day), self.max_gap)
            return boundaries[day]

        points: List[DailySourcePoint] = []
        day = first_day
        while day < last_day:
            start = boundary(day)
            end = boundary(day + timedelta(days=1))
            loads: Optional[int] = None
            if start is not None and end is not None:
                loads = round_half_up(end - start)
                if loads < 0:
                    loads = None
            points.append(DailySourcePoint(date=day, value=loads))
            day += timedelta(days=1)

        undefined = sum(1 for point in points if point.value is None)
        if undefined:
            logger.info(
                "Counter days without a confident value",
                extra={"day_count": len(points), "skipped_count": undefined},
            )
        return points
