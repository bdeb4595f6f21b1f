"""Daily maximum aggregation for point-in-time metrics."""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List

from models.records import DailySourcePoint, RawSample


class DailyMaxAggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, samples: Iterable[RawSample]) -> List[DailySourcePoint]:
        daily_max: Dict[date, int] = {}

        for sample in samples:
            day = sample.date
            current = daily_max.get(day)
            if current is None or sample.value > current:
                daily_max[day] = sample.value

        return [DailySourcePoint(date=day, value=daily_max[day]) for day in sorted(daily_max)]
