"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class SourceKind(str, Enum):
    """How a source's samples become a daily value."""

    daily_max = "daily_max"
    counter = "counter"


@dataclass(frozen=True, slots=True)
class SourceSpec:
    """A configured sample source and the object holding its raw rows."""

    source_id: str
    object_key: str
    kind: SourceKind


@dataclass(frozen=True, slots=True)
class RawSample:
    """A single observation parsed from a raw sample file."""

    source_id: str
    timestamp: datetime
    value: int

    @property
    def date(self) -> date:
        return self.timestamp.date()


@dataclass(frozen=True, slots=True)
class DailySourcePoint:
    """One source's value for one UTC calendar day.

    ``value`` is ``None`` only for counter days that were evaluated but could
    not be derived confidently.
    """

    date: date
    value: Optional[int]


@dataclass(frozen=True, slots=True)
class DailyPoint:
    """Canonical per-day record of the merged dataset."""

    date: date
    primary_max: Optional[int] = None
    secondary_max: Optional[int] = None
    derived_loads: Optional[int] = None


@dataclass(frozen=True, slots=True)
class TableRow:
    """A daily point annotated with gap-aware day-over-day deltas."""

    date: date
    primary_max: Optional[int]
    secondary_max: Optional[int]
    derived_loads: Optional[int]
    primary_delta: Optional[int]
    secondary_delta: Optional[int]
    loads_delta: Optional[int]


@dataclass(frozen=True, slots=True)
class ExtremePoint:
    value: int
    date: date


@dataclass(frozen=True, slots=True)
class StatsSummary:
    current_value: Optional[int]
    all_time_peak: Optional[ExtremePoint]
    all_time_low: Optional[ExtremePoint]
    last_updated_at: Optional[datetime]
