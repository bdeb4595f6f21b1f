"""Parsing of headerless raw sample files into validated samples."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Iterable, List, Optional

from models.records import RawSample

logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)
_CLOCK_PATTERN = re.compile(r"^\d{2}:\d{2}:\d{2}$", re.ASCII)
_VALUE_PATTERN = re.compile(r"^\d+$", re.ASCII)


@dataclass(frozen=True, slots=True)
class SkippedRow:
    line_number: int
    reason: str


@dataclass
class NormalizationResult:
    """Accepted samples and the rows dropped while parsing one source."""

    source_id: str
    samples: List[RawSample] = field(default_factory=list)
    skipped: List[SkippedRow] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.samples)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def _parse_date(raw: str) -> Optional[date]:
    if not _DATE_PATTERN.match(raw):
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def _parse_clock(raw: str) -> Optional[time]:
    if not _CLOCK_PATTERN.match(raw):
        return None
    try:
        return time.fromisoformat(raw)
    except ValueError:
        return None


def normalize_lines(
    source_id: str,
    lines: Iterable[str],
    *,
    require_clock: bool = False,
) -> NormalizationResult:
    """Parse ``HH:MM:SS,YYYY-MM-DD,value`` rows, dropping malformed ones.

    Counter sources pass ``require_clock=True``: their samples are positioned
    on the time axis, so a row without a valid clock field is rejected. For
    point-in-time sources only the date matters and an unusable clock places
    the sample at midnight.
    """
    result = NormalizationResult(source_id=source_id)

    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if not line:
            continue

        parts = [part.strip() for part in line.split(",")]
        if len(parts) < 3 or not parts[1] or not parts[2]:
            _skip(result, line_number, "missing field")
            continue
        raw_clock, raw_date, raw_value = parts[0], parts[1], parts[2]

        day = _parse_date(raw_date)
        if day is None:
            _skip(result, line_number, "invalid date")
            continue

        if not _VALUE_PATTERN.match(raw_value):
            _skip(result, line_number, "invalid value")
            continue
        value = int(raw_value)

        clock = _parse_clock(raw_clock)
        if clock is None:
            if require_clock:
                _skip(result, line_number, "invalid clock time")
                continue
            clock = time(0, 0, 0)

        timestamp = datetime.combine(day, clock, tzinfo=timezone.utc)
        result.samples.append(RawSample(source_id=source_id, timestamp=timestamp, value=value))

    if result.skipped:
        logger.warning(
            "Dropped malformed sample rows",
            extra={
                "source_id": source_id,
                "row_count": result.row_count,
                "skipped_count": result.skipped_count,
            },
        )
    else:
        logger.info(
            "Parsed sample rows",
            extra={"source_id": source_id, "row_count": result.row_count},
        )
    return result


def normalize_text(source_id: str, text: str, *, require_clock: bool = False) -> NormalizationResult:
    return normalize_lines(source_id, text.splitlines(), require_clock=require_clock)


def _skip(result: NormalizationResult, line_number: int, reason: str) -> None:
    result.skipped.append(SkippedRow(line_number=line_number, reason=reason))
    logger.debug(
        "Skipping row",
        extra={"source_id": result.source_id, "line_number": line_number, "reason": reason},
    )
