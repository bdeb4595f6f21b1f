"""Conversion of legacy local-time counter exports into UTC sample rows."""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from storage.sample_store import format_sample_line

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_TIMEZONE = "America/New_York"

_LOCAL_PATTERN = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?$", re.ASCII
)
_NON_DIGITS = re.compile(r"[^0-9]")


@dataclass
class LegacyImportResult:
    source_rows: int = 0
    lines: List[str] = field(default_factory=list)

    def render(self) -> bytes:
        if not self.lines:
            return b""
        return ("\n".join(self.lines) + "\n").encode("utf-8")


def parse_local_timestamp(raw: str, zone: ZoneInfo) -> Optional[datetime]:
    """Parse ``M/D/YYYY H:MM[:SS]`` wall-clock time in ``zone`` and return it in UTC."""
    match = _LOCAL_PATTERN.match(raw.strip())
    if not match:
        return None
    month, day, year, hour, minute, second = (int(part or 0) for part in match.groups())
    try:
        local = datetime(year, month, day, hour, minute, second, tzinfo=zone)
    except ValueError:
        return None
    return local.astimezone(timezone.utc)


def convert_legacy_rows(
    lines: Iterable[str],
    *,
    min_date: date,
    source_timezone: str = DEFAULT_SOURCE_TIMEZONE,
) -> LegacyImportResult:
    """Turn ``time,views`` export rows into sorted, deduplicated UTC sample lines.

    Rows before ``min_date`` (as a UTC day) are dropped. When two rows land
    on the same UTC instant the first one wins.
    """
    zone = ZoneInfo(source_timezone)
    result = LegacyImportResult()
    converted = {}

    for columns in csv.reader(lines):
        raw_time = columns[0].strip() if columns else ""
        if not raw_time or raw_time.lower() == "time":
            continue
        raw_views = _NON_DIGITS.sub("", columns[1]) if len(columns) > 1 else ""
        if not raw_views:
            continue
        result.source_rows += 1

        instant = parse_local_timestamp(raw_time, zone)
        if instant is None or instant.date() < min_date:
            continue
        converted.setdefault(instant, int(raw_views))

    result.lines = [format_sample_line(converted[instant], instant) for instant in sorted(converted)]
    logger.info(
        "Converted legacy counter rows",
        extra={"row_count": len(result.lines), "skipped_count": result.source_rows - len(result.lines)},
    )
    return result
