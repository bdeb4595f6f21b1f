"""Columnar encoding of daily points and its canonical JSON form."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from app.schemas import CompactDataset
from models.records import DailyPoint


def encode_dataset(points: Sequence[DailyPoint], updated_at: Optional[datetime]) -> CompactDataset:
    """Encode ``points`` column by column.

    ``updated_at`` is the instant the batch ran; naive values are taken as UTC.
    """
    if updated_at is not None:
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        updated_at = updated_at.astimezone(timezone.utc)

    return CompactDataset(
        dates=[point.date for point in points],
        primary_max=[point.primary_max for point in points],
        secondary_max=[point.secondary_max for point in points],
        derived_loads=[point.derived_loads for point in points],
        updated_at=updated_at,
    )


def decode_dataset(compact: CompactDataset) -> List[DailyPoint]:
    return [
        DailyPoint(
            date=day,
            primary_max=primary,
            secondary_max=secondary,
            derived_loads=loads,
        )
        for day, primary, secondary, loads in zip(
            compact.dates,
            compact.primary_max,
            compact.secondary_max,
            compact.derived_loads,
        )
    ]


def dump_dataset(compact: CompactDataset) -> bytes:
    payload = compact.model_dump(mode="json", by_alias=True)
    text = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return (text + "\n").encode("utf-8")


def load_dataset(raw: bytes | str) -> CompactDataset:
    """Parse a persisted compact dataset; raises ``ValueError`` on bad input."""
    return CompactDataset.model_validate_json(raw)
