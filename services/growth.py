"""Checks that raw sample files only ever grow between collection runs."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from storage.sample_store import ObjectStats, SampleBucket

Baseline = Dict[str, ObjectStats]


class GrowthCheckError(RuntimeError):
    """Raised when a sample file did not grow past its recorded baseline."""


def snapshot_baseline(bucket: SampleBucket, keys: Iterable[str]) -> Baseline:
    return {key: bucket.describe_object(key) for key in keys}


def write_baseline(path: Path, baseline: Baseline) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {key: asdict(stats) for key, stats in baseline.items()}
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n")


def read_baseline(path: Path) -> Baseline:
    if not path.exists():
        raise GrowthCheckError(f"Missing baseline metadata at {path}")
    data = json.loads(path.read_text())
    return {
        key: ObjectStats(rows=int(entry["rows"]), bytes=int(entry["bytes"]))
        for key, entry in data.items()
    }


def verify_growth(
    bucket: SampleBucket, baseline: Baseline, keys: Optional[Iterable[str]] = None
) -> List[Tuple[str, ObjectStats, ObjectStats]]:
    """Return ``(key, before, after)`` for each key, or raise on the first stale file.

    ``keys`` defaults to every file recorded in the baseline.
    """
    if keys is None:
        keys = sorted(baseline)
    results: List[Tuple[str, ObjectStats, ObjectStats]] = []
    for key in keys:
        before = baseline.get(key)
        if before is None:
            raise GrowthCheckError(f"Missing baseline entry for {key}")

        after = bucket.describe_object(key)
        if after.rows <= before.rows:
            raise GrowthCheckError(
                f"{key} row count did not increase (before {before.rows}, after {after.rows})"
            )
        if after.bytes <= before.bytes:
            raise GrowthCheckError(
                f"{key} byte size did not increase (before {before.bytes}, after {after.bytes})"
            )
        results.append((key, before, after))
    return results
