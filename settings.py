from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import Optional


_SAMPLES_ROOT_ENV = "SAMPLES_ROOT_PATH"
_DATASET_PATH_ENV = "DATASET_PATH"
_PRIMARY_KEY_ENV = "PRIMARY_SOURCE_KEY"
_SECONDARY_KEY_ENV = "SECONDARY_SOURCE_KEY"
_COUNTER_KEY_ENV = "COUNTER_SOURCE_KEY"
_COUNTER_CUTOFF_ENV = "COUNTER_CUTOFF_DATE"
_COUNTER_GAP_ENV = "COUNTER_MAX_GAP_HOURS"
_DELTA_GAP_ENV = "DELTA_MAX_GAP_DAYS"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    samples_root_path: Optional[str]
    dataset_path: Optional[str]
    primary_source_key: str
    secondary_source_key: str
    counter_source_key: str
    counter_cutoff_date: date
    counter_max_gap_hours: int
    delta_max_gap_days: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_date(name: str, default: date) -> date:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        return date.fromisoformat(candidate)
    except ValueError:
        return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        samples_root_path=_read_optional_env(_SAMPLES_ROOT_ENV, "./data/samples"),
        dataset_path=_read_optional_env(_DATASET_PATH_ENV, "./data/daily.json"),
        primary_source_key=_read_str_env(_PRIMARY_KEY_ENV, "primary-full.csv"),
        secondary_source_key=_read_str_env(_SECONDARY_KEY_ENV, "secondary-full.csv"),
        counter_source_key=_read_str_env(_COUNTER_KEY_ENV, "counter-full.csv"),
        counter_cutoff_date=_read_date(_COUNTER_CUTOFF_ENV, date(2024, 7, 3)),
        counter_max_gap_hours=_read_positive_int(_COUNTER_GAP_ENV, 48),
        delta_max_gap_days=_read_positive_int(_DELTA_GAP_ENV, 7),
        log_level=_read_log_level("INFO"),
    )
