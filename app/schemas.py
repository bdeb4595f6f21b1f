"""Pydantic schemas for the transport artifact and the HTTP API layer."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RangePreset(str, Enum):
    """Date windows offered to presentation consumers."""

    one_month = "1M"
    six_months = "6M"
    one_year = "1Y"
    two_years = "2Y"
    all = "ALL"


class CompactDataset(BaseModel):
    """Columnar encoding of the canonical daily dataset.

    Serialized with single-letter keys: ``d`` dates, ``a`` primary maxima,
    ``c`` secondary maxima, ``f`` derived loads and ``u`` freshness timestamp.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    dates: List[date] = Field(default_factory=list, alias="d")
    primary_max: List[Optional[int]] = Field(default_factory=list, alias="a")
    secondary_max: List[Optional[int]] = Field(default_factory=list, alias="c")
    derived_loads: List[Optional[int]] = Field(default_factory=list, alias="f")
    updated_at: Optional[datetime] = Field(default=None, alias="u")

    @model_validator(mode="after")
    def _check_columns(self) -> "CompactDataset":
        length = len(self.dates)
        for name in ("primary_max", "secondary_max", "derived_loads"):
            column = getattr(self, name)
            if len(column) != length:
                raise ValueError(
                    f"Column {name!r} has {len(column)} values but there are {length} dates."
                )
        for previous, current in zip(self.dates, self.dates[1:]):
            if current <= previous:
                raise ValueError(f"Dates must be strictly increasing: {previous} then {current}.")
        return self

    def same_content(self, other: "CompactDataset") -> bool:
        """Compare the daily columns, ignoring the freshness timestamp."""
        return (
            self.dates == other.dates
            and self.primary_max == other.primary_max
            and self.secondary_max == other.secondary_max
            and self.derived_loads == other.derived_loads
        )


class DailyPointSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    primary_max: Optional[int] = None
    secondary_max: Optional[int] = None
    derived_loads: Optional[int] = None


class TableRowSchema(DailyPointSchema):
    primary_delta: Optional[int] = None
    secondary_delta: Optional[int] = None
    loads_delta: Optional[int] = None


class ExtremePointSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    value: int
    date: date


class StatsSummarySchema(BaseModel):
    """Headline figures for the primary series."""

    model_config = ConfigDict(from_attributes=True)

    current_value: Optional[int] = None
    all_time_peak: Optional[ExtremePointSchema] = None
    all_time_low: Optional[ExtremePointSchema] = None
    last_updated_at: Optional[datetime] = None


class SampleIn(BaseModel):
    """A single observation submitted by a collector."""

    value: int = Field(..., ge=0)
    observed_at: Optional[datetime] = Field(
        default=None, description="Observation instant; defaults to the time of the request."
    )


class SampleAccepted(BaseModel):
    source_id: str
    object_key: str
    line: str


class SourceReport(BaseModel):
    """Per-source diagnostics of a pipeline run."""

    source_id: str
    object_key: str
    row_count: int = Field(..., ge=0)
    skipped_count: int = Field(..., ge=0)
    day_count: int = Field(..., ge=0)


class PipelineRunResult(BaseModel):
    updated_at: datetime
    day_count: int = Field(..., ge=0)
    changed: bool
    processing_ms: int = Field(..., ge=0)
    sources: List[SourceReport] = Field(default_factory=list)
