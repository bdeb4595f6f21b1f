"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    CompactDataset,
    DailyPointSchema,
    PipelineRunResult,
    RangePreset,
    SampleAccepted,
    SampleIn,
    StatsSummarySchema,
    TableRowSchema,
)
from services.codec import decode_dataset
from services.date_range import filter_by_range, resolve_preset_range
from services.metrics import build_stats, build_table_rows
from services.pipeline import PipelineService, build_default_pipeline
from settings import get_settings

router = APIRouter()


def get_pipeline() -> PipelineService:
    return build_default_pipeline()


def _load_dataset(pipeline: PipelineService) -> CompactDataset:
    try:
        return pipeline.fetch_dataset()
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@router.post(
    "/sources/{source_id}/samples",
    status_code=status.HTTP_201_CREATED,
    response_model=SampleAccepted,
    summary="Append one observation to a source's raw sample file.",
)
def append_sample(
    source_id: str,
    sample: SampleIn,
    pipeline: PipelineService = Depends(get_pipeline),
) -> SampleAccepted:
    try:
        line = pipeline.append_sample(source_id, sample.value, sample.observed_at)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return SampleAccepted(
        source_id=source_id,
        object_key=pipeline.sources[source_id].object_key,
        line=line,
    )


@router.post(
    "/pipeline/run",
    response_model=PipelineRunResult,
    summary="Recompute the daily dataset from all raw sample files.",
)
def run_pipeline(pipeline: PipelineService = Depends(get_pipeline)) -> PipelineRunResult:
    return pipeline.run()


@router.get(
    "/dataset",
    response_model=CompactDataset,
    summary="Fetch the published compact dataset.",
)
def get_dataset(pipeline: PipelineService = Depends(get_pipeline)) -> CompactDataset:
    return _load_dataset(pipeline)


@router.get(
    "/daily",
    response_model=List[DailyPointSchema],
    summary="Decoded daily points within a preset window.",
)
def get_daily(
    range_preset: RangePreset = Query(RangePreset.all, alias="range"),
    pipeline: PipelineService = Depends(get_pipeline),
) -> List[DailyPointSchema]:
    points = decode_dataset(_load_dataset(pipeline))
    window = resolve_preset_range(points, range_preset)
    return [DailyPointSchema.model_validate(point) for point in filter_by_range(points, window)]


@router.get(
    "/stats",
    response_model=StatsSummarySchema,
    summary="Current value, all-time peak and low of the primary series.",
)
def get_stats(pipeline: PipelineService = Depends(get_pipeline)) -> StatsSummarySchema:
    dataset = _load_dataset(pipeline)
    summary = build_stats(decode_dataset(dataset), dataset.updated_at)
    return StatsSummarySchema.model_validate(summary)


@router.get(
    "/table",
    response_model=List[TableRowSchema],
    summary="Daily points with gap-aware day-over-day deltas.",
)
def get_table(
    range_preset: RangePreset = Query(RangePreset.all, alias="range"),
    pipeline: PipelineService = Depends(get_pipeline),
) -> List[TableRowSchema]:
    points = decode_dataset(_load_dataset(pipeline))
    rows = build_table_rows(points, max_gap_days=get_settings().delta_max_gap_days)
    window = resolve_preset_range(points, range_preset)
    return [TableRowSchema.model_validate(row) for row in filter_by_range(rows, window)]


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
