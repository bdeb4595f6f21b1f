"""Batch orchestration from raw sample files to the compact daily dataset."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from app.schemas import CompactDataset, PipelineRunResult, SourceReport
from datastore.dataset_store import DatasetStore, build_default_store
from models.records import DailyPoint, DailySourcePoint, SourceKind, SourceSpec
from services.aggregator import DailyMaxAggregator
from services.codec import decode_dataset, encode_dataset
from services.interpolator import CounterInterpolator
from services.merge import merge_daily
from services.normalizer import normalize_text
from settings import get_settings
from storage.sample_store import SampleBucket, build_default_bucket

logger = logging.getLogger(__name__)

PRIMARY_SOURCE = "primary"
SECONDARY_SOURCE = "secondary"
COUNTER_SOURCE = "counter"


def default_sources() -> List[SourceSpec]:
    settings = get_settings()
    return [
        SourceSpec(PRIMARY_SOURCE, settings.primary_source_key, SourceKind.daily_max),
        SourceSpec(SECONDARY_SOURCE, settings.secondary_source_key, SourceKind.daily_max),
        SourceSpec(COUNTER_SOURCE, settings.counter_source_key, SourceKind.counter),
    ]


class PipelineService:
    """Coordinates sample storage, daily aggregation and dataset persistence."""

    def __init__(
        self,
        bucket: SampleBucket,
        store: DatasetStore,
        aggregator: DailyMaxAggregator,
        interpolator: CounterInterpolator,
        sources: Sequence[SourceSpec],
    ) -> None:
        self.bucket = bucket
        self.store = store
        self.aggregator = aggregator
        self.interpolator = interpolator
        self.sources: Dict[str, SourceSpec] = {spec.source_id: spec for spec in sources}

    def append_sample(
        self, source_id: str, value: int, observed_at: Optional[datetime] = None
    ) -> str:
        """Record one observation for a configured source."""
        spec = self._get_source(source_id)
        line = self.bucket.append_sample(spec.object_key, value, observed_at)
        logger.info(
            "Appended sample",
            extra={"source_id": source_id, "object_key": spec.object_key},
        )
        return line

    def build_points(self) -> tuple[List[DailyPoint], List[SourceReport]]:
        """Recompute the merged daily points from every source's raw file."""
        series: Dict[str, List[DailySourcePoint]] = {}
        reports: List[SourceReport] = []

        for spec in self.sources.values():
            text = self.bucket.read_text(spec.object_key)
            parsed = normalize_text(
                spec.source_id, text, require_clock=spec.kind is SourceKind.counter
            )
            if spec.kind is SourceKind.counter:
                daily = self.interpolator.daily_loads(parsed.samples)
            else:
                daily = self.aggregator.aggregate(parsed.samples)
            series[spec.source_id] = daily
            reports.append(
                SourceReport(
                    source_id=spec.source_id,
                    object_key=spec.object_key,
                    row_count=parsed.row_count,
                    skipped_count=parsed.skipped_count,
                    day_count=len(daily),
                )
            )

        points = merge_daily(
            primary=series.get(PRIMARY_SOURCE, ()),
            secondary=series.get(SECONDARY_SOURCE, ()),
            loads=series.get(COUNTER_SOURCE, ()),
        )
        return points, reports

    def run(self, updated_at: Optional[datetime] = None) -> PipelineRunResult:
        """Run one full batch and persist the result if the daily content changed."""
        start_time = time.perf_counter()
        batch_time = updated_at or datetime.now(timezone.utc)

        points, reports = self.build_points()
        compact = encode_dataset(points, batch_time)
        changed = self.store.save(compact)
        published = self.store.load() or compact

        processing_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            "Pipeline run finished",
            extra={
                "day_count": len(points),
                "changed": changed,
                "processing_ms": processing_ms,
            },
        )
        return PipelineRunResult(
            updated_at=published.updated_at or batch_time,
            day_count=len(points),
            changed=changed,
            processing_ms=processing_ms,
            sources=reports,
        )

    def fetch_dataset(self) -> CompactDataset:
        dataset = self.store.load()
        if dataset is None:
            raise KeyError(f"No dataset has been published to store {self.store.name!r}.")
        return dataset

    def fetch_points(self) -> List[DailyPoint]:
        return decode_dataset(self.fetch_dataset())

    def _get_source(self, source_id: str) -> SourceSpec:
        spec = self.sources.get(source_id)
        if spec is None:
            raise KeyError(f"Unknown source {source_id!r}.")
        return spec


@lru_cache
def build_default_pipeline() -> PipelineService:
    """Factory that wires the pipeline with configured stores."""
    settings = get_settings()
    interpolator = CounterInterpolator(
        cutoff=settings.counter_cutoff_date,
        max_gap=timedelta(hours=settings.counter_max_gap_hours),
    )
    return PipelineService(
        bucket=build_default_bucket(),
        store=build_default_store(),
        aggregator=DailyMaxAggregator(),
        interpolator=interpolator,
        sources=default_sources(),
    )
