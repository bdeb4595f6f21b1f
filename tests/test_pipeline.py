import logging
from datetime import date, datetime, timezone

import pytest

from datastore.dataset_store import DatasetStore
from models.records import DailyPoint, SourceKind, SourceSpec
from services.aggregator import DailyMaxAggregator
from services.codec import dump_dataset
from services.interpolator import CounterInterpolator
from services.pipeline import PipelineService
from storage.sample_store import SampleBucket

UPDATED_AT = datetime(2026, 1, 3, 6, 0, tzinfo=timezone.utc)

PRIMARY_ROWS = (
    "10:00:00,2026-01-01,100\n"
    "18:00:00,2026-01-01,120\n"
    "09:00:00,2026-01-02,130\n"
    "bad-row\n"
)
COUNTER_ROWS = (
    "00:00:00,2026-01-01,1000\n"
    "00:00:00,2026-01-02,1500\n"
    "12:00:00,2026-01-02,1600\n"
)

SOURCES = [
    SourceSpec("primary", "primary.csv", SourceKind.daily_max),
    SourceSpec("secondary", "secondary.csv", SourceKind.daily_max),
    SourceSpec("counter", "counter.csv", SourceKind.counter),
]


def _build_pipeline(bucket: SampleBucket, store: DatasetStore | None = None) -> PipelineService:
    return PipelineService(
        bucket=bucket,
        store=store or DatasetStore(name="test"),
        aggregator=DailyMaxAggregator(),
        interpolator=CounterInterpolator(cutoff=date(2025, 12, 1)),
        sources=SOURCES,
    )


def _seeded_bucket(root=None) -> SampleBucket:
    bucket = SampleBucket(name="test", root_path=root)
    bucket.put_object("primary.csv", PRIMARY_ROWS.encode("utf-8"))
    bucket.put_object("counter.csv", COUNTER_ROWS.encode("utf-8"))
    return bucket


@pytest.fixture()
def pipeline() -> PipelineService:
    return _build_pipeline(_seeded_bucket())


def test_run_builds_and_publishes_daily_points(pipeline: PipelineService) -> None:
    result = pipeline.run(updated_at=UPDATED_AT)

    assert result.changed is True
    assert result.day_count == 2
    assert result.updated_at == UPDATED_AT
    assert pipeline.fetch_points() == [
        DailyPoint(date=date(2026, 1, 1), primary_max=120, secondary_max=None, derived_loads=500),
        DailyPoint(date=date(2026, 1, 2), primary_max=130, secondary_max=None, derived_loads=None),
    ]
    assert pipeline.fetch_dataset().updated_at == UPDATED_AT


def test_run_reports_per_source_diagnostics(pipeline: PipelineService) -> None:
    result = pipeline.run(updated_at=UPDATED_AT)

    reports = {report.source_id: report for report in result.sources}
    assert reports["primary"].row_count == 3
    assert reports["primary"].skipped_count == 1
    assert reports["primary"].day_count == 2
    assert reports["secondary"].row_count == 0
    assert reports["secondary"].day_count == 0
    assert reports["counter"].object_key == "counter.csv"
    assert reports["counter"].row_count == 3
    assert reports["counter"].day_count == 1


def test_second_run_on_same_inputs_is_not_republished(pipeline: PipelineService) -> None:
    pipeline.run(updated_at=UPDATED_AT)

    result = pipeline.run(updated_at=datetime(2026, 1, 3, 7, 0, tzinfo=timezone.utc))

    assert result.changed is False
    assert result.updated_at == UPDATED_AT
    assert pipeline.fetch_dataset().updated_at == UPDATED_AT


def test_runs_over_identical_inputs_produce_identical_bytes(tmp_path) -> None:
    first = _build_pipeline(_seeded_bucket(), DatasetStore("one", tmp_path / "one.json"))
    second = _build_pipeline(_seeded_bucket(), DatasetStore("two", tmp_path / "two.json"))

    first.run(updated_at=UPDATED_AT)
    second.run(updated_at=UPDATED_AT)

    assert dump_dataset(first.fetch_dataset()) == dump_dataset(second.fetch_dataset())
    assert (tmp_path / "one.json").read_bytes() == (tmp_path / "two.json").read_bytes()


def test_run_with_no_source_files_publishes_empty_dataset() -> None:
    pipeline = _build_pipeline(SampleBucket(name="empty"))

    result = pipeline.run(updated_at=UPDATED_AT)

    assert result.day_count == 0
    assert pipeline.fetch_points() == []


def test_fetch_dataset_before_any_run_raises(pipeline: PipelineService) -> None:
    with pytest.raises(KeyError):
        pipeline.fetch_dataset()


def test_append_sample_feeds_next_run(pipeline: PipelineService) -> None:
    line = pipeline.append_sample(
        "secondary", 22, datetime(2026, 1, 2, 8, 0, tzinfo=timezone.utc)
    )
    pipeline.run(updated_at=UPDATED_AT)

    assert line == "08:00:00,2026-01-02,22"
    points = pipeline.fetch_points()
    assert points[1].secondary_max == 22


def test_append_sample_for_unknown_source_raises(pipeline: PipelineService) -> None:
    with pytest.raises(KeyError):
        pipeline.append_sample("unknown", 1)


def test_run_logs_summary(pipeline: PipelineService, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="services.pipeline"):
        pipeline.run(updated_at=UPDATED_AT)

    records = [record for record in caplog.records if record.name == "services.pipeline"]
    assert any(
        record.getMessage() == "Pipeline run finished" and getattr(record, "day_count") == 2
        for record in records
    )


def test_rows_appended_on_disk_between_runs_are_picked_up(tmp_path) -> None:
    pipeline = _build_pipeline(_seeded_bucket(tmp_path / "samples"))
    pipeline.run(updated_at=UPDATED_AT)

    with (tmp_path / "samples" / "primary.csv").open("a") as handle:
        handle.write("00:00:00,2026-01-03,150\n")
    result = pipeline.run(updated_at=datetime(2026, 1, 4, 6, 0, tzinfo=timezone.utc))

    assert result.changed is True
    assert result.day_count == 3
    assert pipeline.fetch_points()[-1] == DailyPoint(date=date(2026, 1, 3), primary_max=150)
