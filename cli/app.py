from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfoNotFoundError

import typer

from app.schemas import RangePreset
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_run, render_stats, render_table
from services.growth import (
    GrowthCheckError,
    read_baseline,
    snapshot_baseline,
    verify_growth,
    write_baseline,
)
from services.legacy_import import DEFAULT_SOURCE_TIMEZONE, convert_legacy_rows
from services.pipeline import default_sources
from settings import get_settings
from storage.sample_store import build_default_bucket


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the daily activity aggregator.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _source_keys() -> list[str]:
    return [spec.object_key for spec in default_sources()]


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Aggregator API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("run")
def run_command(ctx: typer.Context) -> None:
    """Recompute the daily dataset from the raw sample files."""
    state = _get_state(ctx)
    payload = state.client.run_pipeline()
    render_run(payload)


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show current value, all-time peak and low."""
    state = _get_state(ctx)
    render_stats(state.client.get_stats())


@app.command("table")
def table_command(
    ctx: typer.Context,
    range_preset: RangePreset = typer.Option(
        RangePreset.one_month,
        "--range",
        "-r",
        help="Date window to show.",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-n",
        min=1,
        help="Show only the most recent N days.",
    ),
) -> None:
    """Print daily values with day-over-day deltas, newest first."""
    state = _get_state(ctx)
    rows = state.client.get_table(range_preset.value)
    render_table(rows, limit=limit)


@app.command("append")
def append_command(
    ctx: typer.Context,
    source_id: str = typer.Argument(..., help="Source identifier, e.g. primary or counter."),
    value: int = typer.Argument(..., min=0, help="Observed value."),
    observed_at: Optional[datetime] = typer.Option(
        None,
        "--at",
        help="Observation instant (UTC); defaults to now.",
    ),
) -> None:
    """Record one observation for a source."""
    state = _get_state(ctx)
    payload = state.client.append_sample(source_id, value, observed_at)
    typer.secho(f"Appended to {payload.get('object_key')}: {payload.get('line')}", fg=typer.colors.GREEN)


@app.command("baseline")
def baseline_command(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write baseline metadata (defaults to BASELINE_PATH).",
    ),
) -> None:
    """Record row and byte counts of every raw sample file."""
    state = _get_state(ctx)
    path = output or Path(state.config.baseline_path)
    baseline = snapshot_baseline(build_default_bucket(), _source_keys())
    write_baseline(path, baseline)
    typer.echo(f"Wrote baseline metadata to {path}")


@app.command("verify-growth")
def verify_growth_command(
    ctx: typer.Context,
    baseline_path: Optional[Path] = typer.Option(
        None,
        "--baseline",
        help="Baseline metadata written by the baseline command.",
    ),
) -> None:
    """Fail unless every raw sample file grew since the baseline."""
    state = _get_state(ctx)
    path = baseline_path or Path(state.config.baseline_path)
    try:
        baseline = read_baseline(path)
        results = verify_growth(build_default_bucket(), baseline, _source_keys())
    except GrowthCheckError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    for key, before, after in results:
        typer.echo(
            f"{key} grew from {before.rows} rows/{before.bytes} bytes "
            f"to {after.rows} rows/{after.bytes} bytes"
        )


@app.command("import-legacy")
def import_legacy_command(
    source: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Legacy export with local wall-clock times and counter values.",
    ),
    source_timezone: str = typer.Option(
        DEFAULT_SOURCE_TIMEZONE,
        "--timezone",
        help="IANA timezone the export's times are recorded in.",
    ),
    min_date: Optional[datetime] = typer.Option(
        None,
        "--min-date",
        formats=["%Y-%m-%d"],
        help="Drop rows before this UTC day (defaults to COUNTER_CUTOFF_DATE).",
    ),
    key: Optional[str] = typer.Option(
        None,
        "--key",
        help="Sample file to replace (defaults to COUNTER_SOURCE_KEY).",
    ),
) -> None:
    """Rewrite a legacy local-time counter export as UTC sample rows."""
    settings = get_settings()
    cutoff = min_date.date() if min_date else settings.counter_cutoff_date
    object_key = key or settings.counter_source_key
    try:
        with source.open(newline="", encoding="utf-8") as handle:
            result = convert_legacy_rows(handle, min_date=cutoff, source_timezone=source_timezone)
    except ZoneInfoNotFoundError as exc:
        typer.secho(f"Unknown timezone {source_timezone!r}.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    build_default_bucket().put_object(object_key, result.render())
    typer.echo(
        f"Migrated {result.source_rows} legacy rows to {len(result.lines)} UTC rows in {object_key}."
    )
