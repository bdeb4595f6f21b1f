from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_number(value: Optional[int]) -> str:
    return "-" if value is None else f"{value:,}"


def _format_delta(value: Optional[int]) -> str:
    if value is None:
        return "-"
    return f"{value:+,}"


def _format_extreme(extreme: Optional[Dict[str, Any]]) -> str:
    if not extreme:
        return "-"
    return f"{_format_number(extreme.get('value'))} on {extreme.get('date')}"


def render_run(payload: Dict[str, Any]) -> None:
    echo_heading("Pipeline Run")
    echo_key_values(
        [
            ("updated_at", payload.get("updated_at")),
            ("day_count", payload.get("day_count")),
            ("changed", payload.get("changed")),
            ("processing_ms", payload.get("processing_ms")),
        ]
    )

    sources = payload.get("sources") or []
    typer.echo()
    echo_heading("Sources")
    if not sources:
        typer.echo("No sources configured.")
    for source in sources:
        typer.echo(
            f"  - {source.get('source_id')} ({source.get('object_key')}): "
            f"rows={source.get('row_count')} skipped={source.get('skipped_count')} "
            f"days={source.get('day_count')}"
        )


def render_stats(payload: Dict[str, Any]) -> None:
    echo_heading("Stats")
    echo_key_values(
        [
            ("current", _format_number(payload.get("current_value"))),
            ("all_time_peak", _format_extreme(payload.get("all_time_peak"))),
            ("all_time_low", _format_extreme(payload.get("all_time_low"))),
            ("last_updated_at", payload.get("last_updated_at") or "-"),
        ]
    )


def render_table(rows: List[Dict[str, Any]], limit: Optional[int] = None) -> None:
    echo_heading("Daily")
    if not rows:
        typer.echo("No data available.")
        return

    shown = rows[-limit:] if limit else rows
    header = f"{'date':<10}  {'primary':>10}  {'Δ':>8}  {'secondary':>10}  {'Δ':>8}  {'loads':>10}  {'Δ':>8}"
    typer.echo(header)
    for row in reversed(shown):
        typer.echo(
            f"{row.get('date'):<10}  "
            f"{_format_number(row.get('primary_max')):>10}  "
            f"{_format_delta(row.get('primary_delta')):>8}  "
            f"{_format_number(row.get('secondary_max')):>10}  "
            f"{_format_delta(row.get('secondary_delta')):>8}  "
            f"{_format_number(row.get('derived_loads')):>10}  "
            f"{_format_delta(row.get('loads_delta')):>8}"
        )
