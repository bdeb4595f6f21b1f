from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the aggregator service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def run_pipeline(self) -> Dict[str, Any]:
        return self._request("POST", "/pipeline/run")

    def get_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/stats")

    def get_table(self, range_preset: str) -> List[Dict[str, Any]]:
        return self._request("GET", "/table", params={"range": range_preset})

    def append_sample(
        self, source_id: str, value: int, observed_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"value": value}
        if observed_at is not None:
            body["observed_at"] = observed_at.isoformat()
        return self._request("POST", f"/sources/{source_id}/samples", json=body)

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
