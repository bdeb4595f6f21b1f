from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from settings import get_settings


@dataclass(frozen=True, slots=True)
class ObjectStats:
    rows: int
    bytes: int


def format_sample_line(value: int, observed_at: datetime) -> str:
    """Render one observation as ``HH:MM:SS,YYYY-MM-DD,value`` in UTC."""
    if observed_at.tzinfo is None:
        observed_at = observed_at.replace(tzinfo=timezone.utc)
    instant = observed_at.astimezone(timezone.utc)
    return f"{instant:%H:%M:%S},{instant:%Y-%m-%d},{value}"


class SampleBucket:
    """Raw sample files, one object per source.

    With a ``root_path`` the files on disk are authoritative: every read goes
    to disk so rows appended by external collectors are always visible.
    Without one, objects live in memory only.
    """

    def __init__(self, name: str, root_path: Optional[Path] = None) -> None:
        self.name = name
        self._objects: Dict[str, bytes] = {}
        self.root_path = root_path
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def put_object(self, key: str, data: bytes) -> None:
        with self._lock:
            self._write_locked(key, data)

    def get_object(self, key: str) -> bytes:
        with self._lock:
            data = self._read_locked(key)
        if data is None:
            raise KeyError(f"Object with key {key!r} not found in bucket {self.name!r}.")
        return data

    def read_text(self, key: str, encoding: str = "utf-8") -> str:
        """Object contents as text; a missing object reads as an empty source."""
        try:
            return self.get_object(key).decode(encoding)
        except KeyError:
            return ""

    def append_sample(self, key: str, value: int, observed_at: Optional[datetime] = None) -> str:
        """Append one observation line to ``key`` and return the written line."""
        if value < 0:
            raise ValueError("Sample value must be a non-negative integer.")
        line = format_sample_line(value, observed_at or datetime.now(timezone.utc))
        payload = f"{line}\n".encode("utf-8")

        with self._lock:
            existing = self._read_locked(key) or b""
            if existing and not existing.endswith(b"\n"):
                payload = b"\n" + payload
            if self.root_path:
                path = self._path_for(key)
                path.parent.mkdir(parents=True, exist_ok=True)
                with path.open("ab") as handle:
                    handle.write(payload)
            else:
                self._objects[key] = existing + payload
        return line

    def describe_object(self, key: str) -> ObjectStats:
        """Count non-blank lines and bytes; a missing object counts as empty."""
        try:
            data = self.get_object(key)
        except KeyError:
            return ObjectStats(rows=0, bytes=0)
        rows = sum(1 for line in data.decode("utf-8").splitlines() if line.strip())
        return ObjectStats(rows=rows, bytes=len(data))

    def _path_for(self, key: str) -> Path:
        assert self.root_path is not None
        return self.root_path / key

    def _read_locked(self, key: str) -> Optional[bytes]:
        if not self.root_path:
            return self._objects.get(key)
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def _write_locked(self, key: str, data: bytes) -> None:
        if not self.root_path:
            self._objects[key] = data
            return
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)


@lru_cache
def build_default_bucket(
    name: Optional[str] = None,
    root_path: Optional[str] = None,
) -> SampleBucket:
    settings = get_settings()
    bucket_name = "samples" if name is None else name
    bucket_root = settings.samples_root_path if root_path is None else root_path
    path = Path(bucket_root) if bucket_root else None
    return SampleBucket(name=bucket_name, root_path=path)
