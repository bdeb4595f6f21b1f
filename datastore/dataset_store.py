from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Optional

from app.schemas import CompactDataset
from services.codec import dump_dataset, load_dataset
from settings import get_settings

logger = logging.getLogger(__name__)


class DatasetStore:
    """Holds the single authoritative compact dataset."""

    def __init__(self, name: str, persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self._current: Optional[CompactDataset] = None
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def save(self, dataset: CompactDataset) -> bool:
        """Store ``dataset`` unless its daily content matches what is held.

        Returns ``True`` when the dataset was written.
        """
        with self._lock:
            if self._current is not None and self._current.same_content(dataset):
                return False
            self._current = dataset
            self._persist()
            return True

    def load(self) -> Optional[CompactDataset]:
        with self._lock:
            return self._current

    def _persist(self) -> None:
        if not self.persistence_path or self._current is None:
            return
        self.persistence_path.write_bytes(dump_dataset(self._current))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_bytes()
            self._current = load_dataset(raw) if raw.strip() else None
        except (OSError, ValueError):
            logger.warning(
                "Ignoring unreadable dataset file",
                extra={"dataset_path": str(self.persistence_path)},
            )
            self._current = None


@lru_cache
def build_default_store(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> DatasetStore:
    settings = get_settings()
    store_name = "daily" if name is None else name
    store_path = settings.dataset_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return DatasetStore(name=store_name, persistence_path=persistence)
