"""File-based persistence: a JSON document store under the data root."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

from ..config import settings

logger = logging.getLogger(__name__)


class FileStorage:
    """Thin wrapper around the data root storing one JSON array per collection."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.store_root = self.root / "store"
        self._lock = threading.Lock()

    def collection_path(self, collection: str) -> Path:
        return self.store_root / f"{collection}.json"

    def read_collection(self, collection: str) -> list[dict[str, Any]]:
        """Return every document in ``collection``; a missing file is an empty collection."""
        path = self.collection_path(collection)
        with self._lock:
            if not path.exists():
                return []
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        if not isinstance(data, list):
            raise ValueError(f"Collection file '{path}' does not hold a JSON array.")
        return [doc for doc in data if isinstance(doc, dict)]

    def write_collection(self, collection: str, documents: list[dict[str, Any]]) -> bool:
        """Replace ``collection`` wholesale. Returns False if the write failed."""
        path = self.collection_path(collection)
        try:
            with self._lock:
                self.write_json(path, documents)
        except OSError as e:
            logger.error(f"Failed to write collection '{collection}' to {path}: {e}")
            return False
        return True

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent)
        os.replace(tmp_path, path)
