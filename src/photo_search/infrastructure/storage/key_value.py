"""
Key/Value Storage - string persistence for metrics and the last query.

Provides:
- MemoryStorage: process-local dict, the default and the test double
- JsonFileStorage: one JSON object on disk, rewritten on every write

Values are opaque strings; callers own their encoding.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class MemoryStorage:
    """In-memory string storage."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get_string(self, key: str) -> str | None:
        return self._data.get(key)

    def set_string(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of everything stored."""
        return dict(self._data)


class JsonFileStorage:
    """
    File-backed string storage.

    The whole store is a single JSON object. It is loaded once on
    construction and written back after every ``set_string``. An unreadable
    or invalid file is logged and treated as empty. A failed write is logged
    and the value stays available in memory.
    """

    def __init__(self, path: str | os.PathLike[str]):
        """
        Initialize file storage.

        Args:
            path: JSON file to use. Parent directories are created on first write.
        """
        self.path = Path(path).expanduser()
        self._data: dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        """Load store from disk."""
        if not self.path.exists():
            return
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load storage file {self.path}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Ignoring storage file {self.path}: top level is not an object")
            return
        self._data = {str(k): v for k, v in data.items() if isinstance(v, str)}
        logger.debug(f"Loaded {len(self._data)} keys from {self.path}")

    def _save(self) -> None:
        """Write store to disk via a temporary file. Failures keep the in-memory values."""
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.warning(f"Failed to save storage file {self.path}: {e}")

    def get_string(self, key: str) -> str | None:
        return self._data.get(key)

    def set_string(self, key: str, value: str) -> None:
        self._data[key] = value
        self._save()
