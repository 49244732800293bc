"""JSON-file backed scan history."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import List, Optional

from qrscan.core.entities import HistoryEntry, RawDetection
from qrscan.infra.exceptions import StorageError

logger = logging.getLogger("services.history")


class HistoryStore:
    """Keeps scans newest-first in a JSON file.

    Read failures are logged and treated as an empty history; write failures
    raise StorageError for the caller to log.
    """

    def __init__(self, path: Path | str, limit: Optional[int] = 500) -> None:
        self._path = Path(path)
        self._limit = limit
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def record(self, detection: RawDetection, entry_id: str, timestamp: int) -> HistoryEntry:
        entry = HistoryEntry.from_detection(detection, entry_id, timestamp)
        with self._lock:
            entries = [entry, *self._read()]
            if self._limit is not None:
                entries = entries[: self._limit]
            self._write(entries)
        logger.info("Added %s to history (%d items)", entry.id, len(entries))
        return entry

    def entries(self) -> List[HistoryEntry]:
        with self._lock:
            return self._read()

    def remove(self, entry_id: str) -> bool:
        with self._lock:
            entries = self._read()
            remaining = [entry for entry in entries if entry.id != entry_id]
            if len(remaining) == len(entries):
                return False
            self._write(remaining)
        logger.info("Removed %s from history", entry_id)
        return True

    def clear(self) -> None:
        with self._lock:
            try:
                self._path.unlink(missing_ok=True)
            except OSError as exc:
                raise StorageError(f"Unable to clear history at {self._path}: {exc}") from exc
        logger.info("History cleared")

    def _read(self) -> List[HistoryEntry]:
        if not self._path.exists():
            return []
        try:
            with self._path.open("r", encoding="utf-8") as stream:
                raw = json.load(stream)
            return [HistoryEntry.from_dict(item) for item in raw]
        except (OSError, ValueError, TypeError, KeyError) as exc:
            logger.error("Unable to read history from %s: %s", self._path, exc)
            return []

    def _write(self, entries: List[HistoryEntry]) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as stream:
                json.dump([entry.to_dict() for entry in entries], stream, indent=2)
            os.replace(tmp_path, self._path)
        except (OSError, TypeError) as exc:
            raise StorageError(f"Unable to write history to {self._path}: {exc}") from exc
