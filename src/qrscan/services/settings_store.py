"""Persisted user settings read by the scan session."""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import asdict, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from qrscan.core.entities import SAFE_SETTINGS, ScanSettings
from qrscan.infra.exceptions import StorageError

logger = logging.getLogger("services.settings")

_KNOWN_KEYS = {f.name for f in fields(ScanSettings)}


class SettingsStore:
    """Loads and saves :class:`ScanSettings` as a JSON document."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._current: Optional[ScanSettings] = None

    def load(self) -> ScanSettings:
        """Read settings from disk; unreadable files yield the safe settings."""
        with self._lock:
            self._current = self._read()
            return self._current

    def current(self) -> ScanSettings:
        if self._current is None:
            return self.load()
        return self._current

    def update(self, **changes: Any) -> ScanSettings:
        unknown = set(changes) - _KNOWN_KEYS
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        with self._lock:
            base = self._current if self._current is not None else self._read()
            updated = replace(base, **{key: bool(value) for key, value in changes.items()})
            self._write(updated)
            self._current = updated
        logger.info("Settings updated: %s", changes)
        return updated

    def _read(self) -> ScanSettings:
        if not self._path.exists():
            return ScanSettings()
        try:
            with self._path.open("r", encoding="utf-8") as stream:
                raw: Dict[str, Any] = json.load(stream)
            if not isinstance(raw, dict):
                raise ValueError("settings document must be an object")
        except (OSError, ValueError) as exc:
            logger.error("Unable to read settings from %s: %s; using safe defaults", self._path, exc)
            return SAFE_SETTINGS
        values = {key: bool(value) for key, value in raw.items() if key in _KNOWN_KEYS}
        return replace(ScanSettings(), **values)

    def _write(self, settings: ScanSettings) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as stream:
                json.dump(asdict(settings), stream, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise StorageError(f"Unable to write settings to {self._path}: {exc}") from exc
