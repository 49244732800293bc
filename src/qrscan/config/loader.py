"""Configuration loader utilities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml

from .models import ActionsConfig, AppConfig, CameraConfig, Config, LoggingConfig, ScannerConfig, StorageConfig


def _normalize_path(path: Path | str) -> Path:
    return path if isinstance(path, Path) else Path(path)


def _load_raw_config(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found at {config_path}")

    suffix = config_path.suffix.lower()
    with config_path.open("r", encoding="utf-8") as stream:
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(stream) or {}
        if suffix == ".json":
            return json.load(stream)
        raise ValueError(f"Unsupported config format: {suffix}")


def load_config(config_path: Path | str) -> Config:
    """Load configuration file and construct Config dataclass."""

    config_path = _normalize_path(config_path)
    raw = _load_raw_config(config_path)

    camera_raw = dict(raw.get("camera", {}))
    if "resolution" in camera_raw:
        camera_raw["resolution"] = _pair(camera_raw["resolution"], "camera.resolution")
    camera = CameraConfig(**camera_raw)

    scanner_raw = dict(raw.get("scanner", {}))
    if scanner_raw.get("viewport") is not None:
        scanner_raw["viewport"] = _pair(scanner_raw["viewport"], "scanner.viewport")
    scanner = ScannerConfig(**scanner_raw)

    # Storage and log paths are relative to the config file.
    storage_raw = dict(raw.get("storage", {}))
    for key in ("history_path", "settings_path"):
        if storage_raw.get(key):
            storage_raw[key] = (config_path.parent / storage_raw[key]).resolve()
    storage = StorageConfig(**storage_raw)

    actions = ActionsConfig(**raw.get("actions", {}))

    logging_raw = dict(raw.get("logging", {}))
    log_path = logging_raw.get("filepath")
    if log_path:
        logging_raw["filepath"] = (config_path.parent / log_path).resolve()
    logging = LoggingConfig(**logging_raw)

    app = AppConfig(**raw.get("app", {}))

    return Config(camera=camera, scanner=scanner, storage=storage, actions=actions, logging=logging, app=app)


def _pair(value: Any, name: str) -> tuple[float, float]:
    if value is None or len(value) != 2:
        raise ValueError(f"{name} must be a sequence of two numbers [width, height].")
    return value[0], value[1]
