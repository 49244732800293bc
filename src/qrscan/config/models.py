"""Dataclass definitions for application configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class CameraConfig:
    """Camera related configuration."""

    device_index: Union[int, str] = 0
    resolution: Sequence[int] = (640, 480)
    fps: int = 25
    reconnect_delay_ms: int = 2000


@dataclass(frozen=True)
class ScannerConfig:
    """Detection window and selection geometry."""

    window_ms: int = 200
    tick_ms: int = 50
    viewport: Optional[Sequence[float]] = None
    format_tag: str = "qr"

    def __post_init__(self) -> None:
        if self.window_ms <= 0:
            raise ValueError("scanner.window_ms must be positive.")
        if self.tick_ms <= 0 or self.tick_ms > self.window_ms:
            raise ValueError("scanner.tick_ms must be positive and no larger than window_ms.")
        if self.viewport is not None and len(self.viewport) != 2:
            raise ValueError("scanner.viewport must be a pair [width, height].")

    @property
    def window_s(self) -> float:
        return self.window_ms / 1000.0

    @property
    def tick_s(self) -> float:
        return self.tick_ms / 1000.0


@dataclass(frozen=True)
class StorageConfig:
    """Locations of the history and user settings files."""

    history_path: Path = Path("data/history.json")
    settings_path: Path = Path("data/settings.json")
    history_limit: int = 500


@dataclass(frozen=True)
class ActionsConfig:
    """Base URLs used when building map and web-search actions."""

    maps_url: str = "https://maps.google.com/maps?q="
    search_url: str = "https://www.google.com/search?q="


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    filepath: Path = Path("logs/app.log")
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5
    console: bool = True

    def resolved_path(self) -> Path:
        return Path(self.filepath).expanduser().resolve()


@dataclass(frozen=True)
class AppConfig:
    """Application level configuration."""

    enable_overlay: bool = True
    window_name: str = "QR Scanner"


@dataclass(frozen=True)
class Config:
    """Root configuration object."""

    camera: CameraConfig = field(default_factory=CameraConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    actions: ActionsConfig = field(default_factory=ActionsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    app: AppConfig = field(default_factory=AppConfig)

    def viewport(self) -> Tuple[float, float]:
        """Viewport used for centring; falls back to the camera resolution."""
        if self.scanner.viewport is not None:
            width, height = self.scanner.viewport
        else:
            width, height = self.camera.resolution
        return float(width), float(height)
