"""Configuration package for the QR scanner."""

from .loader import load_config
from .models import ActionsConfig, AppConfig, CameraConfig, Config, LoggingConfig, ScannerConfig, StorageConfig

__all__ = [
    "ActionsConfig",
    "AppConfig",
    "CameraConfig",
    "Config",
    "LoggingConfig",
    "ScannerConfig",
    "StorageConfig",
    "load_config",
]
