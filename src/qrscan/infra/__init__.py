"""Infrastructure helpers: logging setup and error handling."""

from .exceptions import (
    EmptyScanResultError,
    MalformedURLError,
    ScanError,
    StorageError,
    UnsupportedEffectError,
    install_exception_hook,
)
from .logging import configure_logging

__all__ = [
    "EmptyScanResultError",
    "MalformedURLError",
    "ScanError",
    "StorageError",
    "UnsupportedEffectError",
    "configure_logging",
    "install_exception_hook",
]
