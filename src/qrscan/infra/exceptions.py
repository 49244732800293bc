"""Error taxonomy and global exception handling for the scanner."""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("app.exceptions")


class ScanError(Exception):
    """Base class for every error raised by the scanner package."""


class MalformedURLError(ScanError, ValueError):
    """An http(s) payload could not be parsed as a URL."""

    def __init__(self, payload: str, reason: str = "") -> None:
        self.payload = payload
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Malformed URL {payload!r}{detail}")


class UnsupportedEffectError(ScanError):
    """No handler on the host can carry out an action's effect."""

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"No app installed that can handle this link: {target}")


class EmptyScanResultError(ScanError):
    """A still image was scanned but contained no codes."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"No QR code found in {source}")


class StorageError(ScanError):
    """History or settings could not be read or written."""


def install_exception_hook() -> None:
    """Install global exception handlers for main thread and other threads."""

    hook = _ExceptionHook()
    hook.install()


@dataclass
class _ExceptionHook:
    _original_excepthook: Optional[callable] = None
    _original_thread_excepthook: Optional[callable] = None

    def install(self) -> None:
        self._original_excepthook = sys.excepthook
        sys.excepthook = self._handle_exception

        if hasattr(threading, "excepthook"):
            self._original_thread_excepthook = threading.excepthook
            threading.excepthook = self._handle_thread_exception  # type: ignore[assignment]

    def _handle_exception(self, exc_type, exc_value, exc_traceback) -> None:
        logger.critical(
            "Unhandled exception: %s",
            exc_value,
            exc_info=(exc_type, exc_value, exc_traceback),
        )
        if self._original_excepthook:
            self._original_excepthook(exc_type, exc_value, exc_traceback)

    def _handle_thread_exception(self, args: "threading.ExceptHookArgs") -> None:  # pragma: no cover
        logger.critical(
            "Unhandled thread exception in %s: %s",
            args.thread.name,
            args.exc_value,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        if self._original_thread_excepthook:
            self._original_thread_excepthook(args)
