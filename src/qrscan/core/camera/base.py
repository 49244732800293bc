"""Abstract scanner device interface."""

from __future__ import annotations

import abc
from typing import Callable

from qrscan.core.entities import RawDetection

DetectionCallback = Callable[[RawDetection], None]


class ScannerBase(abc.ABC):
    """Base class for devices that report decoded codes.

    Implementations call the detection callback once per code per frame and
    stop reporting while paused.
    """

    def __init__(self, on_detection: DetectionCallback) -> None:
        self._on_detection = on_detection

    @abc.abstractmethod
    def start(self) -> None:
        """Start delivering detections."""

    @abc.abstractmethod
    def stop(self) -> None:
        """Stop delivering detections."""

    @abc.abstractmethod
    def pause(self) -> None:
        """Keep the device open but suppress detections."""

    @abc.abstractmethod
    def resume(self) -> None:
        """Resume delivering detections after a pause."""

    @abc.abstractmethod
    def is_running(self) -> bool:
        """Return whether the device is currently active."""

    @abc.abstractmethod
    def is_paused(self) -> bool:
        """Return whether detections are currently suppressed."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release underlying resources."""
