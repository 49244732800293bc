"""Events flowing through the scan engine's bus."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from qrscan.core.entities import RawDetection


class TimerId(Enum):
    WINDOW_TICK = "window_tick"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DetectionEvent:
    """A code reported by the camera or an image scan."""

    detection: RawDetection
    created_at: datetime = field(default_factory=_utc_now)


@dataclass(frozen=True)
class TimerEvent:
    timer_id: TimerId
    created_at: datetime = field(default_factory=_utc_now)


@dataclass(frozen=True)
class SelectEvent:
    """User tap on a candidate; ``None`` asks for the most centred one."""

    detection: Optional[RawDetection] = None
    created_at: datetime = field(default_factory=_utc_now)


@dataclass(frozen=True)
class ResetEvent:
    """Scan-again or result dismissal."""

    reason: str | None = None
    created_at: datetime = field(default_factory=_utc_now)


@dataclass(frozen=True)
class ImageScanEvent:
    path: Path
    created_at: datetime = field(default_factory=_utc_now)


@dataclass(frozen=True)
class StopEvent:
    reason: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
