"""Records exchanged between the scan session and its collaborators."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .detection import Point, RawDetection, Rect, Size
from .payload import ParsedPayload


@dataclass(frozen=True)
class ScanSettings:
    """User flags read by the stream processor."""

    multi_code_detection: bool = False
    history_enabled: bool = True
    continuous_scan: bool = False


# Used whenever stored settings cannot be read.
SAFE_SETTINGS = ScanSettings(multi_code_detection=False, history_enabled=False, continuous_scan=False)


class NoticeKind(Enum):
    UNSUPPORTED_EFFECT = "unsupported_effect"
    EMPTY_SCAN_RESULT = "empty_scan_result"
    UNREADABLE_IMAGE = "unreadable_image"
    MALFORMED_URL = "malformed_url"
    STORAGE_FAILURE = "storage_failure"


@dataclass(frozen=True)
class Notice:
    """Non-fatal, user-facing alert."""

    kind: NoticeKind
    message: str


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one selection, handed to presentation."""

    detection: RawDetection
    parsed: Optional[ParsedPayload] = None
    error: Optional[Exception] = None
    history_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.parsed is not None


@dataclass(frozen=True)
class HistoryEntry:
    """Persisted scan history item."""

    id: str
    data: str
    type: str
    timestamp: int
    bounds: Optional[Rect] = None
    corner_points: Tuple[Point, ...] = ()

    @classmethod
    def from_detection(cls, detection: RawDetection, entry_id: str, timestamp: int) -> "HistoryEntry":
        return cls(
            id=entry_id,
            data=detection.payload,
            type=detection.format_tag,
            timestamp=timestamp,
            bounds=detection.bounds,
            corner_points=tuple(detection.corner_points),
        )

    def to_dict(self) -> Dict[str, Any]:
        values = asdict(self)
        values["corner_points"] = [asdict(point) for point in self.corner_points]
        return values

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "HistoryEntry":
        bounds_raw = raw.get("bounds")
        bounds = None
        if bounds_raw:
            origin = bounds_raw.get("origin", {})
            size = bounds_raw.get("size", {})
            bounds = Rect(
                origin=Point(float(origin.get("x", 0.0)), float(origin.get("y", 0.0))),
                size=Size(float(size.get("width", 0.0)), float(size.get("height", 0.0))),
            )
        corners = tuple(
            Point(float(point.get("x", 0.0)), float(point.get("y", 0.0)))
            for point in raw.get("corner_points") or ()
        )
        return cls(
            id=str(raw["id"]),
            data=str(raw.get("data", "")),
            type=str(raw.get("type", "qr")),
            timestamp=int(raw.get("timestamp", 0)),
            bounds=bounds,
            corner_points=corners,
        )
