"""Entities describing raw scanner detections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple


@dataclass(frozen=True)
class Point:
    """Pixel coordinate in the scanner viewport."""

    x: float
    y: float


@dataclass(frozen=True)
class Size:
    """Width/height pair, also used for the viewport."""

    width: float
    height: float

    def center(self) -> Tuple[float, float]:
        return (self.width / 2.0, self.height / 2.0)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its top-left origin and size."""

    origin: Point
    size: Size

    def center(self) -> Tuple[float, float]:
        """Centre of the rectangle in pixel coordinates."""
        return (
            self.origin.x + self.size.width / 2.0,
            self.origin.y + self.size.height / 2.0,
        )


@dataclass(frozen=True)
class RawDetection:
    """One code observed by the scanner in a single frame or image."""

    payload: str
    format_tag: str = "qr"
    bounds: Optional[Rect] = None
    corner_points: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class CandidateSet:
    """Deduplicated detections published at the close of one window."""

    detections: Tuple[RawDetection, ...] = ()
    window_index: int = 0

    def __len__(self) -> int:
        return len(self.detections)

    def __iter__(self) -> Iterator[RawDetection]:
        return iter(self.detections)

    def __bool__(self) -> bool:
        return bool(self.detections)

    def payloads(self) -> list[str]:
        return [det.payload for det in self.detections]

    def find(self, payload: str) -> Optional[RawDetection]:
        for det in self.detections:
            if det.payload == payload:
                return det
        return None


EMPTY_CANDIDATES = CandidateSet()
