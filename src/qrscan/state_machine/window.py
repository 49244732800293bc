"""Fixed-duration buffering window for raw detections."""

from __future__ import annotations

import time
from typing import Callable, Iterable, List, Tuple

from qrscan.core.entities import CandidateSet, RawDetection

Clock = Callable[[], float]


def deduplicate(detections: Iterable[RawDetection]) -> Tuple[RawDetection, ...]:
    """Keep the first detection of each payload, preserving arrival order."""
    seen: set[str] = set()
    unique: List[RawDetection] = []
    for det in detections:
        if det.payload in seen:
            continue
        seen.add(det.payload)
        unique.append(det)
    return tuple(unique)


class DetectionWindow:
    """Collects detections for ``duration_s`` seconds, then closes into a CandidateSet.

    Windows are contiguous: closing one opens the next at the same instant,
    so every buffered detection belongs to exactly one window.
    """

    def __init__(self, duration_s: float, clock: Clock = time.monotonic) -> None:
        if duration_s <= 0:
            raise ValueError("Window duration must be positive.")
        self._duration_s = duration_s
        self._clock = clock
        self._buffer: List[RawDetection] = []
        self._opened_at = clock()
        self._index = 0

    @property
    def duration_s(self) -> float:
        return self._duration_s

    @property
    def opened_at(self) -> float:
        return self._opened_at

    @property
    def index(self) -> int:
        """Number of windows closed so far."""
        return self._index

    def __len__(self) -> int:
        return len(self._buffer)

    def add(self, detection: RawDetection) -> None:
        self._buffer.append(detection)

    def is_due(self) -> bool:
        return self._clock() - self._opened_at >= self._duration_s

    def close(self) -> CandidateSet:
        buffered, self._buffer = self._buffer, []
        self._index += 1
        self._opened_at = self._clock()
        return CandidateSet(detections=deduplicate(buffered), window_index=self._index)

    def discard(self) -> int:
        """Drop buffered detections and restart the window; returns how many were dropped."""
        dropped = len(self._buffer)
        self._buffer = []
        self._opened_at = self._clock()
        return dropped
