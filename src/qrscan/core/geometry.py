"""Centroid distance and most-centred candidate selection."""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from qrscan.core.entities import RawDetection, Size


def distance_from_center(detection: RawDetection, viewport: Size) -> float:
    """Euclidean distance between the detection's bounds centre and the viewport centre.

    Detections without bounds are infinitely far away so that a bounded
    detection is always preferred.
    """
    if detection.bounds is None:
        return math.inf
    cx, cy = detection.bounds.center()
    vx, vy = viewport.center()
    return math.hypot(cx - vx, cy - vy)


def most_centered(detections: Sequence[RawDetection], viewport: Size) -> Optional[RawDetection]:
    """Return the detection closest to the viewport centre, or None for empty input.

    Ties go to the first detection in sequence order.
    """
    if not detections:
        return None
    distances = np.fromiter(
        (distance_from_center(det, viewport) for det in detections),
        dtype=float,
        count=len(detections),
    )
    # argmin returns the first index among equal minima.
    return detections[int(np.argmin(distances))]
