"""OpenCV camera and still-image QR scanners."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence

import cv2
import numpy as np

from qrscan.config.models import CameraConfig
from qrscan.core.entities import Point, RawDetection, Rect, Size
from qrscan.infra.exceptions import EmptyScanResultError

from .base import DetectionCallback, ScannerBase

logger = logging.getLogger("camera.qr")


def _to_detection(payload: str, corners: Optional[np.ndarray], format_tag: str) -> RawDetection:
    if corners is None or corners.size == 0:
        return RawDetection(payload=payload, format_tag=format_tag)
    corners = np.asarray(corners, dtype=float).reshape(-1, 2)
    x_min, y_min = corners.min(axis=0)
    x_max, y_max = corners.max(axis=0)
    bounds = Rect(
        origin=Point(float(x_min), float(y_min)),
        size=Size(float(x_max - x_min), float(y_max - y_min)),
    )
    points = tuple(Point(float(x), float(y)) for x, y in corners)
    return RawDetection(payload=payload, format_tag=format_tag, bounds=bounds, corner_points=points)


def decode_frame(frame: np.ndarray, detector: cv2.QRCodeDetector, format_tag: str = "qr") -> List[RawDetection]:
    """Decode every QR code OpenCV can read in ``frame``."""
    found, decoded, points, _ = detector.detectAndDecodeMulti(frame)
    if not found or decoded is None:
        return []
    detections: List[RawDetection] = []
    for index, payload in enumerate(decoded):
        if not payload:
            # Located but not decodable.
            continue
        corners = points[index] if points is not None and len(points) > index else None
        detections.append(_to_detection(payload, corners, format_tag))
    return detections


def scan_image(path: Path | str, format_tag: str = "qr") -> List[RawDetection]:
    """Decode the codes in a still image; raises EmptyScanResultError if there are none."""
    path = Path(path)
    frame = cv2.imread(str(path))
    if frame is None:
        raise FileNotFoundError(f"Unable to load image at {path}")
    detections = decode_frame(frame, cv2.QRCodeDetector(), format_tag)
    if not detections:
        raise EmptyScanResultError(str(path))
    logger.info("Image %s contains %d code(s)", path, len(detections))
    return detections


class OpenCvQrScanner(ScannerBase):
    """Live camera scanner backed by OpenCV's VideoCapture and QRCodeDetector."""

    def __init__(self, config: CameraConfig, on_detection: DetectionCallback, format_tag: str = "qr") -> None:
        super().__init__(on_detection)
        self._config = config
        self._format_tag = format_tag
        self._detector = cv2.QRCodeDetector()
        self._capture: Optional[cv2.VideoCapture] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._paused = threading.Event()
        self._frame_lock = threading.Lock()
        self._latest_frame: Optional[np.ndarray] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            logger.debug("Scanner already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._capture_loop, name="QrCameraThread", daemon=True)
        self._thread.start()
        logger.info("QR camera started")

    def stop(self) -> None:
        if not self._thread:
            return
        self._stop_event.set()
        self._thread.join(timeout=2.0)
        self._thread = None
        logger.info("QR camera stopped")

    def pause(self) -> None:
        self._paused.set()

    def resume(self) -> None:
        self._paused.clear()

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def is_paused(self) -> bool:
        return self._paused.is_set()

    def close(self) -> None:
        self.stop()
        self._release_capture()

    def latest_frame(self) -> Optional[np.ndarray]:
        with self._frame_lock:
            return None if self._latest_frame is None else self._latest_frame.copy()

    def _capture_loop(self) -> None:
        reconnect_delay = self._config.reconnect_delay_ms / 1000.0
        logger.debug("Starting capture loop")
        while not self._stop_event.is_set():
            if not self._ensure_capture():
                logger.warning("Unable to open camera. Retrying in %.2f seconds", reconnect_delay)
                time.sleep(reconnect_delay)
                continue

            ret, frame = self._capture.read()
            if not ret or frame is None:
                logger.warning("Failed to read frame from camera")
                self._release_capture()
                time.sleep(0.2)
                continue

            with self._frame_lock:
                self._latest_frame = frame

            if self._paused.is_set():
                continue
            for detection in decode_frame(frame, self._detector, self._format_tag):
                self._on_detection(detection)
        logger.debug("Stopping capture loop")

    def _ensure_capture(self) -> bool:
        if self._capture is not None and self._capture.isOpened():
            return True
        return self._open_capture()

    def _open_capture(self) -> bool:
        logger.debug("Opening camera %s", self._config.device_index)
        capture = cv2.VideoCapture(self._config.device_index)

        if not capture.isOpened():
            logger.error("VideoCapture could not be opened for %s", self._config.device_index)
            capture.release()
            return False

        width, height = self._config.resolution
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        capture.set(cv2.CAP_PROP_FPS, self._config.fps)
        capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        self._capture = capture
        logger.info("Camera connected at resolution %sx%s", width, height)
        return True

    def _release_capture(self) -> None:
        if self._capture is not None:
            logger.debug("Releasing camera resource")
            self._capture.release()
            self._capture = None


def corner_polygon(detection: RawDetection) -> Optional[np.ndarray]:
    """Integer polygon for drawing a detection's outline."""
    points: Sequence[Point] = detection.corner_points
    if not points:
        return None
    return np.array([[int(round(p.x)), int(round(p.y))] for p in points], dtype=np.int32)
