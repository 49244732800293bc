"""Tests for the OpenCV adapter with the detector and image IO mocked."""
from __future__ import annotations

from unittest.mock import MagicMock

import numpy as np
import pytest

from qrscan.config import CameraConfig
from qrscan.core.camera import OpenCvQrScanner, corner_polygon, decode_frame, scan_image
from qrscan.core.camera import qr_camera
from qrscan.core.entities import Point, RawDetection
from qrscan.infra.exceptions import EmptyScanResultError

SQUARE = np.array([[[10, 20], [50, 20], [50, 60], [10, 60]]], dtype=np.float32)


def _detector(found=True, decoded=("A",), points=SQUARE):
    detector = MagicMock()
    detector.detectAndDecodeMulti.return_value = (found, decoded, points, None)
    return detector


class TestDecodeFrame:
    def test_converts_corners_to_bounds(self):
        dets = decode_frame(np.zeros((10, 10, 3), np.uint8), _detector())

        assert len(dets) == 1
        det = dets[0]
        assert det.payload == "A"
        assert det.format_tag == "qr"
        assert det.bounds.origin == Point(10.0, 20.0)
        assert det.bounds.center() == (30.0, 40.0)
        assert det.corner_points[2] == Point(50.0, 60.0)

    def test_skips_undecodable_codes(self):
        points = np.concatenate([SQUARE, SQUARE + 100])
        dets = decode_frame(np.zeros((1, 1, 3), np.uint8), _detector(decoded=("", "B"), points=points))
        assert [d.payload for d in dets] == ["B"]
        assert dets[0].bounds.origin == Point(110.0, 120.0)

    def test_nothing_found(self):
        assert decode_frame(np.zeros((1, 1, 3), np.uint8), _detector(found=False, decoded=None)) == []

    def test_missing_points_gives_unbounded_detection(self):
        dets = decode_frame(np.zeros((1, 1, 3), np.uint8), _detector(points=None), format_tag="qr-image")
        assert dets == [RawDetection("A", format_tag="qr-image")]


class TestScanImage:
    def test_unreadable_file(self, monkeypatch, tmp_path):
        monkeypatch.setattr(qr_camera.cv2, "imread", lambda path: None)
        with pytest.raises(FileNotFoundError):
            scan_image(tmp_path / "missing.png")

    def test_no_codes(self, monkeypatch, tmp_path):
        monkeypatch.setattr(qr_camera.cv2, "imread", lambda path: np.zeros((4, 4, 3), np.uint8))
        monkeypatch.setattr(qr_camera.cv2, "QRCodeDetector", lambda: _detector(found=False, decoded=()))
        with pytest.raises(EmptyScanResultError):
            scan_image(tmp_path / "blank.png")

    def test_codes_found(self, monkeypatch, tmp_path):
        monkeypatch.setattr(qr_camera.cv2, "imread", lambda path: np.zeros((4, 4, 3), np.uint8))
        monkeypatch.setattr(qr_camera.cv2, "QRCodeDetector", lambda: _detector(decoded=("geo:1,2",)))
        assert [d.payload for d in scan_image(tmp_path / "code.png")] == ["geo:1,2"]


class TestScannerControls:
    def test_pause_and_resume_without_starting(self):
        scanner = OpenCvQrScanner(CameraConfig(), on_detection=lambda det: None)
        assert not scanner.is_running()
        scanner.pause()
        assert scanner.is_paused()
        scanner.resume()
        assert not scanner.is_paused()
        assert scanner.latest_frame() is None
        scanner.close()


def test_corner_polygon():
    det = RawDetection("A", corner_points=(Point(1.4, 2.6), Point(3, 4)))
    polygon = corner_polygon(det)
    assert polygon.dtype == np.int32
    assert polygon.tolist() == [[1, 3], [3, 4]]
    assert corner_polygon(RawDetection("A")) is None
