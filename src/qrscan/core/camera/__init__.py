"""Scanner device abstractions and the OpenCV implementation."""

from .base import ScannerBase
from .qr_camera import OpenCvQrScanner, corner_polygon, decode_frame, scan_image

__all__ = ["OpenCvQrScanner", "ScannerBase", "corner_polygon", "decode_frame", "scan_image"]
