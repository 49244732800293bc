"""State machine package exports."""

from .context import ScanContext, ScannerGate, scan_status_text
from .controller import DetectionStreamProcessor, ScanEngine
from .window import DetectionWindow, deduplicate

__all__ = [
    "DetectionStreamProcessor",
    "DetectionWindow",
    "ScanContext",
    "ScanEngine",
    "ScannerGate",
    "deduplicate",
    "scan_status_text",
]
