"""Entity definitions for domain objects."""

from .detection import EMPTY_CANDIDATES, CandidateSet, Point, RawDetection, Rect, Size
from .payload import ActionDescriptor, EffectKind, ParsedPayload, PayloadKind
from .session import SAFE_SETTINGS, HistoryEntry, Notice, NoticeKind, ScanResult, ScanSettings

__all__ = [
    "ActionDescriptor",
    "CandidateSet",
    "EMPTY_CANDIDATES",
    "EffectKind",
    "HistoryEntry",
    "Notice",
    "NoticeKind",
    "ParsedPayload",
    "PayloadKind",
    "Point",
    "RawDetection",
    "Rect",
    "SAFE_SETTINGS",
    "ScanResult",
    "ScanSettings",
    "Size",
]
