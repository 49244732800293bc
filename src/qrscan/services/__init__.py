"""Shared services: event bus, timers and storage collaborators."""

from .event_bus import EventBus
from .events import (
    DetectionEvent,
    ImageScanEvent,
    ResetEvent,
    SelectEvent,
    StopEvent,
    TimerEvent,
    TimerId,
)
from .history import HistoryStore
from .scheduler import CommandScheduler
from .settings_store import SettingsStore

__all__ = [
    "CommandScheduler",
    "DetectionEvent",
    "EventBus",
    "HistoryStore",
    "ImageScanEvent",
    "ResetEvent",
    "SelectEvent",
    "SettingsStore",
    "StopEvent",
    "TimerEvent",
    "TimerId",
]
