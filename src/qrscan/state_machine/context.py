"""Runtime context and helper utilities for the detection stream processor."""

from __future__ import annotations

import copy
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

from qrscan.core.actions import ActionBuilder
from qrscan.core.classifier import classify
from qrscan.core.entities import (
    EMPTY_CANDIDATES,
    SAFE_SETTINGS,
    CandidateSet,
    Notice,
    NoticeKind,
    RawDetection,
    ScanResult,
    ScanSettings,
    Size,
)
from qrscan.infra.exceptions import MalformedURLError, ScanError, StorageError

from .window import DetectionWindow


class ScannerControl(Protocol):
    def pause(self) -> None: ...

    def resume(self) -> None: ...


class SettingsProvider(Protocol):
    def current(self) -> ScanSettings: ...


class HistoryRecorder(Protocol):
    def record(self, detection: RawDetection, entry_id: str, timestamp: int) -> object: ...


CandidatesListener = Callable[[CandidateSet], None]
ResultListener = Callable[[ScanResult], None]
NoticeListener = Callable[[Notice], None]


def scan_status_text(candidate_count: int, multi_code: bool) -> str:
    if candidate_count <= 0:
        return "Scanning for QR code"
    if multi_code:
        plural = "s" if candidate_count > 1 else ""
        return f"{candidate_count} QR code{plural} detected - Tap to select"
    return "QR code detected - Tap to select"


class ScannerGate:
    """Owns pause/resume of the scanner; repeated commands are no-ops."""

    def __init__(self, scanner: Optional[ScannerControl], logger: Optional[logging.Logger] = None) -> None:
        self._scanner = scanner
        self._paused = False
        self._logger = logger or logging.getLogger("scanner.gate")

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> bool:
        if self._paused:
            self._logger.debug("Scanner already paused")
            return False
        self._paused = True
        if self._scanner is not None:
            self._scanner.pause()
        self._logger.info("Scanner paused")
        return True

    def resume(self) -> bool:
        if not self._paused:
            self._logger.debug("Scanner already running")
            return False
        self._paused = False
        if self._scanner is not None:
            self._scanner.resume()
        self._logger.info("Scanner resumed")
        return True


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _new_entry_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ScanContext:
    """Holds session state and provides command helpers for the processor FSM."""

    scanner: ScannerGate
    settings: SettingsProvider
    window: DetectionWindow
    viewport: Size
    history: Optional[HistoryRecorder] = None
    builder: ActionBuilder = field(default_factory=ActionBuilder)
    timestamp_factory: Callable[[], int] = _epoch_ms
    id_factory: Callable[[], str] = _new_entry_id
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("scanner.context"))

    candidates: CandidateSet = EMPTY_CANDIDATES
    selected: Optional[RawDetection] = None
    last_result: Optional[ScanResult] = None

    _candidate_listeners: List[CandidatesListener] = field(default_factory=list)
    _result_listeners: List[ResultListener] = field(default_factory=list)
    _notice_listeners: List[NoticeListener] = field(default_factory=list)

    # Listener registration ----------------------------------------------------

    def add_candidates_listener(self, listener: CandidatesListener) -> None:
        self._candidate_listeners.append(listener)

    def add_result_listener(self, listener: ResultListener) -> None:
        self._result_listeners.append(listener)

    def add_notice_listener(self, listener: NoticeListener) -> None:
        self._notice_listeners.append(listener)

    # Settings -------------------------------------------------------------------

    def current_settings(self) -> ScanSettings:
        try:
            return self.settings.current()
        except StorageError as exc:
            self.logger.error("Settings unavailable (%s); using safe defaults", exc)
            return SAFE_SETTINGS

    # Candidate publication ------------------------------------------------------

    def publish_candidates(self, candidates: CandidateSet) -> None:
        self.candidates = candidates
        if candidates:
            self.logger.debug(
                "Window %d published %d candidate(s): %s",
                candidates.window_index,
                len(candidates),
                candidates.payloads(),
            )
        for listener in tuple(self._candidate_listeners):
            listener(candidates)

    def collapse_to(self, detection: RawDetection) -> None:
        self.publish_candidates(CandidateSet(detections=(detection,), window_index=self.candidates.window_index))

    # Selection --------------------------------------------------------------------

    @staticmethod
    def snapshot(detection: RawDetection) -> RawDetection:
        return copy.deepcopy(detection)

    def build_result(self, detection: RawDetection) -> ScanResult:
        """Classify the selected detection and record it in history when enabled."""
        parsed = None
        error: Optional[ScanError] = None
        try:
            parsed = classify(detection.payload, self.builder)
            self.logger.info("Selected %s payload: %s", parsed.kind.value, parsed.subtitle or parsed.title)
        except MalformedURLError as exc:
            error = exc
            self.logger.warning("Classification failed: %s", exc)
            self.notify(Notice(NoticeKind.MALFORMED_URL, str(exc)))

        history_id = self.record_history(detection)
        result = ScanResult(detection=detection, parsed=parsed, error=error, history_id=history_id)
        self.last_result = result
        return result

    def record_history(self, detection: RawDetection) -> Optional[str]:
        if self.history is None or not self.current_settings().history_enabled:
            self.logger.debug("History disabled; not recording %r", detection.payload)
            return None
        entry_id = self.id_factory()
        try:
            self.history.record(detection, entry_id, self.timestamp_factory())
        except StorageError as exc:
            self.logger.error("Failed to record history: %s", exc)
            self.notify(Notice(NoticeKind.STORAGE_FAILURE, str(exc)))
            return None
        return entry_id

    def emit_result(self, result: ScanResult) -> None:
        for listener in tuple(self._result_listeners):
            listener(result)

    def notify(self, notice: Notice) -> None:
        self.logger.info("Notice (%s): %s", notice.kind.value, notice.message)
        for listener in tuple(self._notice_listeners):
            listener(notice)

    # Session lifecycle --------------------------------------------------------------

    def suspend_buffering(self) -> None:
        dropped = self.window.discard()
        if dropped:
            self.logger.debug("Discarded %d buffered detection(s) on lock", dropped)

    def clear_session(self) -> None:
        self.selected = None
        self.last_result = None
        self.window.discard()
        self.publish_candidates(CandidateSet(window_index=self.window.index))

    def pause_scanner(self) -> None:
        if self.current_settings().continuous_scan:
            self.logger.debug("Continuous scan enabled; scanner keeps running")
            return
        self.scanner.pause()

    def resume_scanner(self) -> None:
        self.scanner.resume()
