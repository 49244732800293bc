"""Detection stream processor state machine and the engine that drives it."""

from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path
from typing import Callable, List, Optional

from statemachine import State, StateMachine

from qrscan.core.entities import CandidateSet, Notice, NoticeKind, RawDetection, ScanResult
from qrscan.core.geometry import most_centered
from qrscan.infra.exceptions import EmptyScanResultError
from qrscan.services import (
    CommandScheduler,
    DetectionEvent,
    EventBus,
    ImageScanEvent,
    ResetEvent,
    SelectEvent,
    StopEvent,
    TimerEvent,
    TimerId,
)

from .context import ScanContext, scan_status_text

logger = logging.getLogger("scanner.processor")
engine_logger = logging.getLogger("scanner.engine")

ImageScanner = Callable[[Path], List[RawDetection]]


class DetectionStreamProcessor(StateMachine):
    """Buffers detections into windows and locks onto a single selection.

    While Idle, detections accumulate in the current window; closing the
    window publishes the deduplicated candidates and, when multi-code mode
    is off, selects the most centred one. Selecting locks the machine:
    further detections, ticks and taps are ignored until the session is
    reset.
    """

    idle = State("Idle", initial=True)
    locked = State("Locked")

    lock_selection = idle.to(locked)
    rearm = locked.to(idle)

    def __init__(self, context: ScanContext):
        self.context = context
        super().__init__()

    # State entry hooks -----------------------------------------------------

    def on_enter_locked(self) -> None:
        logger.info("Entering state: Locked")
        self.context.suspend_buffering()
        self.context.pause_scanner()

    def on_exit_locked(self) -> None:
        logger.info("Leaving state: Locked")
        self.context.clear_session()
        self.context.resume_scanner()

    # Event handling --------------------------------------------------------

    def handle_detection(self, detection: RawDetection) -> bool:
        """Buffer one detection; returns False when it was dropped."""
        if self.is_locked:
            logger.debug("Locked; dropping detection %r", detection.payload)
            return False
        # A late tick must not stretch the window: close it before buffering.
        if self.context.window.is_due():
            self.flush_window()
            if self.is_locked:
                return False
        self.context.window.add(detection)
        return True

    def handle_tick(self) -> Optional[CandidateSet]:
        if self.is_locked or not self.context.window.is_due():
            return None
        return self.flush_window()

    def flush_window(self) -> Optional[CandidateSet]:
        """Close the current window and publish its candidates."""
        if self.is_locked:
            self.context.suspend_buffering()
            return None
        candidates = self.context.window.close()
        self.context.publish_candidates(candidates)
        if candidates and not self.context.current_settings().multi_code_detection:
            self.select_detection()
        return candidates

    def select_detection(self, detection: Optional[RawDetection] = None) -> Optional[ScanResult]:
        """Lock onto ``detection`` (or the most centred candidate) and classify it."""
        if self.is_locked:
            logger.debug("Selection ignored; a code is already selected")
            return None
        if detection is None:
            detection = most_centered(self.context.candidates.detections, self.context.viewport)
            if detection is None:
                logger.debug("Nothing to select")
                return None
        else:
            # A tap only counts against the candidates currently on screen.
            tapped = self.context.candidates.find(detection.payload)
            if tapped is None:
                logger.debug("Ignoring tap on %r; not in the current candidates", detection.payload)
                return None
            detection = tapped

        snapshot = self.context.snapshot(detection)
        self.lock_selection()
        self.context.selected = snapshot
        self.context.collapse_to(snapshot)
        result = self.context.build_result(snapshot)
        self.context.emit_result(result)
        return result

    def reset_session(self, reason: str | None = None) -> None:
        """Scan again / dismiss: return to Idle with a fresh window."""
        logger.info("Resetting scan session (%s)", reason or "no reason given")
        if self.is_locked:
            self.rearm()
            return
        self.context.clear_session()
        self.context.resume_scanner()

    # Convenience predicates ------------------------------------------------

    @property
    def is_locked(self) -> bool:
        return self.locked.is_active

    @property
    def status_text(self) -> str:
        settings = self.context.current_settings()
        return scan_status_text(len(self.context.candidates), settings.multi_code_detection)


class ScanEngine:
    """Coordinates event consumption, window ticks and the processor."""

    def __init__(
        self,
        processor: DetectionStreamProcessor,
        bus: EventBus,
        scheduler: CommandScheduler,
        tick_s: float,
        image_scanner: Optional[ImageScanner] = None,
    ):
        self.processor = processor
        self.bus = bus
        self.scheduler = scheduler
        self.tick_s = tick_s
        self.image_scanner = image_scanner
        self._loop_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    # Producer side -----------------------------------------------------------

    def submit_detection(self, detection: RawDetection) -> bool:
        return self.bus.publish(DetectionEvent(detection=detection))

    def select(self, detection: Optional[RawDetection] = None) -> bool:
        return self.bus.publish(SelectEvent(detection=detection))

    def reset(self, reason: str | None = None) -> bool:
        return self.bus.publish(ResetEvent(reason=reason))

    def scan_image(self, path: Path | str) -> bool:
        return self.bus.publish(ImageScanEvent(path=Path(path)))

    # Lifecycle ---------------------------------------------------------------

    def start(self) -> None:
        self._stop_event.clear()
        self.scheduler.start_interval(TimerId.WINDOW_TICK, self.tick_s)
        self._loop_thread = threading.Thread(target=self._event_loop, name="ScanEventLoop", daemon=True)
        self._loop_thread.start()
        engine_logger.info("Scan engine started.")

    def stop(self) -> None:
        self._stop_event.set()
        self.bus.stop("engine shutdown")
        if self._loop_thread:
            self._loop_thread.join(timeout=2.0)
        self.scheduler.shutdown()
        engine_logger.info("Scan engine stopped.")

    def _event_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                event = self.bus.get(timeout=0.5)
            except queue.Empty:
                continue

            if isinstance(event, StopEvent):
                engine_logger.info("Scan engine received stop event: %s", event.reason)
                break

            self.dispatch_event(event)

    def dispatch_event(self, event: object) -> None:
        try:
            if isinstance(event, DetectionEvent):
                self.processor.handle_detection(event.detection)
            elif isinstance(event, TimerEvent):
                if event.timer_id == TimerId.WINDOW_TICK:
                    self.processor.handle_tick()
            elif isinstance(event, SelectEvent):
                self.processor.select_detection(event.detection)
            elif isinstance(event, ResetEvent):
                self.processor.reset_session(event.reason)
            elif isinstance(event, ImageScanEvent):
                self._handle_image_scan(event.path)
            else:
                engine_logger.debug("Unhandled event type: %s", type(event).__name__)
        except Exception:
            engine_logger.exception("Error while dispatching event: %s", event)

    def _handle_image_scan(self, path: Path) -> None:
        if self.image_scanner is None:
            engine_logger.warning("Image scan requested but no image scanner is configured")
            return
        try:
            detections = self.image_scanner(path)
        except EmptyScanResultError as exc:
            self.processor.context.notify(Notice(NoticeKind.EMPTY_SCAN_RESULT, str(exc)))
            return
        except FileNotFoundError as exc:
            engine_logger.warning("Image scan failed: %s", exc)
            self.processor.context.notify(Notice(NoticeKind.UNREADABLE_IMAGE, str(exc)))
            return
        engine_logger.info("Image %s yielded %d code(s)", path, len(detections))
        for detection in detections:
            self.processor.handle_detection(detection)
