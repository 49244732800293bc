"""Tests for ScanEngine dispatch, the event bus and the scheduler."""
from __future__ import annotations

import queue
import time

import pytest

from qrscan.core.entities import NoticeKind, ScanSettings
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
from qrscan.state_machine import ScanEngine
from tests.fakes import detection


@pytest.fixture()
def bus() -> EventBus:
    return EventBus(maxsize=16)


@pytest.fixture()
def engine_factory(processor, bus):
    created = []

    def _factory(**kwargs) -> ScanEngine:
        engine = ScanEngine(processor, bus, CommandScheduler(bus), tick_s=0.01, **kwargs)
        created.append(engine)
        return engine

    yield _factory

    for engine in created:
        engine.stop()


class TestDispatch:
    def test_detection_then_tick_publishes(self, engine_factory, processor, recorder, clock, settings):
        settings.settings = ScanSettings(multi_code_detection=True)
        engine = engine_factory()

        clock.set(0.05)
        engine.dispatch_event(DetectionEvent(detection("A")))
        clock.set(0.25)
        engine.dispatch_event(TimerEvent(TimerId.WINDOW_TICK))

        assert recorder.candidates[-1].payloads() == ["A"]

    def test_select_and_reset(self, engine_factory, processor, recorder, scanner, clock, settings):
        settings.settings = ScanSettings(multi_code_detection=True)
        engine = engine_factory()
        engine.dispatch_event(DetectionEvent(detection("tel:1")))
        clock.set(0.25)
        engine.dispatch_event(TimerEvent(TimerId.WINDOW_TICK))

        engine.dispatch_event(SelectEvent(detection("tel:1")))
        assert processor.is_locked
        engine.dispatch_event(ResetEvent("scan again"))

        assert not processor.is_locked
        assert scanner.resume_calls == 1
        assert len(recorder.results) == 1

    def test_image_scan_feeds_the_window(self, engine_factory, processor):
        found = [detection("A"), detection("B")]
        engine = engine_factory(image_scanner=lambda path: found)

        engine.dispatch_event(ImageScanEvent(path="photo.png"))

        assert len(processor.context.window) == 2

    def test_empty_image_reports_notice(self, engine_factory, processor, recorder):
        def _empty(path):
            raise EmptyScanResultError(str(path))

        engine = engine_factory(image_scanner=_empty)
        engine.dispatch_event(ImageScanEvent(path="blank.png"))

        assert [n.kind for n in recorder.notices] == [NoticeKind.EMPTY_SCAN_RESULT]
        assert recorder.notices[0].message == "No QR code found in blank.png"
        assert not processor.is_locked

    def test_unreadable_image_reports_notice(self, engine_factory, processor, recorder):
        def _missing(path):
            raise FileNotFoundError(f"Unable to load image at {path}")

        engine = engine_factory(image_scanner=_missing)
        engine.dispatch_event(ImageScanEvent(path="gone.png"))

        assert [n.kind for n in recorder.notices] == [NoticeKind.UNREADABLE_IMAGE]
        assert "gone.png" in recorder.notices[0].message
        assert not processor.is_locked

    def test_queued_tap_after_window_replaced_is_ignored(self, engine_factory, processor, recorder, clock, history, scanner, settings):
        settings.settings = ScanSettings(multi_code_detection=True)
        engine = engine_factory()
        engine.dispatch_event(DetectionEvent(detection("A")))
        clock.set(0.2)
        engine.dispatch_event(TimerEvent(TimerId.WINDOW_TICK))
        clock.set(0.4)
        engine.dispatch_event(TimerEvent(TimerId.WINDOW_TICK))

        engine.dispatch_event(SelectEvent(detection("A")))

        assert not processor.is_locked
        assert recorder.results == []
        assert history.records == []
        assert scanner.pause_calls == 0

    def test_handler_errors_do_not_escape(self, engine_factory, caplog):
        def _broken(path):
            raise OSError("disk gone")

        engine = engine_factory(image_scanner=_broken)
        engine.dispatch_event(ImageScanEvent(path="x.png"))

        assert "Error while dispatching event" in caplog.text


class TestEngineLoop:
    def test_events_flow_through_running_engine(self, engine_factory, processor, recorder, clock):
        engine = engine_factory()
        engine.start()
        engine.submit_detection(detection("hello"))

        deadline = time.monotonic() + 2.0
        while not len(processor.context.window) and time.monotonic() < deadline:
            time.sleep(0.01)
        # Window is due; the next tick auto-selects in single-code mode.
        clock.set(1.0)
        while not recorder.results and time.monotonic() < deadline:
            time.sleep(0.01)

        assert [r.detection.payload for r in recorder.results] == ["hello"]
        assert engine.scheduler.is_active(TimerId.WINDOW_TICK)

        engine.stop()
        assert not engine.scheduler.is_active(TimerId.WINDOW_TICK)


class TestEventBus:
    def test_fifo_order(self, bus):
        bus.publish(DetectionEvent(detection("A")))
        bus.publish(DetectionEvent(detection("B")))
        assert bus.get_nowait().detection.payload == "A"
        assert bus.get_nowait().detection.payload == "B"

    def test_full_queue_drops(self):
        bus = EventBus(maxsize=1)
        assert bus.publish(ResetEvent()) is True
        assert bus.publish(ResetEvent()) is False
        assert bus.pending() == 1

    def test_stop_publishes_stop_event(self, bus):
        bus.stop("bye")
        event = bus.get_nowait()
        assert isinstance(event, StopEvent)
        assert event.reason == "bye"

    def test_events_are_timestamped(self):
        assert SelectEvent().created_at.tzinfo is not None


class TestScheduler:
    def test_interval_publishes_ticks(self, bus):
        scheduler = CommandScheduler(bus)
        scheduler.start_interval(TimerId.WINDOW_TICK, 0.01)
        try:
            event = bus.get(timeout=1.0)
        finally:
            scheduler.shutdown()
        assert isinstance(event, TimerEvent)
        assert event.timer_id is TimerId.WINDOW_TICK

    def test_cancelled_interval_never_fires(self, bus):
        scheduler = CommandScheduler(bus)
        scheduler.start_interval(TimerId.WINDOW_TICK, 0.2)
        scheduler.cancel(TimerId.WINDOW_TICK)
        with pytest.raises(queue.Empty):
            bus.get(timeout=0.3)
        assert not scheduler.is_active(TimerId.WINDOW_TICK)
