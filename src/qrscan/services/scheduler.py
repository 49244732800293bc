"""Command scheduler emitting timer events."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict

from .event_bus import EventBus
from .events import TimerEvent, TimerId

logger = logging.getLogger("services.scheduler")


@dataclass
class _Task:
    timer_id: TimerId
    thread: threading.Thread
    stop_event: threading.Event

    def cancel(self) -> None:
        self.stop_event.set()
        if self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)


class CommandScheduler:
    """Manages recurring timers publishing events on the bus."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._tasks: Dict[TimerId, _Task] = {}
        self._lock = threading.Lock()

    def start_interval(self, timer_id: TimerId, interval_s: float) -> None:
        self.cancel(timer_id)
        stop_event = threading.Event()

        def _run() -> None:
            logger.info("Timer %s started (interval %.3fs)", timer_id.value, interval_s)
            while not stop_event.wait(interval_s):
                self._bus.publish(TimerEvent(timer_id=timer_id))
            logger.info("Timer %s stopped.", timer_id.value)

        self._start(timer_id, stop_event, _run, f"Timer-{timer_id.value}")

    def is_active(self, timer_id: TimerId) -> bool:
        with self._lock:
            task = self._tasks.get(timer_id)
        return task is not None and task.thread.is_alive()

    def cancel(self, timer_id: TimerId) -> None:
        with self._lock:
            task = self._tasks.pop(timer_id, None)
        if task:
            task.cancel()

    def shutdown(self) -> None:
        with self._lock:
            timer_ids = list(self._tasks.keys())
        for timer_id in timer_ids:
            self.cancel(timer_id)

    def _start(self, timer_id: TimerId, stop_event: threading.Event, target, name: str) -> None:
        task = _Task(
            timer_id=timer_id,
            stop_event=stop_event,
            thread=threading.Thread(target=target, name=name, daemon=True),
        )
        with self._lock:
            self._tasks[timer_id] = task
        task.thread.start()
