"""Thread-safe event bus feeding the scan engine."""

from __future__ import annotations

import logging
import queue
from typing import Optional

from .events import StopEvent

logger = logging.getLogger("services.event_bus")


class EventBus:
    """Simple publish/consume event bus.

    Any number of producer threads may publish; exactly one consumer reads,
    so events are handled in the order they were published.
    """

    def __init__(self, maxsize: int = 1024) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=maxsize)

    def publish(self, event: object) -> bool:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            logger.warning("Event bus queue full; dropping event %s", event)
            return False
        return True

    def get(self, timeout: Optional[float] = None) -> object:
        return self._queue.get(timeout=timeout)

    def get_nowait(self) -> object:
        return self._queue.get_nowait()

    def pending(self) -> int:
        return self._queue.qsize()

    def stop(self, reason: str | None = None) -> None:
        self.publish(StopEvent(reason=reason))
