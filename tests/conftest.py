"""Shared fixtures for scanner tests.

Builds a DetectionStreamProcessor wired to fakes so every test can drive
windows, selection and reset synchronously.
"""
from __future__ import annotations

import logging

import pytest

from qrscan.core.entities import Size
from qrscan.state_machine import DetectionStreamProcessor, DetectionWindow, ScanContext, ScannerGate
from tests.fakes import FakeClock, FakeHistory, FakeScanner, FakeSettings

VIEWPORT = Size(640, 480)
WINDOW_S = 0.2


# ---------- Collaborator fixtures ----------

@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def scanner() -> FakeScanner:
    return FakeScanner()


@pytest.fixture()
def settings() -> FakeSettings:
    return FakeSettings()


@pytest.fixture()
def history() -> FakeHistory:
    return FakeHistory()


# ---------- Processor fixtures ----------

class Recorder:
    """Captures everything the context publishes."""

    def __init__(self, processor: DetectionStreamProcessor):
        self.candidates = []
        self.results = []
        self.notices = []
        processor.context.add_candidates_listener(self.candidates.append)
        processor.context.add_result_listener(self.results.append)
        processor.context.add_notice_listener(self.notices.append)


@pytest.fixture()
def processor_factory(clock, scanner, settings, history):
    """Create a processor over the shared fakes; keyword overrides replace collaborators."""
    ids = iter(f"id-{n}" for n in range(1, 1000))

    def _factory(**kwargs) -> DetectionStreamProcessor:
        defaults = dict(
            scanner=ScannerGate(scanner, logging.getLogger("test.gate")),
            settings=settings,
            window=DetectionWindow(WINDOW_S, clock=clock),
            viewport=VIEWPORT,
            history=history,
            timestamp_factory=lambda: 1_700_000_000_000,
            id_factory=lambda: next(ids),
        )
        defaults.update(kwargs)
        return DetectionStreamProcessor(ScanContext(**defaults))

    return _factory


@pytest.fixture()
def processor(processor_factory) -> DetectionStreamProcessor:
    return processor_factory()


@pytest.fixture()
def recorder(processor) -> Recorder:
    return Recorder(processor)
