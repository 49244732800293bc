"""Tests for DetectionWindow and payload deduplication."""
from __future__ import annotations

import pytest

from qrscan.state_machine import DetectionWindow, deduplicate
from tests.fakes import FakeClock, detection


class TestDeduplicate:
    def test_first_occurrence_wins(self):
        first = detection("A", (10, 10))
        dets = [first, detection("B"), detection("A", (99, 99))]
        unique = deduplicate(dets)
        assert [d.payload for d in unique] == ["A", "B"]
        assert unique[0] is first

    def test_empty(self):
        assert deduplicate([]) == ()


class TestDetectionWindow:
    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            DetectionWindow(0)

    def test_scenario_a_a_b(self):
        clock = FakeClock()
        window = DetectionWindow(0.2, clock=clock)
        for at, payload in [(0.010, "A"), (0.050, "A"), (0.150, "B")]:
            clock.set(at)
            assert not window.is_due()
            window.add(detection(payload))

        clock.set(0.200)
        assert window.is_due()
        closed = window.close()

        assert closed.payloads() == ["A", "B"]
        assert closed.window_index == 1
        assert len(window) == 0
        assert window.opened_at == 0.200

    def test_close_reopens_immediately(self):
        clock = FakeClock()
        window = DetectionWindow(0.2, clock=clock)
        clock.set(0.3)
        window.close()
        assert not window.is_due()
        clock.set(0.5)
        assert window.is_due()

    def test_discard_restarts_without_advancing_index(self):
        clock = FakeClock()
        window = DetectionWindow(0.2, clock=clock)
        window.add(detection("A"))
        window.add(detection("B"))
        clock.set(1.0)

        assert window.discard() == 2
        assert window.index == 0
        assert window.opened_at == 1.0
        assert window.close().payloads() == []
