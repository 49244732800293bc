"""Tests for the JSON-file HistoryStore."""
from __future__ import annotations

import json

import pytest

from qrscan.core.entities import HistoryEntry
from qrscan.infra.exceptions import StorageError
from qrscan.services import HistoryStore
from tests.fakes import detection


@pytest.fixture()
def store(tmp_path) -> HistoryStore:
    return HistoryStore(tmp_path / "data" / "history.json", limit=3)


class TestRecord:
    def test_newest_first(self, store):
        store.record(detection("A"), "1", 100)
        store.record(detection("B"), "2", 200)
        assert [e.data for e in store.entries()] == ["B", "A"]

    def test_limit_drops_oldest(self, store):
        for n, payload in enumerate("ABCD"):
            store.record(detection(payload), str(n), n)
        assert [e.data for e in store.entries()] == ["D", "C", "B"]

    def test_geometry_survives_round_trip(self, store):
        det = detection("https://example.com", (100, 50))
        entry = store.record(det, "abc", 1_700_000_000_000)

        reloaded = HistoryStore(store.path).entries()
        assert reloaded == [entry]
        assert reloaded[0].bounds == det.bounds
        assert reloaded[0].corner_points == det.corner_points
        assert reloaded[0].type == "qr"

    def test_file_layout(self, store):
        store.record(detection("A"), "1", 5)
        raw = json.loads(store.path.read_text(encoding="utf-8"))
        assert raw[0]["id"] == "1"
        assert raw[0]["data"] == "A"
        assert raw[0]["timestamp"] == 5
        assert raw[0]["bounds"] is None

    def test_write_failure_raises_storage_error(self, tmp_path):
        target = tmp_path / "history.json"
        target.mkdir()
        with pytest.raises(StorageError):
            HistoryStore(target).record(detection("A"), "1", 1)


class TestReadFailures:
    def test_missing_file_is_empty(self, store):
        assert store.entries() == []

    def test_corrupt_file_is_empty_and_recoverable(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json", encoding="utf-8")

        assert store.entries() == []
        store.record(detection("A"), "1", 1)
        assert [e.id for e in store.entries()] == ["1"]


class TestRemoveAndClear:
    def test_remove(self, store):
        store.record(detection("A"), "1", 1)
        store.record(detection("B"), "2", 2)

        assert store.remove("1") is True
        assert store.remove("missing") is False
        assert [e.id for e in store.entries()] == ["2"]

    def test_clear(self, store):
        store.record(detection("A"), "1", 1)
        store.clear()
        assert not store.path.exists()
        assert store.entries() == []
        store.clear()


def test_entry_from_dict_defaults():
    entry = HistoryEntry.from_dict({"id": 7})
    assert entry == HistoryEntry(id="7", data="", type="qr", timestamp=0)
