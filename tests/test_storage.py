"""Tests for the key-value stores and the persistent value wrapper."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.storage import (
    Derive,
    MemoryStore,
    PersistentValue,
    Replace,
    SessionStateStore,
    StorageError,
)


class BrokenStore(MemoryStore):
    def get(self, key):
        raise StorageError("storage disabled")

    def set(self, key, value):
        raise StorageError("storage disabled")


def test_default_when_key_missing():
    value = PersistentValue(MemoryStore(), "theme", "light")

    assert value.value == "light"


def test_replace_and_derive_write_json():
    store = MemoryStore()
    counter = PersistentValue(store, "counter", 0)

    assert counter.set(Replace(5)) == 5
    assert counter.set(Derive(lambda previous: previous + 1)) == 6
    assert json.loads(store.get("counter")) == 6


def test_quota_failure_keeps_memory_copy(caplog):
    store = MemoryStore(quota=10)
    notes = PersistentValue(store, "notes", "")

    with caplog.at_level(logging.ERROR, logger="core.storage"):
        result = notes.set(Replace("this note is far too long"))

    assert result == "this note is far too long"
    assert notes.value == "this note is far too long"
    assert store.get("notes") is None
    assert "Storage quota exceeded" in caplog.text


def test_unreadable_store_falls_back_to_default():
    value = PersistentValue(BrokenStore(), "goal", None)

    assert value.value is None
    assert value.set(Replace({"name": "Trip"})) == {"name": "Trip"}
    assert value.is_available() is False


def test_values_on_same_key_stay_in_sync():
    store = MemoryStore()
    first = PersistentValue(store, "goal", None)
    second = PersistentValue(store, "goal", None)
    other = PersistentValue(store, "other", "untouched")

    first.set(Replace({"name": "Trip"}))
    assert second.value == {"name": "Trip"}
    assert other.value == "untouched"

    first.remove()
    assert second.value is None
    assert store.get("goal") is None


def test_corrupt_event_keeps_previous_value(caplog):
    store = MemoryStore()
    value = PersistentValue(store, "goal", None)
    value.set(Replace({"name": "Trip"}))

    with caplog.at_level(logging.WARNING, logger="core.storage"):
        store.set("goal", "{broken")

    assert value.value == {"name": "Trip"}
    assert "Error decoding storage event" in caplog.text


def test_close_stops_syncing():
    store = MemoryStore()
    first = PersistentValue(store, "goal", None)
    second = PersistentValue(store, "goal", None)

    second.close()
    first.set(Replace("changed"))

    assert second.value is None


def test_session_state_store_uses_prefixed_keys():
    state: dict = {}
    store = SessionStateStore(state)
    value = PersistentValue(store, "goal", None)

    value.set(Replace({"name": "Trip"}))

    assert json.loads(state["spendwise::goal"]) == {"name": "Trip"}
    assert value.is_available() is True
    assert "spendwise::__storage_test__" not in state

    value.remove()
    assert state == {}
