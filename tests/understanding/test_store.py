"""Tests for the preference store and context history."""

import json
import threading
import time

import pytest

from commandsense.understanding import store as store_module
from commandsense.understanding.models import ContextEntry, StoreStatus
from commandsense.understanding.store import ContextHistory, PreferenceStore


def slow_first_write():
    """Wrap the file writer so its first call stalls before writing."""
    real_write = store_module._write_json
    calls = []

    def write(path, data):
        calls.append(data)
        if len(calls) == 1:
            time.sleep(0.3)
        return real_write(path, data)

    return write


class TestPreferenceStore:
    """Test PreferenceStore."""

    def test_missing_file_starts_empty(self, tmp_path):
        """Test a missing file is not an error."""
        store = PreferenceStore(tmp_path / "preferences.json")
        assert store.last_load.status == StoreStatus.MISSING
        assert store.snapshot() == {}

    def test_set_persists(self, tmp_path):
        """Test learned preferences survive a reload."""
        path = tmp_path / "preferences.json"
        store = PreferenceStore(path)

        result = store.set("default_music_platform", "youtube")

        assert result.ok
        assert json.loads(path.read_text()) == {"default_music_platform": "youtube"}
        reloaded = PreferenceStore(path)
        assert reloaded.last_load.ok
        assert reloaded.get("default_music_platform") == "youtube"

    def test_last_write_wins(self, tmp_path):
        """Test setting a key twice keeps the latest value."""
        store = PreferenceStore(tmp_path / "preferences.json")
        store.set("volume", "50")
        store.set("volume", "80")
        assert store.get("volume") == "80"
        assert len(store) == 1

    def test_corrupt_file(self, tmp_path):
        """Test a corrupt file starts empty and is replaced on save."""
        path = tmp_path / "preferences.json"
        path.write_text("{not json")

        store = PreferenceStore(path)
        assert store.last_load.status == StoreStatus.CORRUPT
        assert store.last_load.error
        assert store.snapshot() == {}

        assert store.set("a", "b").ok
        assert json.loads(path.read_text()) == {"a": "b"}

    def test_undecodable_file(self, tmp_path):
        """Test a file that is not UTF-8 starts empty."""
        path = tmp_path / "preferences.json"
        path.write_bytes(b"\xff{}")

        store = PreferenceStore(path)

        assert store.last_load.status == StoreStatus.CORRUPT
        assert store.snapshot() == {}

    def test_concurrent_saves_keep_newest(self, tmp_path, monkeypatch):
        """Test a slow earlier save cannot overwrite a later one."""
        path = tmp_path / "preferences.json"
        store = PreferenceStore(path)
        monkeypatch.setattr(store_module, "_write_json", slow_first_write())

        worker = threading.Thread(target=store.set, args=("a", "1"))
        worker.start()
        time.sleep(0.05)
        store.set("b", "2")
        worker.join()

        assert json.loads(path.read_text()) == {"a": "1", "b": "2"}

    def test_non_object_file(self, tmp_path):
        """Test a JSON list is treated as corrupt."""
        path = tmp_path / "preferences.json"
        path.write_text("[1, 2]")
        assert PreferenceStore(path).last_load.status == StoreStatus.CORRUPT

    def test_write_failure_keeps_memory(self, tmp_path):
        """Test a failed write is reported and the value is still held."""
        path = tmp_path / "preferences.json"
        path.mkdir()

        store = PreferenceStore(path)
        assert store.last_load.status == StoreStatus.IO_ERROR

        result = store.set("a", "b")
        assert result.status == StoreStatus.IO_ERROR
        assert store.get("a") == "b"

    def test_in_memory_only(self):
        """Test a store without a path never touches disk."""
        store = PreferenceStore()
        assert store.set("a", "b").ok
        assert store.get("a") == "b"
        assert store.get("missing", "fallback") == "fallback"


class TestContextHistory:
    """Test ContextHistory."""

    def test_fifo_eviction(self, tmp_path):
        """Test the oldest entries are dropped past capacity."""
        history = ContextHistory(capacity=10, path=tmp_path / "context_history.json")
        for i in range(12):
            history.add("play", f"item{i}")

        entries = history.recent()
        assert len(history) == 10
        assert entries[0].main_entity == "item2"
        assert entries[-1].main_entity == "item11"
        assert history.last().main_entity == "item11"

    def test_persists_and_reloads(self, tmp_path):
        """Test history survives a reload in order."""
        path = tmp_path / "context_history.json"
        history = ContextHistory(path=path)
        history.add("play", "jazz", result="ok")
        history.add("open", "notepad")

        reloaded = ContextHistory(path=path)
        assert reloaded.last_load.ok
        assert [(e.action, e.main_entity) for e in reloaded.recent()] == [
            ("play", "jazz"),
            ("open", "notepad"),
        ]
        assert reloaded.recent()[0].result == "ok"
        assert reloaded.recent()[0].timestamp == history.recent()[0].timestamp

    def test_reload_respects_capacity(self, tmp_path):
        """Test a longer file than the capacity keeps the newest entries."""
        path = tmp_path / "context_history.json"
        entries = [ContextEntry(action="play", main_entity=f"item{i}").to_dict() for i in range(5)]
        path.write_text(json.dumps(entries))

        history = ContextHistory(capacity=3, path=path)
        assert [e.main_entity for e in history.recent()] == ["item2", "item3", "item4"]

    def test_corrupt_file(self, tmp_path):
        """Test a corrupt or malformed file starts empty."""
        path = tmp_path / "context_history.json"
        path.write_text("nope")
        assert ContextHistory(path=path).last_load.status == StoreStatus.CORRUPT

        path.write_text('[{"action": "play"}]')
        history = ContextHistory(path=path)
        assert history.last_load.status == StoreStatus.CORRUPT
        assert len(history) == 0

    def test_undecodable_file(self, tmp_path):
        """Test a file that is not UTF-8 starts empty."""
        path = tmp_path / "context_history.json"
        path.write_bytes(b"\xff[]")

        history = ContextHistory(path=path)

        assert history.last_load.status == StoreStatus.CORRUPT
        assert len(history) == 0

    def test_concurrent_saves_keep_newest(self, tmp_path, monkeypatch):
        """Test a slow earlier save cannot overwrite a later one."""
        path = tmp_path / "context_history.json"
        history = ContextHistory(path=path)
        monkeypatch.setattr(store_module, "_write_json", slow_first_write())

        worker = threading.Thread(target=history.add, args=("play", "jazz"))
        worker.start()
        time.sleep(0.05)
        history.add("open", "chrome")
        worker.join()

        saved = json.loads(path.read_text())
        assert [item["main_entity"] for item in saved] == ["jazz", "chrome"]

    def test_recent_limit(self):
        """Test recent returns the newest entries oldest-first."""
        history = ContextHistory()
        for name in ["a", "b", "c", "d"]:
            history.add("open", name)
        assert [e.main_entity for e in history.recent(2)] == ["c", "d"]
        assert history.recent(0) == []

    def test_empty(self):
        """Test an empty history."""
        history = ContextHistory()
        assert history.last() is None
        assert history.recent() == []

    def test_snapshot_is_a_copy(self):
        """Test callers cannot mutate the live buffer."""
        history = ContextHistory()
        history.add("play", "jazz")
        history.recent().clear()
        assert len(history) == 1

    def test_invalid_capacity(self):
        """Test capacity must be positive."""
        with pytest.raises(ValueError):
            ContextHistory(capacity=0)
