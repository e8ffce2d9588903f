"""Learned preferences and rolling action history, persisted as JSON.

Both stores load once at construction and overwrite their file wholesale on
every save. Persistence is best-effort: a missing, corrupt or unreadable file
means the store starts empty, and a failed write leaves the in-memory state
as it is. Neither case raises; the outcome comes back as a ``StoreResult``.
"""

import json
from collections import deque
from pathlib import Path
from threading import Lock
from typing import Optional

from loguru import logger

from commandsense.utils.helpers import ensure_dir

from .models import ContextEntry, StoreResult, StoreStatus


def _read_json(path: Path) -> tuple[object, StoreResult]:
    if not path.exists():
        return None, StoreResult(StoreStatus.MISSING)
    try:
        return json.loads(path.read_text(encoding="utf-8")), StoreResult(StoreStatus.OK)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Corrupt store file {path}: {e}")
        return None, StoreResult(StoreStatus.CORRUPT, str(e))
    except OSError as e:
        logger.warning(f"Could not read store file {path}: {e}")
        return None, StoreResult(StoreStatus.IO_ERROR, str(e))


def _write_json(path: Path, data: object) -> StoreResult:
    try:
        ensure_dir(path.parent)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return StoreResult(StoreStatus.OK)
    except (OSError, TypeError, ValueError) as e:
        logger.warning(f"Could not write store file {path}: {e}")
        return StoreResult(StoreStatus.IO_ERROR, str(e))


class PreferenceStore:
    """Key-value learned preferences, last write wins."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        self._lock = Lock()
        self._write_lock = Lock()
        self._prefs: dict[str, str] = {}
        self.last_load = self.load() if path else StoreResult(StoreStatus.MISSING)

    def load(self) -> StoreResult:
        """(Re)load preferences from disk, starting empty on any failure."""
        if self.path is None:
            return StoreResult(StoreStatus.MISSING)
        data, result = _read_json(self.path)
        prefs: dict[str, str] = {}
        if result.ok:
            if isinstance(data, dict):
                prefs = {str(k): str(v) for k, v in data.items()}
            else:
                logger.warning(f"Preferences file {self.path} is not an object, ignoring")
                result = StoreResult(StoreStatus.CORRUPT, "expected a JSON object")
        with self._lock:
            self._prefs = prefs
        return result

    def save(self) -> StoreResult:
        if self.path is None:
            return StoreResult(StoreStatus.OK)
        # Copy and write under one lock so an older copy never lands last
        with self._write_lock:
            with self._lock:
                snapshot = dict(self._prefs)
            return _write_json(self.path, snapshot)

    def set(self, key: str, value: str) -> StoreResult:
        """Learn a preference and persist the whole map."""
        with self._lock:
            self._prefs[key] = value
        logger.debug(f"[Preferences] {key} = {value}")
        return self.save()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._lock:
            return self._prefs.get(key, default)

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return dict(self._prefs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._prefs)


class ContextHistory:
    """
    Bounded FIFO of recent actions.

    Appending past ``capacity`` evicts the oldest entry. Readers get
    snapshots, never the live buffer.
    """

    def __init__(self, capacity: int = 10, path: Optional[Path] = None):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.path = path
        self._lock = Lock()
        self._write_lock = Lock()
        self._entries: deque[ContextEntry] = deque(maxlen=capacity)
        self.last_load = self.load() if path else StoreResult(StoreStatus.MISSING)

    def load(self) -> StoreResult:
        """(Re)load history from disk, starting empty on any failure."""
        if self.path is None:
            return StoreResult(StoreStatus.MISSING)
        data, result = _read_json(self.path)
        entries: list[ContextEntry] = []
        if result.ok:
            try:
                if not isinstance(data, list):
                    raise TypeError("expected a JSON list")
                entries = [ContextEntry.from_dict(item) for item in data]
            except (TypeError, KeyError, ValueError) as e:
                logger.warning(f"History file {self.path} is malformed: {e}")
                entries = []
                result = StoreResult(StoreStatus.CORRUPT, str(e))
        with self._lock:
            self._entries = deque(entries, maxlen=self.capacity)
        return result

    def save(self) -> StoreResult:
        if self.path is None:
            return StoreResult(StoreStatus.OK)
        with self._write_lock:
            with self._lock:
                data = [entry.to_dict() for entry in self._entries]
            return _write_json(self.path, data)

    def append(self, entry: ContextEntry) -> StoreResult:
        with self._lock:
            self._entries.append(entry)
        return self.save()

    def add(self, action: str, entity: str, result: Optional[str] = None) -> StoreResult:
        return self.append(ContextEntry(action=action, main_entity=entity, result=result))

    def last(self) -> Optional[ContextEntry]:
        with self._lock:
            return self._entries[-1] if self._entries else None

    def recent(self, limit: Optional[int] = None) -> list[ContextEntry]:
        """Oldest-first snapshot of the last ``limit`` entries (all by default)."""
        with self._lock:
            entries = list(self._entries)
        if limit is None:
            return entries
        return entries[-limit:] if limit > 0 else []

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
