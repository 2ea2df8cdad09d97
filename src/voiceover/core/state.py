"""
Durable Key-Value State.

The client keeps a handful of named values between sessions, the same way a
browser app would keep them in local storage: every value is a string, and
structured values (shared voices, history) are stored as JSON text.

Keys are declared once in StateKey so the writer and the reader can never
drift apart on spelling.

Two implementations of the KeyValueStore protocol are provided:
    - JsonFileStore: one JSON object on disk, rewritten atomically
    - MemoryStore: a dict, for tests and throwaway sessions
"""
from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Protocol

from voiceover.core.logging import debug, get_logger, warn

_LOG = get_logger("voiceover.state")


class StateKey(str, Enum):
    """Every key the application persists."""
    API_KEY = "apiKey"
    VOICE_ID = "voiceId"
    STABILITY = "stability"
    SIMILARITY_BOOST = "similarityBoost"
    SHARED_VOICES = "sharedVoices"
    VOICE_HISTORY = "voiceHistory"


class KeyValueStore(Protocol):
    def get(self, key: StateKey) -> Optional[str]:
        """Return the stored string, or None when the key is absent."""
        ...

    def set(self, key: StateKey, value: str) -> None:
        """Store ``value`` under ``key`` durably."""
        ...

    def delete(self, key: StateKey) -> None:
        """Remove ``key``; deleting an absent key is a no-op."""
        ...


class MemoryStore:
    """In-process store. Nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: StateKey) -> Optional[str]:
        return self._data.get(key.value)

    def set(self, key: StateKey, value: str) -> None:
        self._data[key.value] = str(value)

    def delete(self, key: StateKey) -> None:
        self._data.pop(key.value, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)


class JsonFileStore:
    """
    Store backed by a single JSON file.

    The file is read once on construction and rewritten in full on every
    change via write-to-temp-then-rename, so a crash mid-write leaves the
    previous state intact. An unreadable file is treated as empty.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._data: Dict[str, str] = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            warn(_LOG, "state_unreadable", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            warn(_LOG, "state_unreadable", path=str(self._path), error="not a JSON object")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self._path)
        debug(_LOG, "state_flushed", keys=len(self._data))

    def get(self, key: StateKey) -> Optional[str]:
        return self._data.get(key.value)

    def set(self, key: StateKey, value: str) -> None:
        self._data[key.value] = str(value)
        self._flush()

    def delete(self, key: StateKey) -> None:
        if key.value in self._data:
            del self._data[key.value]
            self._flush()
