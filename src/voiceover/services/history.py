"""
History of the most recent generation run.

Stored under ``voiceHistory`` as a JSON array:

    [{"text": "...", "audioUrls": ["audio/ab12...mp3", ...]}, ...]

A run replaces the whole history; reset clears it. Unparsable stored
history reads as empty.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from voiceover.core.logging import get_logger, verbose, warn
from voiceover.core.state import KeyValueStore, StateKey
from voiceover.services.events import RenderSink

_LOG = get_logger("voiceover.history")


@dataclass
class HistoryEntry:
    text: str
    audio_urls: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "audioUrls": list(self.audio_urls)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        urls = data.get("audioUrls") or []
        return cls(text=str(data.get("text", "")), audio_urls=[str(u) for u in urls])


class HistoryStore:
    def __init__(self, store: KeyValueStore):
        self._store = store
        self._entries: List[HistoryEntry] = self._read()

    def _read(self) -> List[HistoryEntry]:
        raw = self._store.get(StateKey.VOICE_HISTORY)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            warn(_LOG, "history_unparsable")
            return []
        if not isinstance(data, list):
            warn(_LOG, "history_unparsable")
            return []
        return [HistoryEntry.from_dict(item) for item in data if isinstance(item, dict)]

    def _write(self) -> None:
        self._store.set(StateKey.VOICE_HISTORY, json.dumps([e.to_dict() for e in self._entries], ensure_ascii=False))

    def load_all(self) -> List[HistoryEntry]:
        return list(self._entries)

    def replace_all(self, entries: List[HistoryEntry]) -> None:
        self._entries = list(entries)
        self._write()

    def append(self, entry: HistoryEntry) -> None:
        """Add one entry and persist the whole history."""
        self._entries.append(entry)
        self._write()
        verbose(_LOG, "history_appended", entries=len(self._entries), variants=len(entry.audio_urls))

    def clear(self) -> None:
        self._entries = []
        self._store.delete(StateKey.VOICE_HISTORY)

    def replay(self, sink: RenderSink) -> int:
        """
        Re-emit the stored history into ``sink``, in stored order.

        Returns:
            Number of entries replayed.
        """
        for entry in self._entries:
            chunk = sink.chunk_started(entry.text)
            for url in entry.audio_urls:
                sink.variant_ready(chunk, url)
        return len(self._entries)
