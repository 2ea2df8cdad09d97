"""
Selectable voice list.

The list is always: a placeholder entry, then the account's voices as
reported by the API, then the user's shared voices. Entries are not
deduplicated by id; a shared voice that is also an account voice appears
twice, once with the " (Shared)" suffix.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from voiceover.core.logging import get_logger, info, warn
from voiceover.services.config_store import SharedVoice
from voiceover.services.errors import RemoteError
from voiceover.tts.client import ElevenLabsClient, RemoteVoice

_LOG = get_logger("voiceover.voices")

PLACEHOLDER_LABEL = "Select a voice"
SHARED_SUFFIX = " (Shared)"


@dataclass
class VoiceEntry:
    id: str
    name: str
    is_shared: bool = False

    @property
    def label(self) -> str:
        if not self.id and not self.name:
            return PLACEHOLDER_LABEL
        return f"{self.name}{SHARED_SUFFIX}" if self.is_shared else self.name

    def to_dict(self) -> Dict[str, object]:
        return {"id": self.id, "name": self.name, "is_shared": self.is_shared, "label": self.label}


PLACEHOLDER = VoiceEntry(id="", name="")


class VoiceDirectory:
    """
    Args:
        client: Remote client used by ``refresh``.
        shared_voices: Returns the current shared voices; read on every
            rebuild so newly added aliases show up.
    """

    def __init__(self, client: ElevenLabsClient, shared_voices: Callable[[], Sequence[SharedVoice]]):
        self._client = client
        self._shared_voices = shared_voices
        self._entries: List[VoiceEntry] = [PLACEHOLDER]

    @property
    def entries(self) -> List[VoiceEntry]:
        return list(self._entries)

    def refresh(self, api_key: str) -> bool:
        """
        Fetch the account's voices and rebuild the list.

        Does nothing without an API key. A failed fetch is logged and the
        current list is kept.

        Returns:
            True if the list was rebuilt.
        """
        if not api_key:
            return False
        try:
            remote = self._client.list_voices(api_key)
        except RemoteError as e:
            warn(_LOG, "voices_fetch_failed", error=e.message, status_code=e.status_code)
            return False
        self.rebuild(remote)
        return True

    def rebuild(self, remote: Sequence[RemoteVoice] = ()) -> List[VoiceEntry]:
        entries = [PLACEHOLDER]
        entries.extend(VoiceEntry(id=v.voice_id, name=v.name) for v in remote)
        entries.extend(VoiceEntry(id=v.id, name=v.name, is_shared=True) for v in self._shared_voices())
        self._entries = entries
        info(_LOG, "voices_listed", remote=len(remote), total=len(entries) - 1)
        return self.entries
