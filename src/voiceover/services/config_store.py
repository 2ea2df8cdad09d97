"""
User configuration: API key, voice, voice settings and shared voices.

Loaded once from the key-value store at startup. Every mutation writes all
fields back, scalars as text and shared voices as a JSON array of
``{"id", "name"}`` objects.

Loading never fails. A missing or unparsable stability falls back to 0.5,
a missing or unparsable similarity boost to 0.7, and unparsable shared
voices to an empty list.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from voiceover.core.config import Defaults
from voiceover.core.logging import get_logger, info, verbose, warn
from voiceover.core.state import KeyValueStore, StateKey
from voiceover.services.errors import ErrorCode, ValidationError
from voiceover.services.validators import validate_shared_voice

_LOG = get_logger("voiceover.config")

UPDATABLE_FIELDS = ("api_key", "voice_id", "stability", "similarity_boost")


@dataclass
class SharedVoice:
    """A voice id saved under a name of the user's choosing."""
    id: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}


@dataclass
class Configuration:
    api_key: str = ""
    voice_id: str = ""
    stability: float = Defaults.VOICE_STABILITY
    similarity_boost: float = Defaults.VOICE_SIMILARITY_BOOST
    shared_voices: List[SharedVoice] = field(default_factory=list)

    def to_public_dict(self) -> Dict[str, Any]:
        """Same fields with the API key masked."""
        return {
            "api_key": mask_api_key(self.api_key),
            "api_key_set": bool(self.api_key),
            "voice_id": self.voice_id,
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
            "shared_voices": [v.to_dict() for v in self.shared_voices],
        }


def mask_api_key(api_key: str) -> str:
    if not api_key:
        return ""
    if len(api_key) <= 4:
        return "*" * len(api_key)
    return "*" * 8 + api_key[-4:]


def parse_unit_float(raw: Optional[str], default: float) -> float:
    """Parse a stored value in [0, 1]; anything else yields ``default``."""
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        return default
    return value


def parse_shared_voices(raw: Optional[str]) -> List[SharedVoice]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        warn(_LOG, "shared_voices_unparsable")
        return []
    if not isinstance(data, list):
        return []
    voices = []
    for item in data:
        if isinstance(item, dict) and item.get("id") and item.get("name"):
            voices.append(SharedVoice(id=str(item["id"]), name=str(item["name"])))
    return voices


class ConfigStore:
    """
    Owns the in-memory Configuration and keeps the key-value store in sync.

    Args:
        store: Durable key-value storage.
        on_api_key_change: Called with the new key whenever ``update``
            changes the API key; the application wires the voice
            directory refresh here.
    """

    def __init__(
        self,
        store: KeyValueStore,
        on_api_key_change: Optional[Callable[[str], None]] = None,
    ):
        self._store = store
        self._config = Configuration()
        self.on_api_key_change = on_api_key_change

    @property
    def config(self) -> Configuration:
        return self._config

    def load(self) -> Configuration:
        self._config = Configuration(
            api_key=self._store.get(StateKey.API_KEY) or "",
            voice_id=self._store.get(StateKey.VOICE_ID) or "",
            stability=parse_unit_float(self._store.get(StateKey.STABILITY), Defaults.VOICE_STABILITY),
            similarity_boost=parse_unit_float(
                self._store.get(StateKey.SIMILARITY_BOOST), Defaults.VOICE_SIMILARITY_BOOST
            ),
            shared_voices=parse_shared_voices(self._store.get(StateKey.SHARED_VOICES)),
        )
        verbose(
            _LOG, "config_loaded",
            api_key_set=bool(self._config.api_key),
            voice_id=self._config.voice_id or None,
            shared_voices=len(self._config.shared_voices),
        )
        return self._config

    def _persist(self) -> None:
        c = self._config
        self._store.set(StateKey.API_KEY, c.api_key)
        self._store.set(StateKey.VOICE_ID, c.voice_id)
        self._store.set(StateKey.STABILITY, str(c.stability))
        self._store.set(StateKey.SIMILARITY_BOOST, str(c.similarity_boost))
        self._store.set(StateKey.SHARED_VOICES, json.dumps([v.to_dict() for v in c.shared_voices]))

    def update(self, **partial: Any) -> Configuration:
        """
        Merge ``partial`` into the configuration and persist every field.

        Accepted fields: api_key, voice_id, stability, similarity_boost.

        Raises:
            ValidationError: Unknown field, or a voice setting that is not
                a number in [0, 1].
        """
        unknown = sorted(set(partial) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError(
                f"Unknown setting: {', '.join(unknown)}",
                ErrorCode.INVALID_SETTING,
                details={"allowed": list(UPDATABLE_FIELDS)},
            )

        changes: Dict[str, Any] = {}
        for name in ("api_key", "voice_id"):
            if name in partial and partial[name] is not None:
                changes[name] = str(partial[name]).strip()
        for name in ("stability", "similarity_boost"):
            if name in partial and partial[name] is not None:
                changes[name] = self._coerce_unit(name, partial[name])

        previous_key = self._store.get(StateKey.API_KEY) or ""
        self._config = replace(self._config, **changes)
        self._persist()
        info(_LOG, "config_updated", fields=sorted(changes))

        if self._config.api_key != previous_key and self.on_api_key_change is not None:
            self.on_api_key_change(self._config.api_key)
        return self._config

    @staticmethod
    def _coerce_unit(name: str, value: Any) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = float("nan")
        if math.isnan(number) or not 0.0 <= number <= 1.0:
            raise ValidationError(
                f"{name} must be a number between 0 and 1",
                ErrorCode.INVALID_SETTING,
                details={"field": name, "value": str(value)},
            )
        return number

    def add_shared_voice(self, name: Optional[str], voice_id: Optional[str]) -> SharedVoice:
        """
        Save ``voice_id`` under ``name``.

        Raises:
            ValidationError: If either is empty after trimming.
        """
        name, voice_id = validate_shared_voice(name, voice_id)
        voice = SharedVoice(id=voice_id, name=name)
        self._config.shared_voices.append(voice)
        self._persist()
        info(_LOG, "shared_voice_added", name=name, voice_id=voice_id)
        return voice

    def clear_api_key(self) -> None:
        """Forget the API key; everything else is kept."""
        self._config.api_key = ""
        self._store.delete(StateKey.API_KEY)
        verbose(_LOG, "api_key_cleared")

    def resolve_voice_id(self, selected: Optional[str] = None) -> str:
        """A non-empty directory selection wins over the stored voice id."""
        return (selected or "").strip() or self._config.voice_id
