"""
Application state.

Everything the CLI and the HTTP API need is built once here and handed to
them; no component reaches for a module-level singleton.

Startup order:
    1. Load the user configuration from the state file
    2. Show shared voices, then fetch the account's voices if a key is set
    3. Replay the stored history into the sink
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

from voiceover.core.config import AppConfig, Settings
from voiceover.core.logging import error, get_logger, info, set_run_id, success
from voiceover.core.state import JsonFileStore, KeyValueStore
from voiceover.services.config_store import ConfigStore, Configuration, SharedVoice
from voiceover.services.errors import RemoteError
from voiceover.services.events import RecordingSink, RenderSink
from voiceover.services.history import HistoryEntry, HistoryStore
from voiceover.services.pipeline import GenerationPipeline, GenerationReport
from voiceover.services.voice_directory import VoiceDirectory, VoiceEntry
from voiceover.tts.audio_store import AudioStore
from voiceover.tts.client import ElevenLabsClient

_LOG = get_logger("voiceover.app")

RESET_WARNING = (
    "Are you sure you want to reset? This will:\n"
    "- Delete all voiceovers\n"
    "- Clear the audio cache\n"
    "- Reset the API key\n"
    "\n"
    "Shared voice data will be preserved."
)
RESET_DONE = "Reset completed successfully."
RESET_CANCELLED = "Reset cancelled."


@dataclass
class ResetOutcome:
    """
    What reset did.

    Attributes:
        ok: True only if everything was cleared.
        message: Text to show the user.
        cancelled: The confirmation was declined; nothing happened.
        error: The remote failure that stopped the reset, if any.
    """
    ok: bool
    message: str
    cancelled: bool = False
    error: Optional[RemoteError] = None


class VoiceoverApp:
    def __init__(
        self,
        config: AppConfig,
        store: KeyValueStore,
        client: ElevenLabsClient,
        audio: AudioStore,
        sink: RenderSink,
    ):
        self.config = config
        self.store = store
        self.client = client
        self.audio = audio
        self.sink = sink

        self.config_store = ConfigStore(store)
        self.directory = VoiceDirectory(client, lambda: self.config_store.config.shared_voices)
        self.config_store.on_api_key_change = self.directory.refresh
        self.history = HistoryStore(store)
        self.pipeline = GenerationPipeline(
            self.config_store,
            client,
            audio,
            self.history,
            sink,
            generation=config.generation,
            text_preview_chars=config.logging.text_preview_chars,
        )
        self._started = False

    @property
    def configuration(self) -> Configuration:
        return self.config_store.config

    def startup(self, refresh_voices: bool = True, replay: bool = True) -> "VoiceoverApp":
        """
        Load configuration, list voices and replay history. Runs once.

        The CLI skips the voice fetch and the replay unless it needs them.
        """
        if self._started:
            return self
        config = self.config_store.load()
        self.directory.rebuild()
        if refresh_voices:
            self.directory.refresh(config.api_key)
        replayed = self.history.replay(self.sink) if replay else 0
        self._started = True
        info(_LOG, "startup", history_entries=replayed, voices=len(self.directory.entries) - 1)
        return self

    def close(self) -> None:
        self.client.close()

    # =========================================================================
    # User actions
    # =========================================================================

    def update_settings(self, **partial: Any) -> Configuration:
        return self.config_store.update(**partial)

    def add_shared_voice(self, name: Optional[str], voice_id: Optional[str]) -> SharedVoice:
        voice = self.config_store.add_shared_voice(name, voice_id)
        self.directory.rebuild()
        return voice

    def voices(self) -> List[VoiceEntry]:
        return self.directory.entries

    def generate(self, text: Optional[str], selected_voice: Optional[str] = None) -> GenerationReport:
        return self.pipeline.generate(text, selected_voice=selected_voice)

    def history_entries(self) -> List[HistoryEntry]:
        return self.history.load_all()

    def reset(self, confirm: Callable[[str], bool]) -> ResetOutcome:
        """
        Delete remote history, then clear local audio, history and API key.

        ``confirm`` receives the warning text and decides whether to go on.
        If the remote call fails nothing local is touched.
        """
        if not confirm(RESET_WARNING):
            info(_LOG, "reset_cancelled")
            return ResetOutcome(ok=False, message=RESET_CANCELLED, cancelled=True)

        set_run_id("reset")
        api_key = self.config_store.config.api_key
        if api_key:
            try:
                self.client.delete_history(api_key)
            except RemoteError as e:
                error(_LOG, "reset_failed", error=e.message, status_code=e.status_code)
                return ResetOutcome(ok=False, message=f"Error during reset: {e.message}", error=e)

        self.audio.clear()
        self.history.clear()
        self.config_store.clear_api_key()
        self.sink.cleared()
        success(_LOG, "reset_done", remote=bool(api_key))
        return ResetOutcome(ok=True, message=RESET_DONE)

    def health(self) -> Dict[str, Any]:
        config = self.configuration
        return {
            "ok": True,
            "api_key_set": bool(config.api_key),
            "voice_id": config.voice_id or None,
            "voices": len(self.directory.entries) - 1,
            "history_entries": len(self.history.load_all()),
            "audio": self.audio.get_storage_info(),
        }


def build_app(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    transport: Optional[httpx.BaseTransport] = None,
    sink: Optional[RenderSink] = None,
    start: bool = True,
) -> VoiceoverApp:
    """
    Construct the application from settings.

    Args:
        settings: Loaded settings; defaults apply when None.
        store: Key-value store; a JsonFileStore under the state directory
            when None.
        transport: httpx transport for the remote client (tests).
        sink: Rendering sink; a RecordingSink when None.
        start: Run startup() before returning.
    """
    config = (settings or Settings(raw={})).get_app_config()
    app = VoiceoverApp(
        config=config,
        store=store if store is not None else JsonFileStore(config.storage.state_path),
        client=ElevenLabsClient(config.remote, transport=transport),
        audio=AudioStore(config.storage.state_dir, config.storage.audio_subdir),
        sink=sink if sink is not None else RecordingSink(),
    )
    return app.startup() if start else app
