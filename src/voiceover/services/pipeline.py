"""
Generation Pipeline.

One run turns input text into several takes per sentence:

    1. Check API key and voice, then the text (nothing is touched if
       either check fails)
    2. Clear the sink, the audio cache and the stored history
    3. Split the text into chunks
    4. For each chunk, in order: request three variants one after another,
       keep the ones that succeed, append the chunk to history and
       persist it right away

A failed variant is reported to the sink and the run moves on. Nothing
a single variant does can abort the run, so a run always ends with a
history that reflects exactly the chunks that produced audio.

Example:
    >>> pipeline = GenerationPipeline(config_store, client, audio_store, history, sink)
    >>> report = pipeline.generate("আমি ভাত খাই। তুমি কী খাও?")
    >>> report.variants_ok
    6
"""
from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from voiceover.core.config import GenerationConfig
from voiceover.core.logging import debug, fail, get_logger, info, set_run_id, success, verbose, warn
from voiceover.services.config_store import ConfigStore
from voiceover.services.errors import RemoteError
from voiceover.services.events import RenderSink
from voiceover.services.history import HistoryEntry, HistoryStore
from voiceover.services.validators import validate_credentials, validate_text
from voiceover.tts.audio_store import AudioStore
from voiceover.tts.chunker import chunk_text
from voiceover.tts.client import ElevenLabsClient
from voiceover.utils.timeit import timeit

_LOG = get_logger("voiceover.pipeline")

VARIANTS_PER_CHUNK = 3


@dataclass
class GenerationReport:
    """
    Summary of one run.

    Everything here can also be observed through the sink and the history
    store; the report only saves callers from counting.
    """
    run_id: str
    chunks: int
    chunks_with_audio: int
    variants_ok: int
    variants_failed: int
    seconds: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class GenerationPipeline:
    def __init__(
        self,
        config_store: ConfigStore,
        client: ElevenLabsClient,
        audio_store: AudioStore,
        history: HistoryStore,
        sink: RenderSink,
        generation: Optional[GenerationConfig] = None,
        text_preview_chars: int = 60,
    ):
        self._config_store = config_store
        self._client = client
        self._audio = audio_store
        self._history = history
        self.sink = sink
        self._generation = generation or GenerationConfig()
        self._text_preview_chars = text_preview_chars

    def _preview(self, text: str) -> str:
        return text[: self._text_preview_chars] if self._text_preview_chars > 0 else ""

    def generate(self, text: Optional[str], selected_voice: Optional[str] = None) -> GenerationReport:
        """
        Run the pipeline over ``text``.

        Args:
            text: Raw input; split on the configured delimiter.
            selected_voice: Voice picked from the directory; falls back to
                the stored voice id when empty.

        Raises:
            ValidationError: Missing API key or voice, or empty text. Raised
                before any state is cleared or any request is made.
        """
        config = self._config_store.config
        api_key, voice_id = validate_credentials(
            config.api_key, self._config_store.resolve_voice_id(selected_voice)
        )
        cleaned = validate_text(text)

        run_id = uuid.uuid4().hex[:12]
        set_run_id(run_id)
        info(_LOG, "run_started", chars=len(cleaned), voice_id=voice_id, text_preview=self._preview(cleaned))

        self.sink.cleared()
        self._audio.clear()
        self._history.clear()

        ok = failed = with_audio = 0
        with timeit("run") as total:
            chunks = chunk_text(cleaned, self._generation.delimiter).chunks

            for index, chunk in enumerate(chunks, start=1):
                handle = self.sink.chunk_started(chunk)
                verbose(_LOG, "chunk_started", chunk=index, of=len(chunks), text_preview=self._preview(chunk))

                references = []
                for _ in range(VARIANTS_PER_CHUNK):
                    reference = self.generate_one(chunk, handle, api_key=api_key, voice_id=voice_id)
                    if reference is None:
                        failed += 1
                    else:
                        ok += 1
                        references.append(reference)

                if references:
                    with_audio += 1
                    self._history.append(HistoryEntry(text=chunk, audio_urls=references))
                else:
                    warn(_LOG, "chunk_without_audio", chunk=index)

        report = GenerationReport(
            run_id=run_id,
            chunks=len(chunks),
            chunks_with_audio=with_audio,
            variants_ok=ok,
            variants_failed=failed,
            seconds=round(total.seconds, 3),
        )
        if failed and not ok:
            fail(_LOG, "run_done", **report.to_dict())
        else:
            success(_LOG, "run_done", **report.to_dict())
        return report

    def generate_one(
        self,
        text: str,
        chunk: Any,
        api_key: Optional[str] = None,
        voice_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Request one variant of ``text`` and report it against ``chunk``.

        Credentials default to the current configuration.

        Returns:
            The audio reference, or None if the variant failed.
        """
        config = self._config_store.config
        api_key = api_key or config.api_key
        voice_id = voice_id or self._config_store.resolve_voice_id()

        self.sink.variant_pending(chunk)
        try:
            with timeit("variant") as t:
                payload = self._client.synthesize(
                    api_key,
                    voice_id,
                    text,
                    stability=config.stability,
                    similarity_boost=config.similarity_boost,
                )
                reference = self._audio.materialize(
                    payload,
                    text=text,
                    voice_id=voice_id,
                    stability=config.stability,
                    similarity_boost=config.similarity_boost,
                )
        except RemoteError as e:
            warn(_LOG, "variant_failed", error=e.message, status_code=e.status_code)
            self.sink.variant_error(chunk, e.message)
            return None
        except OSError as e:
            warn(_LOG, "variant_failed", error=str(e), error_type=type(e).__name__)
            self.sink.variant_error(chunk, str(e))
            return None

        debug(_LOG, "variant_ready", reference=reference, seconds=round(t.seconds, 3))
        self.sink.variant_ready(chunk, reference)
        return reference
