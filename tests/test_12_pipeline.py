"""
Tests for the generation pipeline.

Tests cover:
- Validation gate (no key, no voice, no text): no requests, nothing cleared
- Per-chunk variant count and history entries
- History replaced on every run
- Failed variants reported and skipped
- Event order seen by the sink
- Request parameters (voice, voice settings, API key)
"""
from __future__ import annotations

import pytest

from voiceover.core.state import MemoryStore
from voiceover.services.errors import ErrorCode, ValidationError
from voiceover.services.history import HistoryEntry, HistoryStore
from voiceover.tts.audio_store import key_from_reference


class TestValidationGate:
    """Nothing happens when generation cannot start."""

    def test_no_api_key(self, make_app, fake_api):
        """generate() without a key makes zero requests and leaves history alone."""
        store = MemoryStore({"voiceId": "v-rachel"})
        HistoryStore(store).replace_all([HistoryEntry("old", ["audio/x.mp3"])])
        app = make_app(store=store)

        with pytest.raises(ValidationError) as exc_info:
            app.generate("hello")

        assert exc_info.value.code == ErrorCode.API_KEY_REQUIRED
        assert exc_info.value.message == "Please enter your ElevenLabs API key in settings."
        assert fake_api.requests == []
        assert [e.text for e in app.history_entries()] == ["old"]

    def test_no_voice(self, make_app, fake_api):
        app = make_app(apiKey="sk_test")
        fake_api.requests.clear()

        with pytest.raises(ValidationError) as exc_info:
            app.generate("hello")

        assert exc_info.value.code == ErrorCode.VOICE_REQUIRED
        assert fake_api.synth_calls() == []

    def test_selected_voice_satisfies_gate(self, make_app, fake_api):
        """A voice picked from the list is enough even with none stored."""
        app = make_app(apiKey="sk_test")
        app.generate("hello", selected_voice="v-adam")
        assert fake_api.synth_calls()[0].url.path == "/v1/text-to-speech/v-adam"

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_text(self, ready_app, fake_api, text):
        ready_app.history.replace_all([HistoryEntry("keep", ["r"])])
        sink_events_before = len(ready_app.sink.events)

        with pytest.raises(ValidationError) as exc_info:
            ready_app.generate(text)

        assert exc_info.value.code == ErrorCode.TEXT_REQUIRED
        assert fake_api.synth_calls() == []
        assert [e.text for e in ready_app.history_entries()] == ["keep"]
        assert len(ready_app.sink.events) == sink_events_before

    def test_key_checked_before_text(self, make_app):
        app = make_app()
        with pytest.raises(ValidationError) as exc_info:
            app.generate("")
        assert exc_info.value.code == ErrorCode.API_KEY_REQUIRED


class TestGenerate:
    """Tests for a successful run."""

    def test_three_variants_per_chunk(self, ready_app, fake_api):
        report = ready_app.generate("এক। দুই")

        assert len(fake_api.synth_calls()) == 6
        entries = ready_app.history_entries()
        assert [e.text for e in entries] == ["এক", "দুই"]
        assert all(len(e.audio_urls) == 3 for e in entries)
        assert report.chunks == 2
        assert report.variants_ok == 6
        assert report.variants_failed == 0

    def test_requests_are_in_chunk_order(self, ready_app, fake_api):
        ready_app.generate("a।b")
        texts = [fake_api.body(r)["text"] for r in fake_api.synth_calls()]
        assert texts == ["a", "a", "a", "b", "b", "b"]

    def test_request_uses_stored_settings(self, make_app, fake_api):
        app = make_app(apiKey="sk_live", voiceId="v-adam", stability="0.2", similarityBoost="0.95")
        app.generate("hi")

        request = fake_api.synth_calls()[0]
        assert request.url.path == "/v1/text-to-speech/v-adam"
        assert request.headers["xi-api-key"] == "sk_live"
        assert fake_api.body(request)["voice_settings"] == {"stability": 0.2, "similarity_boost": 0.95}

    def test_references_are_playable_files(self, ready_app, state_dir):
        ready_app.generate("hello")
        for ref in ready_app.history_entries()[0].audio_urls:
            assert (state_dir / ref).read_bytes().startswith(b"ID3")
            assert key_from_reference(ref) is not None

    def test_history_replaced_not_merged(self, ready_app):
        """Two runs leave only the second run's entries."""
        ready_app.generate("x।y")
        first = ready_app.history_entries()
        ready_app.generate("x।y")
        second = ready_app.history_entries()

        assert [e.text for e in second] == ["x", "y"]
        assert len(second) == 2
        first_refs = {r for e in first for r in e.audio_urls}
        second_refs = {r for e in second for r in e.audio_urls}
        assert first_refs.isdisjoint(second_refs)

    def test_previous_run_audio_removed(self, ready_app, state_dir):
        ready_app.generate("x")
        old = ready_app.history_entries()[0].audio_urls
        ready_app.generate("y")
        assert not any((state_dir / ref).exists() for ref in old)

    def test_history_persisted(self, make_app, settings, fake_api):
        store = MemoryStore({"apiKey": "sk", "voiceId": "v"})
        make_app(store=store).generate("a।b")
        assert [e.text for e in HistoryStore(store).load_all()] == ["a", "b"]


class TestVariantFailures:
    """A failed variant never aborts the run."""

    def test_partial_failure(self, ready_app, fake_api):
        fake_api.synth_statuses = [500, 200, 401]
        report = ready_app.generate("only")

        entries = ready_app.history_entries()
        assert len(entries) == 1
        assert len(entries[0].audio_urls) == 1
        assert report.variants_ok == 1
        assert report.variants_failed == 2

    def test_chunk_with_no_audio_is_skipped(self, ready_app, fake_api):
        """A chunk whose variants all fail gets no history entry; the run goes on."""
        fake_api.synth_statuses = [500, 500, 500]
        ready_app.generate("bad।good")

        entries = ready_app.history_entries()
        assert [e.text for e in entries] == ["good"]
        assert len(fake_api.synth_calls()) == 6

    def test_variant_counts_bounded(self, ready_app, fake_api):
        """Every history entry has between 1 and 3 references."""
        fake_api.synth_statuses = [500, 200, 500, 500, 500, 500, 200, 200, 200]
        ready_app.generate("a।b।c")
        entries = ready_app.history_entries()
        assert [e.text for e in entries] == ["a", "c"]
        assert all(1 <= len(e.audio_urls) <= 3 for e in entries)

    def test_transport_errors_are_variant_errors(self, ready_app, fake_api):
        fake_api.transport_error = True
        report = ready_app.generate("a")
        assert report.variants_failed == 3
        assert ready_app.history_entries() == []
        errors = [c for c in ready_app.sink.chunks[0].variants if c.status == "error"]
        assert len(errors) == 3


class TestSinkEvents:
    def test_event_order(self, ready_app, fake_api):
        fake_api.synth_statuses = [200, 503, 200]
        ready_app.sink.drain()

        ready_app.generate("a")

        assert ready_app.sink.event_types() == [
            "cleared",
            "chunk_started",
            "variant_pending", "variant_ready",
            "variant_pending", "variant_error",
            "variant_pending", "variant_ready",
        ]
        error = ready_app.sink.events[-3]
        assert error.message == "API request failed (HTTP 503)"

    def test_generate_one_returns_reference(self, ready_app):
        chunk = ready_app.sink.chunk_started("manual")
        ref = ready_app.pipeline.generate_one("manual", chunk)
        assert ref is not None
        assert ready_app.sink.chunks[chunk].variants[-1].reference == ref

    def test_generate_one_failure_returns_none(self, ready_app, fake_api):
        fake_api.synth_statuses = [500]
        chunk = ready_app.sink.chunk_started("manual")
        assert ready_app.pipeline.generate_one("manual", chunk) is None
        assert ready_app.sink.chunks[chunk].variants[-1].status == "error"


class TestVariantCount:
    def test_always_three_per_chunk(self, fake_api, state_dir):
        """A leftover variants_per_chunk key in settings.yaml changes nothing."""
        from voiceover.core.config import Settings
        from voiceover.services.app_state import build_app

        settings = Settings(raw={
            "storage": {"state_dir": str(state_dir)},
            "generation": {"variants_per_chunk": 5},
        })
        app = build_app(settings, store=MemoryStore({"apiKey": "k", "voiceId": "v"}),
                        transport=fake_api.transport())
        try:
            app.generate("a।b")
            entries = app.history_entries()
        finally:
            app.close()

        assert len(fake_api.synth_calls()) == 6
        assert [len(e.audio_urls) for e in entries] == [3, 3]
