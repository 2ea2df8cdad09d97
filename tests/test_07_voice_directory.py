"""Tests for the selectable voice list."""
from __future__ import annotations

import pytest

from voiceover.services.config_store import SharedVoice
from voiceover.services.voice_directory import PLACEHOLDER_LABEL, VoiceDirectory
from voiceover.tts.client import ElevenLabsClient


@pytest.fixture
def shared():
    return [SharedVoice(id="s-1", name="Narrator")]


@pytest.fixture
def directory(fake_api, shared):
    client = ElevenLabsClient(transport=fake_api.transport())
    yield VoiceDirectory(client, lambda: shared)
    client.close()


class TestRefresh:
    def test_empty_key_is_noop(self, directory, fake_api):
        """No key, no request, list unchanged."""
        before = directory.entries
        assert directory.refresh("") is False
        assert fake_api.requests == []
        assert directory.entries == before

    def test_success_builds_full_list(self, directory):
        """Placeholder, then account voices, then shared voices."""
        assert directory.refresh("sk_test") is True
        labels = [e.label for e in directory.entries]
        assert labels == [PLACEHOLDER_LABEL, "Rachel", "Adam", "Narrator (Shared)"]
        assert directory.entries[0].id == ""
        assert [e.is_shared for e in directory.entries] == [False, False, False, True]

    def test_failure_keeps_list(self, directory, fake_api):
        """A failed fetch is swallowed and the previous list stays."""
        directory.refresh("sk_test")
        before = [e.label for e in directory.entries]

        fake_api.voices_status = 401
        assert directory.refresh("sk_test") is False
        assert [e.label for e in directory.entries] == before

    def test_transport_failure_swallowed(self, directory, fake_api):
        fake_api.transport_error = True
        assert directory.refresh("sk_test") is False
        assert [e.label for e in directory.entries] == [PLACEHOLDER_LABEL]


class TestRebuild:
    def test_rebuild_without_remote(self, directory, shared):
        """After adding a shared voice the list is rebuilt with no account voices."""
        directory.refresh("sk_test")
        shared.append(SharedVoice(id="s-2", name="Kid"))

        entries = directory.rebuild()

        assert [e.label for e in entries] == [PLACEHOLDER_LABEL, "Narrator (Shared)", "Kid (Shared)"]

    def test_no_dedup_by_id(self, fake_api, shared):
        """A shared alias of an account voice is listed twice."""
        shared.append(SharedVoice(id="v-rachel", name="Rachel"))
        client = ElevenLabsClient(transport=fake_api.transport())
        directory = VoiceDirectory(client, lambda: shared)
        directory.refresh("sk_test")
        client.close()

        ids = [e.id for e in directory.entries]
        assert ids.count("v-rachel") == 2
