"""
Shared fixtures.

FakeElevenLabs stands in for api.elevenlabs.io behind an
httpx.MockTransport, records every request and can be told to fail.
"""
from __future__ import annotations

import json
from typing import Dict, List, Optional

import httpx
import pytest

from voiceover.core.config import Settings
from voiceover.core.state import MemoryStore
from voiceover.services.app_state import build_app
from voiceover.services.events import RecordingSink


class FakeElevenLabs:
    """
    Minimal fake of the three endpoints the client uses.

    Attributes:
        voices: Returned by GET /v1/voices.
        synth_statuses: Status codes for successive synthesis calls; once
            exhausted every call succeeds.
        voices_status / delete_status: Status for those endpoints.
        transport_error: Raise a connection error for every request.
        requests: Every request received, in order.
    """

    def __init__(self) -> None:
        self.voices: List[Dict[str, str]] = [
            {"voice_id": "v-rachel", "name": "Rachel", "category": "premade"},
            {"voice_id": "v-adam", "name": "Adam", "category": "premade"},
        ]
        self.synth_statuses: List[int] = []
        self.voices_status = 200
        self.delete_status = 200
        self.transport_error = False
        self.requests: List[httpx.Request] = []
        self._audio_counter = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.transport_error:
            raise httpx.ConnectError("connection refused", request=request)

        path = request.url.path
        if request.method == "GET" and path == "/v1/voices":
            if self.voices_status != 200:
                return httpx.Response(self.voices_status, json={"detail": "nope"})
            return httpx.Response(200, json={"voices": self.voices})

        if request.method == "POST" and path.startswith("/v1/text-to-speech/"):
            status = self.synth_statuses.pop(0) if self.synth_statuses else 200
            if status != 200:
                return httpx.Response(status, json={"detail": {"status": "quota_exceeded"}})
            self._audio_counter += 1
            audio = b"ID3" + f"clip-{self._audio_counter}".encode("ascii")
            return httpx.Response(200, content=audio, headers={"content-type": "audio/mpeg"})

        if request.method == "DELETE" and path == "/v1/history":
            return httpx.Response(self.delete_status)

        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def calls(self, method: Optional[str] = None, prefix: str = "") -> List[httpx.Request]:
        return [
            r for r in self.requests
            if (method is None or r.method == method) and r.url.path.startswith(prefix)
        ]

    def synth_calls(self) -> List[httpx.Request]:
        return self.calls("POST", "/v1/text-to-speech/")

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content.decode("utf-8"))


@pytest.fixture
def fake_api() -> FakeElevenLabs:
    return FakeElevenLabs()


@pytest.fixture
def state_dir(tmp_path):
    return tmp_path / "state"


@pytest.fixture
def settings(state_dir) -> Settings:
    return Settings(raw={"storage": {"state_dir": str(state_dir)}})


@pytest.fixture
def make_app(settings, fake_api):
    """Factory: build (and start) an app over the fake API."""
    built = []

    def _make(store=None, sink=None, start=True, **initial):
        if store is None:
            store = MemoryStore(initial or None)
        app = build_app(
            settings,
            store=store,
            transport=fake_api.transport(),
            sink=sink if sink is not None else RecordingSink(),
            start=start,
        )
        built.append(app)
        return app

    yield _make
    for app in built:
        app.close()


@pytest.fixture
def ready_app(make_app):
    """App with an API key and a voice id already stored."""
    return make_app(apiKey="sk_test", voiceId="v-rachel")
