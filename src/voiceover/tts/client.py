"""
ElevenLabs REST Client.

Three endpoints are used, all authenticated with the ``xi-api-key`` header:

    GET    /v1/voices                      list voices available to the key
    POST   /v1/text-to-speech/{voice_id}   synthesize text, returns audio/mpeg
    DELETE /v1/history                     clear the account's generation history

Every non-success status and every transport failure becomes a RemoteError.
What to do with it is the caller's business.

Calls are synchronous and the client never issues two at once. There is no
retry: one attempt per call.

Example:
    >>> with ElevenLabsClient() as client:
    ...     voices = client.list_voices(api_key)
    ...     audio = client.synthesize(api_key, voices[0].voice_id, "নমস্কার")
"""
from __future__ import annotations

from typing import List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from voiceover.core.config import Defaults, RemoteConfig
from voiceover.core.logging import debug, get_logger, verbose
from voiceover.services.errors import RemoteError
from voiceover.utils.timeit import timeit

_LOG = get_logger("voiceover.client")

API_KEY_HEADER = "xi-api-key"


class RemoteVoice(BaseModel):
    """One voice as returned by GET /v1/voices (unknown fields ignored)."""
    model_config = ConfigDict(extra="ignore")

    voice_id: str
    name: str


class VoicesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    voices: List[RemoteVoice] = Field(default_factory=list)


class VoiceSettings(BaseModel):
    stability: float = Field(..., ge=0.0, le=1.0)
    similarity_boost: float = Field(..., ge=0.0, le=1.0)


class SynthesisBody(BaseModel):
    """JSON body of POST /v1/text-to-speech/{voice_id}."""
    text: str
    voice_settings: VoiceSettings


class ElevenLabsClient:
    """
    Thin synchronous wrapper around ``httpx.Client``.

    Args:
        config: Base URL, timeout and audio media type.
        transport: Optional httpx transport (tests pass an
            ``httpx.MockTransport`` here).
    """

    def __init__(
        self,
        config: Optional[RemoteConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._config = config or RemoteConfig()
        self._http = httpx.Client(
            base_url=self._config.base_url,
            timeout=self._config.timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ElevenLabsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # =========================================================================
    # Endpoints
    # =========================================================================

    def list_voices(self, api_key: str) -> List[RemoteVoice]:
        """GET /v1/voices."""
        response = self._send("GET", "/v1/voices", api_key, failure="Failed to fetch voices")
        try:
            parsed = VoicesResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise RemoteError("Failed to fetch voices: malformed response", response.status_code) from e
        verbose(_LOG, "voices_fetched", count=len(parsed.voices))
        return parsed.voices

    def synthesize(
        self,
        api_key: str,
        voice_id: str,
        text: str,
        stability: float = Defaults.VOICE_STABILITY,
        similarity_boost: float = Defaults.VOICE_SIMILARITY_BOOST,
    ) -> bytes:
        """POST /v1/text-to-speech/{voice_id}; returns the raw audio payload."""
        body = SynthesisBody(
            text=text,
            voice_settings=VoiceSettings(stability=stability, similarity_boost=similarity_boost),
        )
        response = self._send(
            "POST",
            f"/v1/text-to-speech/{voice_id}",
            api_key,
            failure="API request failed",
            json=body.model_dump(),
            headers={"Accept": self._config.audio_media_type},
        )
        audio = response.content
        debug(_LOG, "audio_received", bytes=len(audio), content_type=response.headers.get("content-type"))
        return audio

    def delete_history(self, api_key: str) -> None:
        """DELETE /v1/history."""
        self._send("DELETE", "/v1/history", api_key, failure="Failed to reset voiceovers")

    # =========================================================================
    # Plumbing
    # =========================================================================

    def _send(
        self,
        method: str,
        path: str,
        api_key: str,
        failure: str,
        json: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> httpx.Response:
        request_headers = {API_KEY_HEADER: api_key}
        if headers:
            request_headers.update(headers)

        with timeit("remote") as t:
            try:
                response = self._http.request(method, path, json=json, headers=request_headers)
            except httpx.HTTPError as e:
                raise RemoteError(f"{failure}: {e}") from e

        verbose(_LOG, "remote_call", method=method, path=path, status_code=response.status_code,
                seconds=round(t.seconds, 3))

        if not response.is_success:
            raise RemoteError(f"{failure} (HTTP {response.status_code})", response.status_code)
        return response
