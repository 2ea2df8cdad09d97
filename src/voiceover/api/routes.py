"""
voiceover API Routes.

Endpoints:
    GET  /health              - liveness and a few counts
    GET  /v1/settings         - current configuration (API key masked)
    PUT  /v1/settings         - partial update
    GET  /v1/voices           - selectable voice list (?refresh=true refetches)
    POST /v1/voices/shared    - save a voice id under a name
    POST /v1/generate         - run the pipeline
    GET  /v1/history          - history of the latest run
    POST /v1/reset            - reset; body {"confirm": true}
    GET  /v1/audio/{key}      - download a generated clip

Error Handling:
    Errors are returned as JSON in one format:
    {
        "ok": false,
        "error": "<ERROR_CODE>",
        "message": "<human readable message>"
    }

    Status codes:
        - ValidationError -> 400 Bad Request
        - RemoteError -> 502 Bad Gateway
        - anything else -> 500 Internal Server Error
"""
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from voiceover.api.dependencies import action_lock, get_app
from voiceover.api.schemas import (
    GenerateRequest,
    GenerateResponse,
    ResetRequest,
    ResetResponse,
    SettingsUpdate,
    SettingsView,
    SharedVoiceRequest,
    VoiceView,
)
from voiceover.core.logging import fail, get_logger
from voiceover.services.app_state import VoiceoverApp
from voiceover.services.errors import ErrorCode, RemoteError, ValidationError, VoiceoverError
from voiceover.services.events import RecordingSink
from voiceover.tts.audio_store import AUDIO_SUFFIX

router = APIRouter()

_LOG = get_logger("voiceover.api")


def _error_response(error: VoiceoverError) -> JSONResponse:
    if isinstance(error, ValidationError):
        status_code = 400
    elif isinstance(error, RemoteError):
        status_code = 502
    else:
        status_code = 500
    return JSONResponse(status_code=status_code, content=error.to_dict())


def _internal_error(e: Exception) -> JSONResponse:
    fail(_LOG, "request_failed", error=str(e), error_type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": ErrorCode.INTERNAL_ERROR, "message": "Internal server error"},
    )


def _drain_events(app: VoiceoverApp) -> List[Dict[str, Any]]:
    if isinstance(app.sink, RecordingSink):
        return app.sink.drain()
    return []


@router.get("/health")
def health(app: VoiceoverApp = Depends(get_app)):
    return app.health()


@router.get("/v1/settings", response_model=SettingsView)
def get_settings_view(app: VoiceoverApp = Depends(get_app)):
    return app.configuration.to_public_dict()


@router.put("/v1/settings", response_model=SettingsView)
def update_settings(req: SettingsUpdate, app: VoiceoverApp = Depends(get_app)):
    try:
        with action_lock:
            config = app.update_settings(**req.model_dump(exclude_none=True))
    except VoiceoverError as e:
        return _error_response(e)
    return config.to_public_dict()


@router.get("/v1/voices", response_model=List[VoiceView])
def list_voices(refresh: bool = False, app: VoiceoverApp = Depends(get_app)):
    if refresh:
        app.directory.refresh(app.configuration.api_key)
    return [v.to_dict() for v in app.voices()]


@router.post("/v1/voices/shared", response_model=List[VoiceView])
def add_shared_voice(req: SharedVoiceRequest, app: VoiceoverApp = Depends(get_app)):
    try:
        with action_lock:
            app.add_shared_voice(req.name, req.voice_id)
    except VoiceoverError as e:
        return _error_response(e)
    return [v.to_dict() for v in app.voices()]


@router.post("/v1/generate", response_model=GenerateResponse)
def generate(req: GenerateRequest, app: VoiceoverApp = Depends(get_app)):
    """
    Run one generation.

    Blocks until every variant of every chunk has settled. The response
    carries the run report, the resulting history and the sink events of
    this run in order.
    """
    try:
        with action_lock:
            _drain_events(app)
            report = app.generate(req.text, selected_voice=req.voice_id)
            events = _drain_events(app)
    except VoiceoverError as e:
        return _error_response(e)
    except Exception as e:
        return _internal_error(e)

    return {
        "ok": True,
        "report": report.to_dict(),
        "history": [entry.to_dict() for entry in app.history_entries()],
        "events": events,
    }


@router.get("/v1/history")
def history(app: VoiceoverApp = Depends(get_app)):
    return [entry.to_dict() for entry in app.history_entries()]


@router.post("/v1/reset", response_model=ResetResponse)
def reset(req: ResetRequest, app: VoiceoverApp = Depends(get_app)):
    with action_lock:
        outcome = app.reset(lambda _warning: req.confirm)

    if outcome.cancelled:
        return JSONResponse(
            status_code=400,
            content={"ok": False, "error": ErrorCode.RESET_DECLINED, "message": outcome.message},
        )
    if outcome.error is not None:
        body = outcome.error.to_dict()
        body["message"] = outcome.message
        return JSONResponse(status_code=502, content=body)
    return {"ok": True, "message": outcome.message}


@router.get("/v1/audio/{key}")
def audio(key: str, app: VoiceoverApp = Depends(get_app)):
    if key.endswith(AUDIO_SUFFIX):
        key = key[: -len(AUDIO_SUFFIX)]
    data = app.audio.load(key)
    if data is None:
        return JSONResponse(
            status_code=404,
            content={"ok": False, "error": ErrorCode.NOT_FOUND, "message": "Audio not found"},
        )
    return Response(
        content=data,
        media_type=app.config.remote.audio_media_type,
        headers={"Content-Disposition": f'attachment; filename="voiceover-{key[:8]}{AUDIO_SUFFIX}"'},
    )
