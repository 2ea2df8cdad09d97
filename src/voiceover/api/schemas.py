"""
API Request/Response Schemas.

Request bodies are deliberately lenient about emptiness: an empty text or
a half-filled shared voice reaches the service layer, which answers with
the same error codes and messages the CLI shows.

Example Request (POST /v1/generate):
    {
        "text": "আমি ভাত খাই। তুমি কী খাও?",
        "voice_id": null
    }
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

MAX_TEXT_CHARS = 20000


class SettingsUpdate(BaseModel):
    """Partial settings update; omitted or null fields are left unchanged."""
    api_key: Optional[str] = Field(default=None, description="ElevenLabs API key")
    voice_id: Optional[str] = Field(default=None, description="Voice used when none is selected")
    stability: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    similarity_boost: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class SettingsView(BaseModel):
    api_key: str = Field(description="Masked API key")
    api_key_set: bool
    voice_id: str
    stability: float
    similarity_boost: float
    shared_voices: List[Dict[str, str]]


class SharedVoiceRequest(BaseModel):
    name: str = ""
    voice_id: str = ""


class VoiceView(BaseModel):
    id: str
    name: str
    is_shared: bool
    label: str


class GenerateRequest(BaseModel):
    text: str = Field(default="", max_length=MAX_TEXT_CHARS)
    voice_id: Optional[str] = Field(
        default=None,
        description="Voice picked from the list; the stored voice id is used when empty",
    )


class GenerateResponse(BaseModel):
    ok: bool = True
    report: Dict[str, Any]
    history: List[Dict[str, Any]]
    events: List[Dict[str, Any]]


class ResetRequest(BaseModel):
    confirm: bool = Field(default=False, description="Must be true; reset cannot be undone")


class ResetResponse(BaseModel):
    ok: bool
    message: str
