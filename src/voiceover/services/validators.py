"""
Precondition checks for user actions.

Each function either returns the cleaned value or raises ValidationError with
the message shown to the user. The messages match what the settings panel
of the browser client used to say, so users see familiar wording.
"""
from __future__ import annotations

from typing import Optional, Tuple

from voiceover.services.errors import ErrorCode, ValidationError


def validate_credentials(api_key: Optional[str], voice_id: Optional[str]) -> Tuple[str, str]:
    """
    Require an API key and a resolved voice id.

    Returns:
        The (api_key, voice_id) pair.

    Raises:
        ValidationError: API_KEY_REQUIRED is checked before VOICE_REQUIRED.
    """
    if not api_key:
        raise ValidationError(
            "Please enter your ElevenLabs API key in settings.",
            ErrorCode.API_KEY_REQUIRED,
        )
    if not voice_id:
        raise ValidationError(
            "Please select a voice or enter a voice ID in settings.",
            ErrorCode.VOICE_REQUIRED,
        )
    return api_key, voice_id


def validate_text(text: Optional[str]) -> str:
    """Return the trimmed text, or raise TEXT_REQUIRED if nothing is left."""
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError(
            "Please enter some text to convert to speech.",
            ErrorCode.TEXT_REQUIRED,
        )
    return cleaned


def validate_shared_voice(name: Optional[str], voice_id: Optional[str]) -> Tuple[str, str]:
    """Both a display name and a voice id are needed to save an alias."""
    name = (name or "").strip()
    voice_id = (voice_id or "").strip()
    if not name or not voice_id:
        raise ValidationError(
            "Both name and voice ID are required",
            ErrorCode.SHARED_VOICE_INCOMPLETE,
            details={"name": bool(name), "voice_id": bool(voice_id)},
        )
    return name, voice_id
