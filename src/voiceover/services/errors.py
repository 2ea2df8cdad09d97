"""
Error types for voiceover.

Two kinds of failure exist:

    ValidationError - the user asked for something that cannot run yet
        (no API key, no voice, empty text, incomplete shared voice).
        Always shown to the user; aborts only the triggering action.

    RemoteError - the text-to-speech service answered with a non-success
        status or could not be reached. How it is handled depends on the
        caller: the voice directory logs and swallows it, the pipeline turns
        it into a per-variant error, reset shows it and stops.

Both carry a machine-readable code and render to the same error body the
HTTP layer returns.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    API_KEY_REQUIRED = "API_KEY_REQUIRED"
    VOICE_REQUIRED = "VOICE_REQUIRED"
    TEXT_REQUIRED = "TEXT_REQUIRED"
    SHARED_VOICE_INCOMPLETE = "SHARED_VOICE_INCOMPLETE"
    INVALID_SETTING = "INVALID_SETTING"
    RESET_DECLINED = "RESET_DECLINED"
    REMOTE_FAILED = "REMOTE_FAILED"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class VoiceoverError(Exception):
    """
    Base exception with a code and optional details.

    Attributes:
        message: Human-readable message, safe to show to the user.
        code: One of the ErrorCode values.
        details: Extra context for logs and API responses.
    """

    def __init__(self, message: str, code: str = ErrorCode.INTERNAL_ERROR, details: Optional[Dict] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "ok": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(VoiceoverError):
    """Raised when an action's preconditions are not met."""

    def __init__(self, message: str, code: str, details: Optional[Dict] = None):
        super().__init__(message, code, details)


class RemoteError(VoiceoverError):
    """
    Raised when a call to the text-to-speech service fails.

    ``status_code`` is None for transport failures (DNS, refused
    connection, timeout) where no HTTP response exists.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Dict] = None):
        self.status_code = status_code
        merged = dict(details or {})
        if status_code is not None:
            merged.setdefault("status_code", status_code)
        super().__init__(message, ErrorCode.REMOTE_FAILED, merged)
