"""
voiceover services layer.

Sits between the front ends (CLI, HTTP API) and the building blocks in
``voiceover.tts``:
    - config_store.py: user configuration (API key, voice, shared voices)
    - voice_directory.py: selectable voice list
    - history.py: history of the latest run
    - pipeline.py: the generation run
    - app_state.py: wiring, startup and reset
    - events.py: rendering sink protocol and implementations
    - errors.py / validators.py: error types and precondition checks
"""
from .errors import ErrorCode, RemoteError, ValidationError, VoiceoverError

__all__ = [
    "ErrorCode",
    "VoiceoverError",
    "ValidationError",
    "RemoteError",
]
