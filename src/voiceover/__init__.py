"""
voiceover: multi-take text-to-speech through the ElevenLabs API.

Input text is split into sentences on the Bengali danda "।", and every
sentence is synthesized several times so the best take can be picked.
Takes are written to a local state directory together with a history of the
latest run, the user's API key, voice and voice settings, and any shared
voices saved under a name.

Two front ends drive the same application state:
    - ``voiceover`` command-line tool (cli.py)
    - local HTTP API (main.py, run with uvicorn)

Example Usage:
    >>> from voiceover.core.config import load_settings
    >>> from voiceover.services.app_state import build_app
    >>>
    >>> app = build_app(load_settings("config/settings.yaml", missing_ok=True))
    >>> app.update_settings(api_key="sk_...", voice_id="21m00Tcm4TlvDq8ikWAM")
    >>> report = app.generate("আমি ভাত খাই। তুমি কী খাও?")
    >>> [e.audio_urls for e in app.history_entries()]
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
