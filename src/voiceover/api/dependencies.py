"""
FastAPI dependency providers.

The application state is built once, on first use, from the settings file
named by VOICEOVER_SETTINGS (default: config/settings.yaml; defaults apply
when it does not exist).

Tests replace ``get_app`` through ``app.dependency_overrides``.
"""
from __future__ import annotations

import os
import threading
from functools import lru_cache

from voiceover.core.config import Settings, load_settings
from voiceover.services.app_state import VoiceoverApp, build_app

# Generation, reset and settings changes run one at a time.
action_lock = threading.Lock()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings(os.getenv("VOICEOVER_SETTINGS", "config/settings.yaml"), missing_ok=True)


@lru_cache(maxsize=1)
def get_app() -> VoiceoverApp:
    return build_app(get_settings())


def reset_dependencies() -> None:
    """Drop the cached settings and application (for testing)."""
    if get_app.cache_info().currsize:
        get_app().close()
    get_app.cache_clear()
    get_settings.cache_clear()
