"""
Application Settings for voiceover.

These are the operator-level settings (where state lives, which API host to
talk to, how chatty the logs are). The user's own preferences (API key,
voice, stability...) live in the durable state store instead; see
services/config_store.py.

Configuration Hierarchy (highest priority first):
    1. Environment variables (VOICEOVER_BASE_URL, VOICEOVER_STATE_DIR)
    2. YAML config file (config/settings.yaml, or VOICEOVER_SETTINGS)
    3. Defaults class values

Example settings.yaml:
    remote:
      base_url: https://api.elevenlabs.io
      timeout_s: null

    storage:
      state_dir: ./state

    generation:
      delimiter: "।"

    logging:
      level: 2
      log_dir: logs
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class ConfigValidationError(Exception):
    """Raised when a settings value is out of bounds or of the wrong type."""
    pass


class Defaults:
    """Default values for every setting."""

    # ─────────────────────────────────────────────────────────────────────────
    # Remote service
    # ─────────────────────────────────────────────────────────────────────────
    REMOTE_BASE_URL = "https://api.elevenlabs.io"
    REMOTE_TIMEOUT_S: Optional[float] = None   # None = wait as long as it takes
    REMOTE_AUDIO_MEDIA_TYPE = "audio/mpeg"

    # ─────────────────────────────────────────────────────────────────────────
    # Durable state
    # ─────────────────────────────────────────────────────────────────────────
    STORAGE_STATE_DIR = "./state"
    STORAGE_STATE_FILE = "state.json"
    STORAGE_AUDIO_SUBDIR = "audio"

    # ─────────────────────────────────────────────────────────────────────────
    # Generation
    # ─────────────────────────────────────────────────────────────────────────
    GENERATION_DELIMITER = "।"            # Bengali danda "।"

    # ─────────────────────────────────────────────────────────────────────────
    # Voice settings used when nothing valid is stored
    # ─────────────────────────────────────────────────────────────────────────
    VOICE_STABILITY = 0.5
    VOICE_SIMILARITY_BOOST = 0.7

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_LEVEL = 2
    LOGGING_TEXT_PREVIEW_CHARS = 60
    LOGGING_JSONL_FILE = "voiceover.jsonl"
    LOGGING_ROTATE_MAX_BYTES = 5 * 1024 * 1024
    LOGGING_ROTATE_BACKUP_COUNT = 3


@dataclass
class RemoteConfig:
    """Where the text-to-speech API lives and how long to wait for it."""
    base_url: str = Defaults.REMOTE_BASE_URL
    timeout_s: Optional[float] = Defaults.REMOTE_TIMEOUT_S
    audio_media_type: str = Defaults.REMOTE_AUDIO_MEDIA_TYPE


@dataclass
class StorageConfig:
    """
    Location of durable state.

    ``state_dir/state_file`` holds the key-value store (configuration and
    history); ``state_dir/audio_subdir`` holds generated clips.
    """
    state_dir: str = Defaults.STORAGE_STATE_DIR
    state_file: str = Defaults.STORAGE_STATE_FILE
    audio_subdir: str = Defaults.STORAGE_AUDIO_SUBDIR

    @property
    def state_path(self) -> Path:
        return Path(self.state_dir) / self.state_file


@dataclass
class GenerationConfig:
    delimiter: str = Defaults.GENERATION_DELIMITER


@dataclass
class LoggingConfig:
    """
    Logging options.

    Levels: 1 = MINIMAL, 2 = NORMAL, 3 = VERBOSE, 4 = DEBUG.
    """
    level: int = Defaults.LOGGING_LEVEL
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    log_dir: Optional[str] = None           # None = console only
    jsonl_file: str = Defaults.LOGGING_JSONL_FILE
    rotate_max_bytes: int = Defaults.LOGGING_ROTATE_MAX_BYTES
    rotate_backup_count: int = Defaults.LOGGING_ROTATE_BACKUP_COUNT


@dataclass
class AppConfig:
    """
    Validated, typed view of Settings.

    Usage:
        config = load_settings("config/settings.yaml", missing_ok=True).get_app_config()
        config.storage.state_path
    """
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "AppConfig":
        """
        Build an AppConfig from raw settings, applying defaults and validation.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Remote
        # ─────────────────────────────────────────────────────────────────────
        remote_raw = raw.get("remote", {}) or {}
        timeout_raw = remote_raw.get("timeout_s", Defaults.REMOTE_TIMEOUT_S)
        remote = RemoteConfig(
            base_url=str(remote_raw.get("base_url", Defaults.REMOTE_BASE_URL)).rstrip("/"),
            timeout_s=None if timeout_raw is None else float(timeout_raw),
            audio_media_type=str(remote_raw.get("audio_media_type", Defaults.REMOTE_AUDIO_MEDIA_TYPE)),
        )
        if not remote.base_url.startswith(("http://", "https://")):
            raise ConfigValidationError(f"remote.base_url must be an http(s) URL, got {remote.base_url!r}")
        if remote.timeout_s is not None:
            cls._validate_positive("remote.timeout_s", remote.timeout_s)

        # ─────────────────────────────────────────────────────────────────────
        # Storage
        # ─────────────────────────────────────────────────────────────────────
        storage_raw = raw.get("storage", {}) or {}
        storage = StorageConfig(
            state_dir=str(storage_raw.get("state_dir", Defaults.STORAGE_STATE_DIR)),
            state_file=str(storage_raw.get("state_file", Defaults.STORAGE_STATE_FILE)),
            audio_subdir=str(storage_raw.get("audio_subdir", Defaults.STORAGE_AUDIO_SUBDIR)),
        )
        cls._validate_not_empty("storage.state_file", storage.state_file)
        cls._validate_not_empty("storage.audio_subdir", storage.audio_subdir)

        # ─────────────────────────────────────────────────────────────────────
        # Generation
        # ─────────────────────────────────────────────────────────────────────
        generation_raw = raw.get("generation", {}) or {}
        generation = GenerationConfig(
            delimiter=str(generation_raw.get("delimiter", Defaults.GENERATION_DELIMITER)),
        )
        cls._validate_not_empty("generation.delimiter", generation.delimiter)

        # ─────────────────────────────────────────────────────────────────────
        # Logging
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)
        if isinstance(level_raw, str):
            from voiceover.core.logging import coerce_level
            level = int(coerce_level(level_raw))
        else:
            level = int(level_raw)
        log_dir = logging_raw.get("log_dir")
        logging_cfg = LoggingConfig(
            level=level,
            text_preview_chars=int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
            log_dir=str(log_dir) if log_dir else None,
            jsonl_file=str(logging_raw.get("jsonl_file", Defaults.LOGGING_JSONL_FILE)),
            rotate_max_bytes=int(logging_raw.get("rotate_max_bytes", Defaults.LOGGING_ROTATE_MAX_BYTES)),
            rotate_backup_count=int(logging_raw.get("rotate_backup_count", Defaults.LOGGING_ROTATE_BACKUP_COUNT)),
        )
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
        cls._validate_not_empty("logging.jsonl_file", logging_cfg.jsonl_file)
        cls._validate_positive("logging.rotate_max_bytes", logging_cfg.rotate_max_bytes)
        cls._validate_non_negative("logging.rotate_backup_count", logging_cfg.rotate_backup_count)

        return cls(remote=remote, storage=storage, generation=generation, logging=logging_cfg)

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")

    @staticmethod
    def _validate_not_empty(name: str, value: str) -> None:
        if not value:
            raise ConfigValidationError(f"{name} must not be empty")


@dataclass(frozen=True)
class Settings:
    """
    Immutable raw settings as loaded from YAML.

    Call get_app_config() for the validated, typed form.
    """
    raw: Dict[str, Any]

    def get_app_config(self) -> AppConfig:
        return AppConfig.from_settings(self)


def load_settings(path: str = "config/settings.yaml", missing_ok: bool = False) -> Settings:
    """
    Load settings from a YAML file and apply environment overrides.

    Environment variable overrides:
        - VOICEOVER_BASE_URL: remote.base_url
        - VOICEOVER_STATE_DIR: storage.state_dir

    Args:
        path: Path to the YAML file.
        missing_ok: Return defaults (plus overrides) instead of raising when
            the file does not exist.

    Raises:
        FileNotFoundError: If the file is missing and ``missing_ok`` is False.
    """
    p = Path(path)
    raw: Dict[str, Any] = {}
    if p.exists():
        with p.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    elif not missing_ok:
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    base_url = os.getenv("VOICEOVER_BASE_URL")
    if base_url:
        raw.setdefault("remote", {})["base_url"] = base_url

    state_dir = os.getenv("VOICEOVER_STATE_DIR")
    if state_dir:
        raw.setdefault("storage", {})["state_dir"] = state_dir

    return Settings(raw=raw)
