"""
Structured logging for voiceover.

Thin layer over stdlib ``logging`` with:
    - numeric levels 1-4 (see levels.py)
    - colored console output
    - optional JSONL file output with rotation
    - a run id that ties together every line of one generation run or reset

Configuration (highest priority first):
    VOICEOVER_LOG_LEVEL   1-4 or a level name
    VOICEOVER_LOG_DIR     directory for the JSONL file (file output is off without it)
    VOICEOVER_JSONL_FILE  file name inside the log dir (default: voiceover.jsonl)
    settings.yaml ``logging:`` section

Usage:
    from voiceover.core.logging import get_logger, info, warn

    _LOG = get_logger("voiceover.pipeline")
    info(_LOG, "chunk_started", chunk=1, chars=42)
    warn(_LOG, "variant_failed", status_code=401)
"""
from __future__ import annotations

import logging
import os
import sys
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from .formatters import ConsoleFormatter, JsonlFormatter, supports_color
from .levels import LEVEL_MAP, LEVEL_NAMES, LogLevel, coerce_level

if TYPE_CHECKING:
    from voiceover.core.config import LoggingConfig

_run_id: ContextVar[str] = ContextVar("run_id", default="-")

_configured = False
_current_level: LogLevel = LogLevel.NORMAL


def get_run_id() -> str:
    return _run_id.get()


def set_run_id(run_id: str) -> None:
    """Tag every following log line in this context with ``run_id``."""
    _run_id.set(run_id)


def get_level() -> LogLevel:
    return _current_level


def get_level_name() -> str:
    return LEVEL_NAMES.get(int(_current_level), "NORMAL")


def read_logging_config(logging_config: Optional["LoggingConfig"] = None) -> Dict[str, Any]:
    """
    Resolve logging options from settings and the environment.

    ``logging_config`` is the already validated ``logging:`` section; when
    omitted, the settings file named by VOICEOVER_SETTINGS is read. A missing
    or broken settings file is not an error here; logging must come up
    before anything else can report problems.
    """
    if logging_config is None:
        from voiceover.core.config import LoggingConfig, load_settings

        settings_path = os.getenv("VOICEOVER_SETTINGS", "config/settings.yaml")
        try:
            logging_config = load_settings(settings_path, missing_ok=True).get_app_config().logging
        except Exception as e:
            print(f"voiceover: ignoring logging settings ({e})", file=sys.stderr)
            logging_config = LoggingConfig()

    cfg: Dict[str, Any] = {
        "level": logging_config.level,
        "log_dir": logging_config.log_dir,
        "jsonl_file": logging_config.jsonl_file,
        "rotate_max_bytes": logging_config.rotate_max_bytes,
        "rotate_backup_count": logging_config.rotate_backup_count,
    }

    if os.getenv("VOICEOVER_LOG_LEVEL"):
        cfg["level"] = os.environ["VOICEOVER_LOG_LEVEL"]
    if os.getenv("VOICEOVER_LOG_DIR"):
        cfg["log_dir"] = os.environ["VOICEOVER_LOG_DIR"]
    if os.getenv("VOICEOVER_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["VOICEOVER_JSONL_FILE"]

    return cfg


def configure_logging(
    level: Optional[int | str | LogLevel] = None,
    force: bool = False,
    logging_config: Optional["LoggingConfig"] = None,
) -> None:
    """
    Install console (and optionally JSONL file) handlers on the root logger.

    Args:
        level: Explicit level; overrides settings and environment.
        force: Reconfigure even if logging was already set up.
        logging_config: Settings ``logging:`` section to use instead of
            reading the default settings file.
    """
    global _configured, _current_level

    if _configured and not force:
        return

    cfg = read_logging_config(logging_config)
    _current_level = coerce_level(level if level is not None else cfg["level"])

    root = logging.getLogger()
    root.setLevel(logging.DEBUG - 5)
    root.handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(LEVEL_MAP.get(_current_level, logging.INFO))
    console.setFormatter(ConsoleFormatter(use_colors=supports_color()))
    root.addHandler(console)

    log_dir = cfg["log_dir"]
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            Path(log_dir) / str(cfg["jsonl_file"]),
            maxBytes=int(cfg["rotate_max_bytes"]),
            backupCount=int(cfg["rotate_backup_count"]),
            encoding="utf-8",
            delay=True,
        )
        file_handler.setLevel(logging.DEBUG - 5)
        file_handler.setFormatter(JsonlFormatter())
        root.addHandler(file_handler)

    _configured = True


def get_logger(name: str = "voiceover") -> logging.Logger:
    """Return a named logger, configuring logging on first use."""
    configure_logging()
    return logging.getLogger(name)


def _log(
    logger: logging.Logger,
    level: int,
    tag: str,
    msg: str,
    numeric_level: int,
    **fields: Any,
) -> None:
    if numeric_level > _current_level:
        return

    seconds = fields.pop("seconds", None)
    logger.log(
        level,
        msg,
        extra={
            "tag": tag,
            "run_id": get_run_id(),
            "seconds": seconds,
            "extra_data": fields or None,
            "numeric_level": numeric_level,
        },
    )


def info(logger: logging.Logger, msg: str, **fields: Any) -> None:
    _log(logger, logging.INFO, "INFO", msg, 2, **fields)


def warn(logger: logging.Logger, msg: str, **fields: Any) -> None:
    _log(logger, logging.WARNING, "WARN", msg, 2, **fields)


def error(logger: logging.Logger, msg: str, **fields: Any) -> None:
    _log(logger, logging.ERROR, "ERROR", msg, 1, **fields)


def success(logger: logging.Logger, msg: str, **fields: Any) -> None:
    _log(logger, logging.INFO, "SUCCESS", msg, 2, **fields)


def fail(logger: logging.Logger, msg: str, **fields: Any) -> None:
    _log(logger, logging.ERROR, "FAIL", msg, 1, **fields)


def verbose(logger: logging.Logger, msg: str, **fields: Any) -> None:
    _log(logger, logging.DEBUG, "INFO", msg, 3, **fields)


def debug(logger: logging.Logger, msg: str, **fields: Any) -> None:
    _log(logger, logging.DEBUG - 5, "DEBUG", msg, 4, **fields)


__all__ = [
    "LogLevel",
    "LEVEL_MAP",
    "LEVEL_NAMES",
    "coerce_level",
    "ConsoleFormatter",
    "JsonlFormatter",
    "configure_logging",
    "get_logger",
    "get_level",
    "get_level_name",
    "get_run_id",
    "set_run_id",
    "read_logging_config",
    "info",
    "warn",
    "error",
    "success",
    "fail",
    "verbose",
    "debug",
]
