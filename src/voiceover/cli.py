"""
Command-Line Interface for voiceover.

Usage Examples:
    # Store credentials and voice settings
    voiceover --set api_key=sk_... --set voice_id=21m00Tcm4TlvDq8ikWAM
    voiceover --set stability=0.4 --set similarity_boost=0.8

    # Generate three takes per sentence
    voiceover "আমি ভাত খাই। তুমি কী খাও?"
    voiceover --file script.txt --json

    # Voices
    voiceover --voices
    voiceover --add-voice "Narrator" pNInz6obpgDQGcFmaJgB

    # Latest run, reset
    voiceover --history
    voiceover --reset --yes

Environment Variables:
    VOICEOVER_SETTINGS: settings file (default: config/settings.yaml)
    VOICEOVER_STATE_DIR: state directory override
    VOICEOVER_LOG_LEVEL: 1-4 or MINIMAL/NORMAL/VERBOSE/DEBUG
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from voiceover.core.config import ConfigValidationError, Settings, load_settings
from voiceover.core.logging import configure_logging, get_logger, info
from voiceover.services.app_state import VoiceoverApp, build_app
from voiceover.services.errors import VoiceoverError
from voiceover.services.events import ConsoleSink, RecordingSink

# Accept the stored key names as well.
_SETTING_ALIASES = {
    "apiKey": "api_key",
    "voiceId": "voice_id",
    "similarityBoost": "similarity_boost",
}


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="voiceover CLI (multi-take text-to-speech)")

    # Input
    parser.add_argument("text_pos", nargs="?", help="Text to convert (positional)")
    parser.add_argument("--text", help="Text to convert")
    parser.add_argument("--file", help="Read the text from a file")
    parser.add_argument("--voice", help="Voice id for this run (overrides the stored one)")

    # Configuration
    parser.add_argument("--set", action="append", default=[], metavar="KEY=VALUE",
                        help="Update a setting (api_key, voice_id, stability, similarity_boost)")
    parser.add_argument("--add-voice", nargs=2, metavar=("NAME", "VOICE_ID"),
                        help="Save a shared voice under a name")
    parser.add_argument("--settings", help="Settings YAML (default: $VOICEOVER_SETTINGS or config/settings.yaml)")
    parser.add_argument("--state-dir", help="State directory override")

    # Other actions
    parser.add_argument("--voices", action="store_true", help="List selectable voices")
    parser.add_argument("--history", action="store_true", help="Show the latest run")
    parser.add_argument("--reset", action="store_true",
                        help="Delete remote history, local clips, history and the API key")
    parser.add_argument("--yes", action="store_true", help="Do not ask before resetting")

    parser.add_argument("--json", action="store_true", help="Print JSON output")

    return parser.parse_args(argv)


def _load_text(args: argparse.Namespace) -> Optional[str]:
    text = args.text or args.text_pos
    if args.file:
        if text:
            raise SystemExit("Use --file without --text or positional text.")
        return Path(args.file).read_text(encoding="utf-8")
    return text


def _parse_assignments(items: List[str]) -> Dict[str, str]:
    updates: Dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise SystemExit(f"Expected KEY=VALUE, got {item!r}")
        key = key.strip()
        updates[_SETTING_ALIASES.get(key, key)] = value.strip()
    return updates


def _load_settings(args: argparse.Namespace) -> Settings:
    path = args.settings or os.getenv("VOICEOVER_SETTINGS", "config/settings.yaml")
    settings = load_settings(path, missing_ok=args.settings is None)
    if args.state_dir:
        raw = dict(settings.raw)
        raw["storage"] = {**(raw.get("storage") or {}), "state_dir": args.state_dir}
        settings = Settings(raw=raw)
    return settings


def _confirm_on_terminal(warning: str) -> bool:
    print(warning)
    try:
        answer = input("Continue? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _print(payload: dict, as_json: bool, lines: List[str]) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        for line in lines:
            print(line)


def _run_actions(app: VoiceoverApp, args: argparse.Namespace, text: Optional[str]) -> Tuple[int, List[str]]:
    """Run the requested actions in a fixed order; returns (exit code, markers)."""
    markers: List[str] = []

    if args.set:
        config = app.update_settings(**_parse_assignments(args.set))
        public = config.to_public_dict()
        _print({"ok": True, "settings": public}, args.json,
               [f"{k}: {v}" for k, v in public.items() if k != "shared_voices"])
        markers.append("SETTINGS_OK")

    if args.add_voice:
        name, voice_id = args.add_voice
        voice = app.add_shared_voice(name, voice_id)
        _print({"ok": True, "shared_voice": voice.to_dict()}, args.json,
               [f"Saved shared voice {voice.name} ({voice.id})"])

    if args.voices:
        entries = [e for e in app.voices() if e.id]
        _print({"ok": True, "voices": [e.to_dict() for e in entries]}, args.json,
               [f"{e.id}  {e.label}" for e in entries] or ["No voices."])

    if args.history:
        entries = app.history_entries()
        if args.json:
            _print({"ok": True, "history": [e.to_dict() for e in entries]}, True, [])
        elif entries:
            app.history.replay(ConsoleSink())
        else:
            print("No history.")

    if args.reset:
        outcome = app.reset((lambda _warning: True) if args.yes else _confirm_on_terminal)
        _print({"ok": outcome.ok, "message": outcome.message, "cancelled": outcome.cancelled},
               args.json, [outcome.message])
        if outcome.error is not None:
            return 1, markers
        if outcome.ok:
            markers.append("RESET_OK")

    if text is not None:
        report = app.generate(text, selected_voice=args.voice)
        sink = app.sink
        payload = {
            "ok": True,
            "report": report.to_dict(),
            "history": [e.to_dict() for e in app.history_entries()],
            "events": sink.drain() if isinstance(sink, RecordingSink) else [],
        }
        _print(payload, args.json, [
            f"{report.chunks} chunk(s), {report.variants_ok} take(s) saved, "
            f"{report.variants_failed} failed in {report.seconds}s"
        ])
        markers.append("CLI_OK")

    return 0, markers


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code: 0 on success, 1 when an action failed, 2 when nothing
        was requested.
    """
    args = _parse_args(argv)
    try:
        text = _load_text(args)
    except (OSError, UnicodeDecodeError) as e:
        print(f"[FAILED] Cannot read {args.file}: {e}")
        return 1

    if not (text is not None or args.set or args.add_voice or args.voices or args.history or args.reset):
        print("Nothing to do. Provide text, or one of --set, --add-voice, --voices, --history, --reset.")
        return 2

    try:
        settings = _load_settings(args)
        config = settings.get_app_config()
        configure_logging(force=True, logging_config=config.logging)
        sink = RecordingSink() if args.json else ConsoleSink()
        app = build_app(settings, sink=sink, start=False)
    except (FileNotFoundError, ConfigValidationError) as e:
        print(f"[FAILED] {e}")
        return 1

    log = get_logger("voiceover.cli")

    try:
        app.startup(refresh_voices=args.voices, replay=False)
        info(log, "cli_start", state_dir=app.config.storage.state_dir)
        code, markers = _run_actions(app, args, text)
    except VoiceoverError as e:
        if args.json:
            print(json.dumps(e.to_dict(), ensure_ascii=False))
        else:
            print(f"[FAILED] {e.message}")
        return 1
    finally:
        app.close()

    for marker in markers:
        print(marker)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
