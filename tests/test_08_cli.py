"""Tests for the voiceover command-line interface."""
from __future__ import annotations

import json

import pytest

from voiceover import cli
from voiceover.core.logging import LogLevel, configure_logging, get_level
from voiceover.services.app_state import build_app


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    configure_logging(level=LogLevel.NORMAL, force=True)


@pytest.fixture
def run(tmp_path, fake_api, monkeypatch, capsys):
    """Run the CLI against a temp state dir and the fake API."""
    state = tmp_path / "cli-state"

    def _build(settings, **kwargs):
        return build_app(settings, transport=fake_api.transport(), **kwargs)

    monkeypatch.setattr(cli, "build_app", _build)

    def _run(*argv):
        code = cli.main(["--state-dir", str(state), *argv])
        return code, capsys.readouterr().out

    return _run


def _json_line(out: str) -> dict:
    for line in out.splitlines():
        if line.startswith("{"):
            return json.loads(line)
    raise AssertionError(f"no JSON line in output:\n{out}")


class TestNothingToDo:
    def test_no_arguments(self, run):
        code, out = run()
        assert code == 2
        assert "Nothing to do" in out


class TestSettings:
    def test_set_values(self, run):
        code, out = run("--set", "voice_id=v-adam", "--set", "stability=0.4", "--json")
        assert code == 0
        settings = _json_line(out)["settings"]
        assert settings["voice_id"] == "v-adam"
        assert settings["stability"] == 0.4
        assert "SETTINGS_OK" in out

    def test_stored_key_names_accepted(self, run):
        code, out = run("--set", "similarityBoost=0.9", "--json")
        assert code == 0
        assert _json_line(out)["settings"]["similarity_boost"] == 0.9

    def test_settings_persist_between_runs(self, run):
        run("--set", "voice_id=v-1")
        code, out = run("--set", "stability=0.2", "--json")
        assert _json_line(out)["settings"]["voice_id"] == "v-1"

    def test_invalid_value_fails(self, run):
        code, out = run("--set", "stability=high")
        assert code == 1
        assert "[FAILED]" in out

    def test_bad_assignment_exits(self, run):
        with pytest.raises(SystemExit):
            run("--set", "stability")


class TestGenerate:
    def test_generate_requires_key(self, run, fake_api):
        code, out = run("hello")
        assert code == 1
        assert "Please enter your ElevenLabs API key in settings." in out
        assert fake_api.requests == []

    def test_generate_text(self, run, fake_api):
        run("--set", "api_key=sk_test", "--set", "voice_id=v-rachel")
        code, out = run("এক। দুই")

        assert code == 0
        assert "[1] এক" in out
        assert "[2] দুই" in out
        assert "6 take(s) saved" in out
        assert "CLI_OK" in out
        assert len(fake_api.synth_calls()) == 6

    def test_generate_json(self, run):
        run("--set", "api_key=sk_test", "--set", "voice_id=v-rachel")
        code, out = run("--text", "a।b", "--json")
        payload = _json_line(out)
        assert code == 0
        assert payload["report"]["chunks"] == 2
        assert [h["text"] for h in payload["history"]] == ["a", "b"]
        assert payload["events"][0]["type"] == "cleared"

    def test_generate_from_file(self, run, tmp_path):
        source = tmp_path / "script.txt"
        source.write_text("এক।\nদুই।\n", encoding="utf-8")
        run("--set", "api_key=sk_test", "--set", "voice_id=v")
        code, out = run("--file", str(source), "--json")
        assert code == 0
        assert [h["text"] for h in _json_line(out)["history"]] == ["এক", "দুই"]

    def test_voice_flag_overrides(self, run, fake_api):
        run("--set", "api_key=sk_test", "--set", "voice_id=v-rachel")
        run("hi", "--voice", "v-adam")
        assert fake_api.synth_calls()[0].url.path == "/v1/text-to-speech/v-adam"


class TestVoicesAndHistory:
    def test_add_voice_and_list(self, run):
        run("--add-voice", "Narrator", "s-1")
        code, out = run("--voices", "--json")
        voices = _json_line(out)["voices"]
        assert code == 0
        assert voices == [{"id": "s-1", "name": "Narrator", "is_shared": True, "label": "Narrator (Shared)"}]

    def test_voices_with_key(self, run):
        run("--set", "api_key=sk_test")
        code, out = run("--voices")
        assert "v-rachel  Rachel" in out
        assert "v-adam  Adam" in out

    def test_history(self, run):
        run("--set", "api_key=sk_test", "--set", "voice_id=v")
        run("a")
        code, out = run("--history", "--json")
        history = _json_line(out)["history"]
        assert len(history) == 1
        assert len(history[0]["audioUrls"]) == 3

    def test_empty_history(self, run):
        code, out = run("--history")
        assert code == 0
        assert "No history." in out


class TestReset:
    def test_reset_yes(self, run, fake_api):
        run("--set", "api_key=sk_test", "--set", "voice_id=v")
        run("a")
        code, out = run("--reset", "--yes")

        assert code == 0
        assert "Reset completed successfully." in out
        assert "RESET_OK" in out
        assert len(fake_api.calls("DELETE", "/v1/history")) == 1

        code, out = run("--history", "--json")
        assert _json_line(out)["history"] == []

    def test_reset_declined(self, run, fake_api, monkeypatch):
        run("--set", "api_key=sk_test")
        monkeypatch.setattr("builtins.input", lambda prompt="": "n")
        code, out = run("--reset")
        assert code == 0
        assert "Reset cancelled." in out
        assert fake_api.calls("DELETE") == []

    def test_reset_remote_failure(self, run, fake_api):
        run("--set", "api_key=sk_test")
        fake_api.delete_status = 500
        code, out = run("--reset", "--yes")
        assert code == 1
        assert "Error during reset:" in out


class TestInputFile:
    def test_missing_file_fails(self, run, tmp_path):
        code, out = run("--file", str(tmp_path / "nope.txt"))
        assert code == 1
        assert "[FAILED] Cannot read" in out

    def test_undecodable_file_fails(self, run, tmp_path, fake_api):
        source = tmp_path / "latin1.txt"
        source.write_bytes(b"caf\xe9 \xff")
        run("--set", "api_key=sk_test", "--set", "voice_id=v")
        code, out = run("--file", str(source))
        assert code == 1
        assert "[FAILED]" in out
        assert fake_api.synth_calls() == []


class TestSettingsFile:
    @pytest.fixture(autouse=True)
    def clear_log_env(self, monkeypatch):
        for name in ("VOICEOVER_LOG_LEVEL", "VOICEOVER_LOG_DIR", "VOICEOVER_JSONL_FILE"):
            monkeypatch.delenv(name, raising=False)

    def test_logging_level_applied(self, run, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("logging:\n  level: 1\n", encoding="utf-8")

        code, _ = run("--settings", str(path), "--history")

        assert code == 0
        assert get_level() == LogLevel.MINIMAL

    def test_logging_file_applied(self, run, tmp_path):
        log_dir = tmp_path / "logs"
        path = tmp_path / "settings.yaml"
        path.write_text(f"logging:\n  level: 2\n  log_dir: {log_dir}\n  jsonl_file: cli.jsonl\n", encoding="utf-8")

        code, _ = run("--settings", str(path), "--history")

        assert code == 0
        assert "cli_start" in (log_dir / "cli.jsonl").read_text(encoding="utf-8")

    def test_missing_settings_file_fails(self, run, tmp_path):
        code, out = run("--settings", str(tmp_path / "nope.yaml"), "--history")
        assert code == 1
        assert "[FAILED]" in out
