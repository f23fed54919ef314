"""Tests for the hookwise CLI."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from hookwise.cli.main import cli
from hookwise.state.turn import TurnState, TurnStateStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("HOOKWISE_STATE_DIR", "HOOKWISE_COMMAND_TIMEOUT", "HOOKWISE_PERMISSION_MODE",
                 "HOOKWISE_TRANSCRIPT_PATH", "HOOKWISE_STDERR_ONLY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))


def _hooks_file(tmp_path, kind: str, command: str, matcher: str | None = None) -> str:
    group = {"hooks": [{"type": "command", "command": command, "timeout": 10}]}
    if matcher is not None:
        group["matcher"] = matcher
    path = tmp_path / "hooks.json"
    path.write_text(json.dumps({"hooks": {kind: [group]}}))
    return str(path)


class TestRunCommand:
    def test_allow(self, tmp_path, project, hook_script):
        config = _hooks_file(tmp_path, "Stop", hook_script("exit 0"))
        result = CliRunner().invoke(cli, ["run", "Stop", "-c", config, "--cwd", str(project)])
        assert result.exit_code == 0
        assert "Stop: Allow" in result.output

    def test_block_exits_2(self, tmp_path, project, hook_script):
        config = _hooks_file(tmp_path, "PreToolUse", hook_script("echo 'R: no rm' >&2; exit 2"), matcher="Bash")
        payload = tmp_path / "event.json"
        payload.write_text(json.dumps({"tool_name": "Bash", "tool_input": {"command": "rm -rf /"}}))
        result = CliRunner().invoke(cli, [
            "run", "PreToolUse", "-c", config, "--payload", str(payload), "--cwd", str(project),
        ])
        assert result.exit_code == 2
        assert "R: no rm" in result.output

    def test_matcher_respected(self, tmp_path, project, hook_script):
        config = _hooks_file(tmp_path, "PreToolUse", hook_script("exit 2"), matcher="^Bash$")
        result = CliRunner().invoke(cli, [
            "run", "PreToolUse", "-c", config, "--payload", "-", "--cwd", str(project),
        ], input=json.dumps({"tool_name": "Read"}))
        assert result.exit_code == 0
        assert "no hooks matched" in result.output

    def test_json_output(self, tmp_path, project, hook_script):
        ctx = json.dumps({"hookSpecificOutput": {"hookEventName": "UserPromptSubmit", "additionalContext": "X"}})
        config = _hooks_file(tmp_path, "UserPromptSubmit", hook_script(f"echo '{ctx}'"))
        result = CliRunner().invoke(cli, [
            "run", "UserPromptSubmit", "-c", config, "--payload", "-", "--cwd", str(project), "--json",
        ], input='{"prompt": "hi"}')
        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "outcome": "AllowWithContext",
            "context": "X",
            "outcomes": [{"outcome": "AllowWithContext", "context": "X"}],
        }

    def test_payload_reaches_hook(self, tmp_path, project, hook_script):
        captured = tmp_path / "stdin.json"
        config = _hooks_file(tmp_path, "Stop", hook_script(f"cat > {captured}"))
        result = CliRunner().invoke(cli, [
            "run", "Stop", "-c", config, "--payload", "-", "-s", "abc", "--cwd", str(project),
        ], input='{"stop_hook_active": true}')
        assert result.exit_code == 0
        payload = json.loads(captured.read_text())
        assert payload["session_id"] == "abc"
        assert payload["hook_event_name"] == "Stop"
        assert payload["stop_hook_active"] is True
        assert payload["cwd"] == str(project)

    def test_unknown_kind(self, tmp_path, project, hook_script):
        config = _hooks_file(tmp_path, "Stop", hook_script("exit 0"))
        result = CliRunner().invoke(cli, ["run", "AfterLunch", "-c", config, "--cwd", str(project)])
        assert result.exit_code != 0
        assert "unknown event kind" in result.output

    def test_invalid_payload(self, tmp_path, project, hook_script):
        config = _hooks_file(tmp_path, "Stop", hook_script("exit 0"))
        result = CliRunner().invoke(cli, [
            "run", "Stop", "-c", config, "--payload", "-", "--cwd", str(project),
        ], input="[1, 2]")
        assert result.exit_code != 0
        assert "JSON object" in result.output

    def test_config_error_exits_1(self, tmp_path, project):
        path = tmp_path / "hooks.json"
        path.write_text(json.dumps({"Stop": [{"hooks": [{"type": "prompt", "prompt": "ok?"}]}]}))
        result = CliRunner().invoke(cli, ["run", "Stop", "-c", str(path), "--cwd", str(project)])
        assert result.exit_code == 1
        assert "evaluator" in result.output

    def test_tracks_files(self, tmp_path, project, hook_script):
        (project / "a.py").write_text("x")
        config = _hooks_file(tmp_path, "PreToolUse", hook_script("exit 0"))
        payload = {"tool_name": "Write", "tool_input": {"file_path": "a.py"}, "tool_use_id": "t1"}
        result = CliRunner().invoke(cli, [
            "run", "PreToolUse", "-c", config, "--payload", "-", "--cwd", str(project),
        ], input=json.dumps(payload))
        assert result.exit_code == 0
        assert "t1" in TurnStateStore().load(project).pending

        CliRunner().invoke(cli, [
            "run", "PreToolUse", "-c", config, "--payload", "-", "--cwd", str(project), "--no-track",
        ], input=json.dumps({**payload, "tool_use_id": "t2"}))
        assert "t2" not in TurnStateStore().load(project).pending


class TestStateCommand:
    def test_show_empty(self, project):
        result = CliRunner().invoke(cli, ["state", "show", "--project", str(project)])
        assert result.exit_code == 0
        assert "no turn state" in result.output
        assert not (project / ".hookwise").exists()

    def test_show_and_clear(self, project):
        TurnStateStore().save(project, TurnState(changed=["/p/a.py"]))
        result = CliRunner().invoke(cli, ["state", "show", "--project", str(project)])
        assert result.exit_code == 0
        assert "/p/a.py" in result.output

        result = CliRunner().invoke(cli, ["state", "clear", "--project", str(project)])
        assert result.exit_code == 0
        assert "Cleared" in result.output
        assert TurnStateStore().load(project).is_empty()

    def test_show_corrupt(self, project):
        store = TurnStateStore()
        path = store.state_path(project)
        path.parent.mkdir(parents=True)
        path.write_text("changed: {not: a list}\n")
        result = CliRunner().invoke(cli, ["state", "show", "--project", str(project)])
        assert result.exit_code == 1
        assert "Corrupt" in result.output


class TestConfigCommand:
    def test_config_list(self, project, monkeypatch):
        monkeypatch.setenv("HOOKWISE_STATE_DIR", ".custom")
        result = CliRunner().invoke(cli, ["config", "list", "--cwd", str(project)])
        assert result.exit_code == 0
        assert "Environment:" in result.output
        assert "TOML config:" in result.output
        assert "state_dir: .custom" in result.output
        assert "stderr_only_kinds:" in result.output
