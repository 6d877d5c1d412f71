"""Tests for the SessionEnd hook and the hook command."""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from skill_manager.analyzer import RECURSION_GUARD_VAR
from skill_manager.cli import app
from skill_manager.hooks import parse_hook_input, spawn_background_worker, worker_command

runner = CliRunner()


@pytest.fixture
def state_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "state"
    monkeypatch.setenv("SKILL_MANAGER_STATE_DIR", str(path))
    monkeypatch.setenv("SKILL_MANAGER_SKILLS_DIR", str(tmp_path / "skills"))
    monkeypatch.delenv(RECURSION_GUARD_VAR, raising=False)
    return path


class TestParseHookInput:
    """Tests for parse_hook_input."""

    def test_parses_known_fields(self) -> None:
        """Should pick out the fields the hook cares about."""
        raw = json.dumps({"session_id": "abc", "transcript_path": "/t.jsonl", "reason": "exit", "extra": 1})

        hook_input = parse_hook_input(raw)

        assert hook_input.session_id == "abc"
        assert hook_input.transcript_path == "/t.jsonl"
        assert hook_input.reason == "exit"
        assert hook_input.cwd is None

    @pytest.mark.parametrize("raw", ["", "   ", "not json", "[1, 2]"])
    def test_unusable_input(self, raw: str) -> None:
        """Empty, invalid and non-object input give None."""
        assert parse_hook_input(raw) is None


class TestSpawnBackgroundWorker:
    """Tests for spawn_background_worker."""

    def test_detached_without_recursion_guard(self) -> None:
        """The worker is detached and does not inherit the recursion guard."""
        fake = MagicMock(pid=4321)
        with (
            patch.dict(os.environ, {RECURSION_GUARD_VAR: "1"}),
            patch("skill_manager.hooks.subprocess.Popen", return_value=fake) as popen,
        ):
            pid = spawn_background_worker()

        assert pid == 4321
        args, kwargs = popen.call_args
        assert args[0] == worker_command()
        assert RECURSION_GUARD_VAR not in kwargs["env"]
        assert kwargs["stdin"] is subprocess.DEVNULL
        if os.name != "nt":
            assert kwargs["start_new_session"] is True

    def test_worker_command_runs_batch(self) -> None:
        """The worker is this interpreter running the run command."""
        assert worker_command() == [sys.executable, "-m", "skill_manager", "run"]


class TestSessionEndCommand:
    """Tests for `skill-manager hook session-end`."""

    def test_spawns_worker_and_returns_empty_object(self, state_dir: Path) -> None:
        """Should start the worker and answer {} on stdout."""
        with patch("skill_manager.cli.hook.spawn_background_worker", return_value=99) as spawn:
            result = runner.invoke(app, ["hook", "session-end"], input='{"session_id": "abc"}')

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {}
        spawn.assert_called_once()
        log = next(state_dir.glob("skill-manager-*.log")).read_text(encoding="utf-8")
        assert "=== SessionEnd triggered ===" in log
        assert "Session: abc" in log

    def test_recursion_guard_skips_spawn(self, state_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Inside an analyzer session the hook does nothing."""
        monkeypatch.setenv(RECURSION_GUARD_VAR, "1")
        with patch("skill_manager.cli.hook.spawn_background_worker") as spawn:
            result = runner.invoke(app, ["hook", "session-end"], input="{}")

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {}
        spawn.assert_not_called()

    def test_spawn_failure_still_succeeds(self, state_dir: Path) -> None:
        """A failure to start the worker never fails the hook."""
        with patch("skill_manager.cli.hook.spawn_background_worker", side_effect=OSError("no fork")):
            result = runner.invoke(app, ["hook", "session-end"], input="")

        assert result.exit_code == 0
        assert "{}" in result.stdout

