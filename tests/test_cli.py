"""Tests for the state and skill CLI commands."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from typer.testing import CliRunner

from skill_manager.analyzer import RECURSION_GUARD_VAR
from skill_manager.cli import app
from skill_manager.lock import acquire_lock, release_lock
from skill_manager.state import create_empty_state, mark_completed, mark_failed, write_state

runner = CliRunner()


@pytest.fixture
def state_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "state"
    monkeypatch.setenv("SKILL_MANAGER_STATE_DIR", str(path))
    monkeypatch.setenv("SKILL_MANAGER_SKILLS_DIR", str(tmp_path / "skills"))
    monkeypatch.delenv(RECURSION_GUARD_VAR, raising=False)
    return path


class TestStateCommand:
    """Tests for `skill-manager state show`."""

    def test_summary(self, state_dir: Path) -> None:
        """Should print counts and failed transcripts."""
        state_dir.mkdir()
        state = mark_failed(mark_completed(create_empty_state(), "/a.jsonl"), "/b.jsonl", 4)
        write_state(state_dir / "analyzed.json", state)

        result = runner.invoke(app, ["state", "show"])

        assert result.exit_code == 0
        assert "completed: 1" in result.stdout
        assert "failed (exit 4): /b.jsonl" in result.stdout

    def test_summary_tolerates_odd_records(self, state_dir: Path) -> None:
        """Records of unexpected shape are listed or skipped, never fatal."""
        state_dir.mkdir()
        state = mark_completed(create_empty_state(), "/a.jsonl")
        state["transcripts"]["/b.jsonl"] = {"status": "failed", "exit_code": None}
        state["transcripts"]["/c.jsonl"] = "completed"
        write_state(state_dir / "analyzed.json", state)

        result = runner.invoke(app, ["state", "show"])

        assert result.exit_code == 0
        assert "completed: 1" in result.stdout
        assert "failed (exit None): /b.jsonl" in result.stdout

    def test_missing_state(self, state_dir: Path) -> None:
        """A missing state file is reported, not an error."""
        result = runner.invoke(app, ["state", "show"])

        assert result.exit_code == 0
        assert "No state file" in result.stdout


class TestSkillCommands:
    """Tests for `skill-manager skill ...`."""

    def test_similar_json(self, state_dir: Path, make_skill: Callable[..., Path]) -> None:
        """Wide mode lists close names with their scores."""
        make_skill("rust-test-handler")
        make_skill("python-venv-setup")

        result = runner.invoke(app, ["skill", "similar", "rust-test-mock", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["mode"] == "wide"
        assert data["matches"] == [{"name": "rust-test-handler", "jaccard": 0.5, "prefix": 2}]

    def test_similar_strict_excludes_loose_match(self, state_dir: Path, make_skill: Callable[..., Path]) -> None:
        """Strict mode needs a three-token prefix."""
        make_skill("rust-test-handler")

        result = runner.invoke(app, ["skill", "similar", "rust-test-mock", "--mode", "strict"])

        assert result.exit_code == 0
        assert 'No similar skills for "rust-test-mock"' in result.stdout

    def test_similar_bad_mode(self, state_dir: Path) -> None:
        """Unknown modes are rejected."""
        result = runner.invoke(app, ["skill", "similar", "x", "--mode", "fuzzy"])

        assert result.exit_code == 1

    def test_retire(self, state_dir: Path, make_skill: Callable[..., Path]) -> None:
        """Should retire past the threshold and report it."""
        make_skill("stale-skill", sessions_since_use=11)

        result = runner.invoke(app, ["skill", "retire", "--threshold", "10"])

        assert result.exit_code == 0
        assert "Retired stale-skill" in result.stdout

    def test_retire_respects_lock(self, state_dir: Path, make_skill: Callable[..., Path]) -> None:
        """Retirement does not run while a batch holds the lock."""
        skill_dir = make_skill("stale-skill", sessions_since_use=11)
        state_dir.mkdir()
        assert acquire_lock(state_dir)
        try:
            result = runner.invoke(app, ["skill", "retire", "--threshold", "10"])
        finally:
            release_lock(state_dir)

        assert result.exit_code == 0
        assert skill_dir.is_dir()

    def test_track(self, tmp_path: Path, state_dir: Path, make_skill: Callable[..., Path]) -> None:
        """Should report skills mentioned in the transcript."""
        make_skill("rust-test-mock")
        transcript = tmp_path / "t.jsonl"
        transcript.write_text("used rust test mock today\n", encoding="utf-8")

        result = runner.invoke(app, ["skill", "track", str(transcript)])

        assert result.exit_code == 0
        assert "Used: rust-test-mock" in result.stdout
        assert "Updated 1 skill(s)" in result.stdout
