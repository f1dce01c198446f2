"""Unit tests for the kiro-agents CLI."""

import json
from pathlib import Path
import re

import pytest
from typer.testing import CliRunner

from kiro_agents import __version__
from kiro_agents.cli.formatters import console
from kiro_agents.cli.main import app

runner = CliRunner()

ANSI = re.compile(r"\x1b\[[0-9;]*m")


def plain(output: str) -> str:
    return ANSI.sub("", output)


@pytest.fixture(autouse=True)
def isolated_user_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    user_dir = tmp_path / "home" / ".kiro-agents"
    monkeypatch.setattr("kiro_agents.config.loader.get_config_dir", lambda: user_dir)
    return user_dir


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep long resource names on one line."""
    monkeypatch.setattr(console, "width", 200)


class TestMainApp:
    """Tests for the top-level application."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in plain(result.output)

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert result.exit_code == 2
        assert "agents" in result.output

    def test_command_groups_registered(self) -> None:
        for group in ("agents", "deps", "state"):
            result = runner.invoke(app, [group, "--help"])
            assert result.exit_code == 0, group


class TestAgentsCommands:
    """Tests for `kiro-agents agents`."""

    def test_list(self, project_root: Path) -> None:
        result = runner.invoke(app, ["agents", "list", "--root", str(project_root)])

        assert result.exit_code == 0
        output = plain(result.output)
        for agent_id in ("architect", "pm", "dev", "game-developer", "game-architect"):
            assert agent_id in output
        assert "Winston" in output

    def test_list_by_pack(self, project_root: Path) -> None:
        result = runner.invoke(
            app,
            ["agents", "list", "-r", str(project_root), "--pack", "bmad-2d-phaser-game-dev"],
        )

        assert result.exit_code == 0
        output = plain(result.output)
        assert "game-developer" in output
        assert "Winston" not in output

    def test_list_invalid_only(self, project_root: Path) -> None:
        result = runner.invoke(app, ["agents", "list", "-r", str(project_root), "--invalid"])

        assert result.exit_code == 0
        assert "No agents found." in plain(result.output)

    def test_list_without_definition_roots(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()

        result = runner.invoke(app, ["agents", "list", "-r", str(empty)])

        assert result.exit_code == 1
        assert "Definition Store Unavailable" in plain(result.output)

    def test_show(self, project_root: Path) -> None:
        result = runner.invoke(app, ["agents", "show", "pm", "-r", str(project_root)])

        assert result.exit_code == 0
        output = plain(result.output)
        assert "John" in output
        assert "prd-tmpl.yaml" in output

    def test_show_unknown_agent(self, project_root: Path) -> None:
        result = runner.invoke(app, ["agents", "show", "ghost", "-r", str(project_root)])

        assert result.exit_code == 1
        assert "Agent not found: ghost" in plain(result.output)

    def test_invalid_config_exits(self, project_root: Path) -> None:
        config_file = project_root / ".kiro" / "kiro-agents.yaml"
        config_file.parent.mkdir(parents=True)
        config_file.write_text("activation: [not, a, mapping]\n")

        result = runner.invoke(app, ["agents", "list", "-r", str(project_root)])

        assert result.exit_code == 1
        assert "Configuration Error" in plain(result.output)


class TestDepsCommands:
    """Tests for `kiro-agents deps`."""

    def test_check_single_complete_agent(self, project_root: Path) -> None:
        result = runner.invoke(app, ["deps", "check", "architect", "-r", str(project_root)])

        assert result.exit_code == 0
        output = plain(result.output)
        assert "architecture-tmpl.yaml" in output
        assert "All dependencies resolved for 1 agent(s)." in output

    def test_check_all_reports_missing(self, project_root: Path) -> None:
        result = runner.invoke(app, ["deps", "check", "-r", str(project_root)])

        assert result.exit_code == 0
        output = plain(result.output)
        assert "game-story-dod-checklist.md" in output
        assert "1 of 5 agent(s) have missing dependencies." in output

    def test_check_strict_fails(self, project_root: Path) -> None:
        result = runner.invoke(
            app, ["deps", "check", "game-developer", "-r", str(project_root), "--strict"]
        )

        assert result.exit_code == 1

    def test_check_unknown_agent(self, project_root: Path) -> None:
        result = runner.invoke(app, ["deps", "check", "ghost", "-r", str(project_root)])

        assert result.exit_code == 1
        assert "Agent not found: ghost" in plain(result.output)

    def test_graph_json(self, project_root: Path) -> None:
        result = runner.invoke(app, ["deps", "graph", "-r", str(project_root), "--json"])

        assert result.exit_code == 0
        graph = json.loads(plain(result.output))
        assert "create-doc.md" in graph["shared"]
        assert graph["circular_dependencies"] == []
        assert graph["stats"]["total"] >= graph["stats"]["shared"]

    def test_graph_table(self, project_root: Path) -> None:
        result = runner.invoke(app, ["deps", "graph", "-r", str(project_root)])

        assert result.exit_code == 0
        output = plain(result.output)
        assert "Dependency Stats" in output
        assert "create-doc.md" in output


class TestStateCommands:
    """Tests for `kiro-agents state`."""

    def test_show_without_state(self, project_root: Path) -> None:
        result = runner.invoke(app, ["state", "show", "-r", str(project_root)])

        assert result.exit_code == 0
        assert "No saved state" in plain(result.output)

    def test_show_saved_state(self, project_root: Path) -> None:
        state_file = project_root / ".kiro" / "agent-state.json"
        state_file.parent.mkdir(parents=True)
        state_file.write_text(
            json.dumps(
                {
                    "version": "1.0.0",
                    "saved_at": "2026-01-01T00:00:00+00:00",
                    "active_agents": ["pm"],
                    "sessions": [
                        {
                            "agent_id": "pm",
                            "created_at": "2026-01-01T00:00:00+00:00",
                            "last_activity": "2026-01-01T00:05:00+00:00",
                            "expires_at": "2026-01-01T00:35:00+00:00",
                        }
                    ],
                }
            )
        )

        result = runner.invoke(app, ["state", "show", "-r", str(project_root)])

        assert result.exit_code == 0
        output = plain(result.output)
        assert "Activation State" in output
        assert "Sessions" in output
        assert "pm" in output

    def test_show_corrupt_state(self, project_root: Path) -> None:
        state_file = project_root / ".kiro" / "agent-state.json"
        state_file.parent.mkdir(parents=True)
        state_file.write_text("{not json")

        result = runner.invoke(app, ["state", "show", "-r", str(project_root)])

        assert result.exit_code == 1
        assert "State Unreadable" in plain(result.output)
