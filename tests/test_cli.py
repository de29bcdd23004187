"""
Tests for CLI commands — run, modules, history, and global options.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from devstrap.main import cli


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch) -> Path:
    """An empty cwd holding a minimal devstrap.yml."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SHELL", "/bin/bash")
    (tmp_path / "devstrap.yml").write_text("version: 1\n")
    (tmp_path / "home").mkdir()
    return tmp_path


def _run_args(workspace: Path, *extra: str) -> list[str]:
    return [
        "-c", str(workspace / "devstrap.yml"),
        "run", "--mock", "--role", "local", "--only", "shell",
        "--home", str(workspace / "home"),
        "--backup-root", str(workspace / "backups"),
        *extra,
    ]


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "bootstrap a developer workstation" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_missing_config_file(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", str(workspace / "nope.yml"), "modules"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestRunCommand:
    """Tests for the run command."""

    def test_dry_run_changes_nothing(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, _run_args(workspace, "--dry-run"))

        assert result.exit_code == 0
        assert "Summary" in result.output
        assert not (workspace / "home" / ".bashrc").exists()
        assert not (workspace / "backups").exists()

    def test_invalid_role(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["run", "--role", "desktop"])
        assert result.exit_code == 2

    def test_unknown_module(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, _run_args(workspace, "--skip", "nope", "--yes"))
        assert result.exit_code == 1
        assert "Unknown module" in result.output
        assert not (workspace / "home" / ".bashrc").exists()

    def test_declined_confirmation(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, _run_args(workspace), input="n\n")

        assert result.exit_code == 0
        assert "cancelled" in result.output
        assert not (workspace / "home" / ".bashrc").exists()

    def test_aborted_prompt_exits_130(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, _run_args(workspace), input="")
        assert result.exit_code == 130

    def test_confirmed_run_writes(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, _run_args(workspace), input="y\n")

        assert result.exit_code == 0
        assert "# Bootstrap history configuration" in (workspace / "home" / ".bashrc").read_text()
        assert (workspace / "backups" / "history.ndjson").is_file()
        assert "Next steps" in result.output

    def test_json_report(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["-q", *_run_args(workspace, "--yes", "--json")])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["plan"]["modules"] == ["shell"]
        assert data["plan"]["mock"] is True
        assert data["report"]["status"] == "ok"
        assert data["report"]["applied"] == 2


class TestModulesCommand:
    def test_lists_modules(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["modules"])

        assert result.exit_code == 0
        assert "packages" in result.output
        assert "local defaults: packages, dotfiles, tmux, shell, git, claude" in result.output

    def test_json(self, workspace: Path):
        (workspace / "devstrap.yml").write_text("modules:\n  vps: [shell, ssh]\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["modules", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [m["name"] for m in data["modules"]][0] == "packages"
        assert data["defaults"]["vps"] == ["shell", "ssh"]


class TestHistoryCommand:
    def test_empty(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["history", "--backup-root", str(workspace / "backups")])
        assert result.exit_code == 0
        assert "No runs recorded" in result.output

    def test_after_run(self, workspace: Path):
        runner = CliRunner()
        runner.invoke(cli, _run_args(workspace, "--yes"))

        result = runner.invoke(cli, ["history", "--backup-root", str(workspace / "backups"), "--json"])

        assert result.exit_code == 0
        entries = json.loads(result.stdout)
        assert len(entries) == 1
        assert entries[0]["modules"] == ["shell"]
        assert entries[0]["status"] == "ok"
        assert entries[0]["context"]["mock"] is True
