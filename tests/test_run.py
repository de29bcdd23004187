"""
Tests for the run use case — planning, environment checks, ledger.
"""

from pathlib import Path

import pytest

from devstrap.adapters.mock import MockConfigStore, MockFetcher, MockKeyGenerator, MockPackageInstaller
from devstrap.adapters.registry import Toolbox
from devstrap.core.errors import BootstrapEnvironmentError, ConfigurationError
from devstrap.core.host import HostInfo
from devstrap.core.models.settings import DEFAULT_LOCAL_MODULES, DEFAULT_VPS_MODULES
from devstrap.core.modules import default_registry
from devstrap.core.persistence.audit import RunLedger
from devstrap.core.use_cases.run import RunOptions, check_environment, execute_run, prepare_run

UBUNTU = HostInfo(os_family="ubuntu", package_manager="apt")


def _real_toolbox(commands: dict[str, str]) -> Toolbox:
    """A non-mock toolbox whose PATH lookup is fixed."""
    return Toolbox(MockPackageInstaller(), MockKeyGenerator(), MockConfigStore(), MockFetcher(), commands=commands)


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setenv("SHELL", "/bin/bash")
    path = tmp_path / "devstrap.yml"
    path.write_text("version: 1\n")
    return path


def _options(config_file: Path, home: Path, **kwargs) -> RunOptions:
    kwargs.setdefault("mock", True)
    return RunOptions(config_path=config_file, home=home, **kwargs)


class TestCheckEnvironment:
    def test_requirement_provided_by_earlier_module(self):
        modules = default_registry().resolve(["packages", "tmux", "git"])
        check_environment(modules, UBUNTU, _real_toolbox({}))

    def test_missing_command(self):
        modules = default_registry().resolve(["tmux"])
        with pytest.raises(BootstrapEnvironmentError, match="git \\(needed by tmux\\)"):
            check_environment(modules, UBUNTU, _real_toolbox({}))

    def test_command_on_path(self):
        modules = default_registry().resolve(["tmux"])
        check_environment(modules, UBUNTU, _real_toolbox({"git": "/usr/bin/git"}))

    def test_unsupported_host_with_packages(self):
        modules = default_registry().resolve(["packages"])
        host = HostInfo(os_family="fedora")
        with pytest.raises(BootstrapEnvironmentError, match="--skip packages"):
            check_environment(modules, host, _real_toolbox({}))

    def test_unsupported_host_without_packages(self):
        modules = default_registry().resolve(["shell"])
        check_environment(modules, HostInfo(os_family="fedora"), _real_toolbox({}))

    def test_mock_toolbox_skips_checks(self):
        modules = default_registry().resolve(["packages", "ssh"])
        check_environment(modules, HostInfo(os_family="fedora"), Toolbox.mock_toolbox())


class TestPrepareRun:
    def test_local_defaults(self, config_file, home):
        plan = prepare_run(_options(config_file, home, role="local"), host=UBUNTU)

        assert plan.module_names == DEFAULT_LOCAL_MODULES
        assert plan.toolbox.mock
        assert plan.ctx.home == home
        assert plan.ctx.backup_root == home / ".bootstrap-backups"
        assert plan.ctx.configs_dir == config_file.parent.resolve() / "configs"
        assert plan.ctx.package_manager == "apt"
        assert plan.ctx.shell == "bash"

    def test_vps_defaults_include_ssh(self, config_file, home):
        plan = prepare_run(_options(config_file, home, role="vps"), host=UBUNTU)
        assert plan.module_names == DEFAULT_VPS_MODULES
        assert "claude" not in plan.module_names

    def test_github_key_on_local(self, config_file, home):
        plan = prepare_run(_options(config_file, home, role="local", setup_github_key=True), host=UBUNTU)
        assert plan.module_names[-1] == "ssh"

    def test_only_and_skip(self, config_file, home):
        options = _options(config_file, home, role="local", only=["shell", "git", "tmux"], skip=["git"])
        assert prepare_run(options, host=UBUNTU).module_names == ["shell", "tmux"]

    def test_unknown_module(self, config_file, home):
        with pytest.raises(ConfigurationError, match="nope"):
            prepare_run(_options(config_file, home, role="local", only=["nope"]), host=UBUNTU)

    def test_ssh_flags_override_settings(self, config_file, home):
        options = _options(
            config_file, home, role="vps", key_name="id_work", email="me@x.org", no_alias=True, force=True
        )
        ssh = prepare_run(options, host=UBUNTU).settings.ssh
        assert ssh.key_name == "id_work"
        assert ssh.email == "me@x.org"
        assert ssh.use_alias is False
        assert ssh.force is True

    def test_real_toolbox_checks_environment(self, config_file, home):
        options = _options(config_file, home, role="local", only=["packages"], mock=False)
        with pytest.raises(BootstrapEnvironmentError):
            prepare_run(options, host=HostInfo(os_family="fedora"))

    def test_home_override_binds_git_config(self, config_file, home):
        options = _options(config_file, home, role="local", only=["shell"], mock=False)
        plan = prepare_run(options, host=UBUNTU)

        assert not plan.toolbox.mock
        assert plan.toolbox.config.home == home

    def test_plan_to_dict(self, config_file, home, tmp_path):
        options = _options(config_file, home, role="local", dry_run=True, backup_root=tmp_path / "b")
        data = prepare_run(options, host=UBUNTU).to_dict()

        assert data["dry_run"] is True
        assert data["backup_dir"].startswith(str(tmp_path / "b"))
        assert data["settings_file"] == str(config_file)


class TestExecuteRun:
    def test_real_run_is_recorded(self, config_file, home, tmp_path):
        plan = prepare_run(_options(config_file, home, role="local", only=["shell"]), host=UBUNTU)
        ledger = RunLedger(path=tmp_path / "history.ndjson")

        report = execute_run(plan, run_id="run-test", ledger=ledger)

        assert report.status == "ok"
        (entry,) = ledger.read_all()
        assert entry.run_id == "run-test"
        assert entry.modules == ["shell"]
        assert entry.completed == ["shell"]
        assert entry.applied == report.applied
        assert entry.context == {"mock": True, "os_family": "ubuntu"}

    def test_default_ledger_under_backup_root(self, config_file, home):
        plan = prepare_run(_options(config_file, home, role="local", only=["shell"]), host=UBUNTU)
        execute_run(plan)
        assert RunLedger(backup_root=home / ".bootstrap-backups").entry_count() == 1

    def test_dry_run_not_recorded(self, config_file, home, tmp_path):
        options = _options(config_file, home, role="local", only=["shell"], dry_run=True)
        plan = prepare_run(options, host=UBUNTU)
        ledger = RunLedger(path=tmp_path / "history.ndjson")

        report = execute_run(plan, ledger=ledger)

        assert report.would_apply == 2
        assert not ledger.path.exists()
        assert not (home / ".bashrc").exists()
