"""
Tests for capability adapters, mocks and the toolbox.
"""

import sys

import pytest

from devstrap.adapters.mock import MockConfigStore, MockFetcher, MockKeyGenerator, MockPackageInstaller
from devstrap.adapters.packages import apt as apt_module
from devstrap.adapters.packages.apt import AptInstaller
from devstrap.adapters.registry import Toolbox, UnsupportedInstaller
from devstrap.adapters.shell.command import CommandResult, run_command
from devstrap.adapters.vcs import git as git_module
from devstrap.adapters.vcs.git import GitConfigStore
from devstrap.core.errors import BootstrapEnvironmentError, ExternalToolError

# ── run_command ──────────────────────────────────────────────────


class TestRunCommand:
    def test_captures_output(self):
        result = run_command([sys.executable, "-c", "print('hi')"])
        assert result.ok
        assert result.stdout == "hi"
        assert result.duration_ms >= 0

    def test_nonzero_without_check(self):
        result = run_command([sys.executable, "-c", "import sys; sys.exit(3)"], check=False)
        assert result.returncode == 3
        assert not result.ok

    def test_nonzero_with_check(self):
        with pytest.raises(ExternalToolError) as exc_info:
            run_command([sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(2)"])
        assert exc_info.value.returncode == 2
        assert exc_info.value.stderr == "boom"

    def test_missing_command(self):
        with pytest.raises(ExternalToolError, match="not found"):
            run_command(["devstrap-no-such-command"])

    def test_timeout(self):
        with pytest.raises(ExternalToolError, match="timed out"):
            run_command([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.5)


# ── Real adapters (command construction) ─────────────────────────


class _Recorder:
    def __init__(self, results=None):
        self.calls = []
        self.results = results or {}

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        return self.results.get(args[0] if args[0] != "sudo" else args[1], CommandResult(args=list(args)))


class TestAptInstaller:
    def test_refresh_once(self, monkeypatch):
        recorder = _Recorder()
        monkeypatch.setattr(apt_module, "run_command", recorder)
        monkeypatch.setattr(apt_module, "_sudo", lambda: [])

        installer = AptInstaller()
        installer.refresh()
        installer.refresh()

        assert recorder.calls == [["apt-get", "update", "-qq"]]

    def test_is_installed(self, monkeypatch):
        recorder = _Recorder({"dpkg-query": CommandResult(stdout="install ok installed")})
        monkeypatch.setattr(apt_module, "run_command", recorder)
        assert AptInstaller().is_installed("git")

    def test_install(self, monkeypatch):
        recorder = _Recorder()
        monkeypatch.setattr(apt_module, "run_command", recorder)
        monkeypatch.setattr(apt_module, "_sudo", lambda: ["sudo"])

        AptInstaller().install("tmux")

        assert recorder.calls == [["sudo", "apt-get", "install", "-y", "tmux"]]


class TestGitConfigStore:
    def test_unset_key(self, monkeypatch):
        monkeypatch.setattr(git_module, "run_command", lambda args, **kw: CommandResult(args=args, returncode=1))
        assert GitConfigStore().get("user.email") is None

    def test_get_value(self, monkeypatch):
        monkeypatch.setattr(git_module, "run_command", lambda args, **kw: CommandResult(args=args, stdout="me@x.org"))
        assert GitConfigStore().get("user.email") == "me@x.org"

    def test_set(self, monkeypatch):
        recorder = _Recorder()
        monkeypatch.setattr(git_module, "run_command", recorder)
        GitConfigStore().set("core.editor", "vim")
        assert recorder.calls == [["git", "config", "--global", "core.editor", "vim"]]

    def test_home_isolates_global_file(self, monkeypatch, tmp_path):
        seen = []

        def fake_run(args, **kwargs):
            seen.append(kwargs["env"])
            return CommandResult(args=args, returncode=1)

        monkeypatch.setenv("XDG_CONFIG_HOME", "/real/.config")
        monkeypatch.setenv("GIT_CONFIG_GLOBAL", "/real/.gitconfig")
        monkeypatch.setattr(git_module, "run_command", fake_run)

        store = GitConfigStore(home=tmp_path)
        store.set("core.editor", "vim")
        store.get("user.email")

        assert [env["HOME"] for env in seen] == [str(tmp_path), str(tmp_path)]
        assert all("XDG_CONFIG_HOME" not in env and "GIT_CONFIG_GLOBAL" not in env for env in seen)

    def test_no_home_keeps_environment(self, monkeypatch):
        seen = []
        monkeypatch.setattr(git_module, "run_command", lambda args, **kw: seen.append(kw["env"]) or CommandResult(args=args))
        GitConfigStore().set("core.editor", "vim")
        assert seen == [None]


# ── Mocks ────────────────────────────────────────────────────────


class TestMocks:
    def test_installer(self):
        installer = MockPackageInstaller(installed={"git"})
        assert installer.is_installed("git")
        installer.install("tmux")
        assert installer.is_installed("tmux")
        assert installer.call_log == [("install", ("tmux",))]

    def test_set_failure(self):
        installer = MockPackageInstaller()
        installer.set_failure("bad", "no such package")
        with pytest.raises(ExternalToolError, match="no such package"):
            installer.install("bad")

    def test_reset(self):
        config = MockConfigStore()
        config.set("a", "1")
        config.reset()
        assert config.call_count == 0
        assert config.get("a") == "1"

    def test_key_generator_writes_pair(self, tmp_path):
        keys = MockKeyGenerator()
        keys.generate(tmp_path / "id_test", comment="me@x.org")
        assert (tmp_path / "id_test").is_file()
        assert "me@x.org" in (tmp_path / "id_test.pub").read_text()
        assert keys.scan_host("github.com").startswith("github.com ")
        assert keys.probe("git@github.com")

    def test_fetcher(self, tmp_path):
        fetcher = MockFetcher()
        fetcher.download("https://example.com/x", tmp_path / "x")
        fetcher.clone("https://example.com/repo", tmp_path / "repo")
        assert (tmp_path / "x").is_file()
        assert (tmp_path / "repo" / ".git").is_dir()


# ── Toolbox ──────────────────────────────────────────────────────


class TestToolbox:
    def test_mock_which_uses_commands_only(self):
        toolbox = Toolbox.mock_toolbox(commands={"fdfind": "/usr/bin/fdfind"})
        assert toolbox.mock
        assert toolbox.which("fdfind") == "/usr/bin/fdfind"
        assert not toolbox.command_exists("sh")

    def test_real_toolbox_uses_host_manager(self):
        toolbox = Toolbox.real("apt")
        assert not toolbox.mock
        assert isinstance(toolbox.installer, AptInstaller)

    def test_real_toolbox_binds_git_config_to_home(self, tmp_path):
        toolbox = Toolbox.real("apt", home=tmp_path)
        assert isinstance(toolbox.config, GitConfigStore)
        assert toolbox.config.home == tmp_path

    def test_unknown_manager_gets_unsupported_installer(self):
        toolbox = Toolbox.real(None)
        assert isinstance(toolbox.installer, UnsupportedInstaller)
        with pytest.raises(BootstrapEnvironmentError):
            toolbox.installer.install("git")

    def test_status(self):
        status = Toolbox.mock_toolbox().status()
        assert set(status) == {"installer", "keys", "config", "fetcher"}
        assert status["installer"]["available"]
        assert status["keys"]["type"] == "MockKeyGenerator"
