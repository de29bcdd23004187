"""
Tests for host and role detection.
"""

from pathlib import Path

from devstrap.core.context import Role
from devstrap.core.host import detect_host, detect_role, parse_os_release, shell_name


def _os_release(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "os-release"
    path.write_text(text)
    return path


class TestDetectHost:
    def test_macos(self, tmp_path):
        host = detect_host(platform="darwin", os_release=tmp_path / "absent")
        assert host.os_family == "macos"
        assert host.package_manager == "brew"

    def test_ubuntu(self, tmp_path):
        path = _os_release(tmp_path, 'NAME="Ubuntu"\nID=ubuntu\nID_LIKE=debian\n')
        host = detect_host(platform="linux", os_release=path)
        assert host.os_family == "ubuntu"
        assert host.package_manager == "apt"
        assert host.supported

    def test_debian_derivative(self, tmp_path):
        path = _os_release(tmp_path, 'ID=linuxmint\nID_LIKE="ubuntu debian"\n')
        assert detect_host(platform="linux", os_release=path).package_manager == "apt"

    def test_unsupported_distribution(self, tmp_path):
        path = _os_release(tmp_path, 'ID=fedora\nID_LIKE="rhel centos"\n')
        host = detect_host(platform="linux", os_release=path)
        assert host.os_family == "fedora"
        assert host.package_manager is None
        assert not host.supported

    def test_no_os_release(self, tmp_path):
        host = detect_host(platform="linux", os_release=tmp_path / "absent")
        assert host.os_family == "unknown"
        assert not host.supported

    def test_parse_ignores_comments(self):
        assert parse_os_release("# c\nID='debian'\n\nbroken\n") == {"ID": "debian"}


class TestDetectRole:
    def test_ssh_session_is_vps(self):
        role = detect_role(environ={"SSH_CONNECTION": "1.2.3.4 22 5.6.7.8 22"}, platform="darwin")
        assert role == Role.VPS

    def test_macos_is_local(self):
        assert detect_role(environ={}, platform="darwin", systemd_running=lambda: True) == Role.LOCAL

    def test_systemd_server_is_vps(self):
        assert detect_role(environ={}, platform="linux", systemd_running=lambda: True) == Role.VPS

    def test_default_local(self):
        assert detect_role(environ={}, platform="linux", systemd_running=lambda: False) == Role.LOCAL


class TestShellName:
    def test_basename(self):
        assert shell_name({"SHELL": "/usr/bin/zsh"}) == "zsh"

    def test_default_bash(self):
        assert shell_name({}) == "bash"
