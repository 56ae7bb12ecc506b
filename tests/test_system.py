"""
系统环境工具和后端选择测试
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from sshperms.backends import (
    PosixPermissionBackend,
    WindowsAclPermissionBackend,
    get_backend,
)
from sshperms.exceptions import HomeDirectoryNotFoundError
from sshperms.types.enums import BackendType, OutputFormat, PlatformType
from sshperms.utils.system import (
    get_current_platform,
    get_current_username,
    get_home_directory,
    get_ssh_directory,
)


class TestPlatformDetection:
    """测试平台检测功能"""

    @pytest.mark.parametrize("system,expected", [
        ("Windows", PlatformType.WINDOWS),
        ("Darwin", PlatformType.MACOS),
        ("Linux", PlatformType.LINUX),
        ("SunOS", PlatformType.UNKNOWN),
    ])
    def test_platform_mapping(self, system, expected):
        with patch("platform.system", return_value=system):
            assert get_current_platform() == expected

    def test_only_windows_is_windows(self):
        assert PlatformType.WINDOWS.is_windows
        assert not PlatformType.LINUX.is_windows
        assert not PlatformType.MACOS.is_windows


class TestIdentity:
    """测试当前账户名"""

    def test_windows_prefers_username_variable(self, monkeypatch):
        monkeypatch.setenv("USERNAME", "alice")
        with patch("sshperms.utils.system.get_current_platform", return_value=PlatformType.WINDOWS):
            assert get_current_username() == "alice"

    def test_posix_uses_getpass(self, monkeypatch):
        monkeypatch.setenv("USERNAME", "alice")
        with patch("sshperms.utils.system.get_current_platform", return_value=PlatformType.LINUX), \
                patch("sshperms.utils.system.getpass.getuser", return_value="bob"):
            assert get_current_username() == "bob"


class TestDirectories:
    """测试主目录和SSH目录解析"""

    def test_ssh_directory_under_home(self, monkeypatch, tmp_path):
        with patch("pathlib.Path.home", return_value=tmp_path):
            assert get_ssh_directory() == tmp_path / ".ssh"

    def test_override_expands_user(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("USERPROFILE", str(tmp_path))
        assert get_ssh_directory("~/custom") == Path(str(tmp_path)) / "custom"

    def test_home_failure(self):
        with patch("pathlib.Path.home", side_effect=KeyError("HOME")):
            with pytest.raises(HomeDirectoryNotFoundError):
                get_home_directory()


class TestBackendSelection:
    """测试后端选择"""

    def test_auto_on_windows(self):
        assert isinstance(get_backend(platform=PlatformType.WINDOWS), WindowsAclPermissionBackend)

    @pytest.mark.parametrize("platform", [PlatformType.LINUX, PlatformType.MACOS, PlatformType.UNKNOWN])
    def test_auto_elsewhere(self, platform):
        assert isinstance(get_backend(BackendType.AUTO, platform=platform), PosixPermissionBackend)

    def test_explicit_backend_ignores_platform(self):
        assert isinstance(get_backend("windows", platform=PlatformType.LINUX), WindowsAclPermissionBackend)
        assert isinstance(get_backend("POSIX", platform=PlatformType.WINDOWS), PosixPermissionBackend)

    def test_acl_tool_is_passed(self):
        backend = get_backend(BackendType.WINDOWS, acl_tool="icacls.exe")
        assert backend.tool == "icacls.exe"

    def test_invalid_backend(self):
        with pytest.raises(ValueError):
            get_backend("solaris")


class TestEnums:
    """测试枚举解析"""

    def test_backend_values(self):
        assert BackendType.get_all_values() == ["auto", "posix", "windows"]

    def test_output_format_from_string(self):
        assert OutputFormat.from_string("JSON") == OutputFormat.JSON
        with pytest.raises(ValueError):
            OutputFormat.from_string("yaml")
