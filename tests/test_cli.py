"""
命令行接口测试

通过 run() 直接调用，检查输出和退出码。
"""

import json
import os
import stat
import sys
from unittest.mock import patch

import pytest

from sshperms import __version__
from sshperms.cli.argument_parser import create_parser, parse_args
from sshperms.cli.main import (
    EXIT_NEGATIVE,
    EXIT_NOT_FOUND,
    EXIT_OK,
    EXIT_SYSTEM_ERROR,
    EXIT_UNEXPECTED,
    run,
)
from sshperms.exceptions import IoError

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX权限位测试")


def _mode(path):
    return stat.S_IMODE(os.stat(path).st_mode)


class TestArgumentParser:
    """测试参数解析"""

    def test_check_key(self):
        args = parse_args(["check-key", "/tmp/id_rsa", "--format", "json"])
        assert args.subcommand == "check-key"
        assert args.path == "/tmp/id_rsa"
        assert args.format == "json"
        assert args.backend is None

    def test_audit_defaults(self):
        args = parse_args(["audit"])
        assert args.ssh_dir is None
        assert args.fix is False
        assert args.format == "table"

    def test_audit_fix(self):
        args = parse_args(["audit", "--fix", "--ssh-dir", "/tmp/keys", "--backend", "posix"])
        assert args.fix is True
        assert args.ssh_dir == "/tmp/keys"
        assert args.backend == "posix"

    def test_invalid_format(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["check-dir", "--format", "yaml"])
        assert exc_info.value.code == 2

    def test_no_subcommand_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_args([])
        assert exc_info.value.code == 0
        assert "check-key" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


@posix_only
class TestCommands:
    """测试命令执行和退出码"""

    def test_check_open_key(self, make_key, capsys):
        key = make_key(mode=0o644)
        code = run(["check-key", str(key), "--format", "json", "--backend", "posix"])

        assert code == EXIT_NEGATIVE
        data = json.loads(capsys.readouterr().out)
        assert data["data"]["isValid"] is False
        assert data["data"]["currentMode"] == "644"
        assert data["data"]["expectedMode"] == "600"

    def test_check_correct_key(self, make_key, capsys):
        key = make_key(mode=0o600)
        assert run(["check-key", str(key), "--format", "quiet"]) == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_missing_key(self, ssh_dir, capsys):
        code = run(["check-key", str(ssh_dir / "id_missing"), "--format", "json"])
        assert code == EXIT_NOT_FOUND
        data = json.loads(capsys.readouterr().err)
        assert data["data"]["error_code"] == "USER_RESOURCE_NOT_FOUND"

    def test_fix_key(self, make_key, capsys):
        key = make_key(mode=0o644)
        assert run(["fix-key", str(key)]) == EXIT_OK
        assert _mode(key) == 0o600
        assert "Permissions set to 600" in capsys.readouterr().out

    def test_check_missing_directory(self, tmp_path, capsys):
        code = run(["check-dir", "--ssh-dir", str(tmp_path / ".ssh"), "--format", "quiet"])
        assert code == EXIT_NEGATIVE
        assert "SSH directory does not exist" in capsys.readouterr().out

    def test_fix_directory(self, tmp_path):
        target = tmp_path / ".ssh"
        assert run(["fix-dir", "--ssh-dir", str(target)]) == EXIT_OK
        assert _mode(target) == 0o700

    def test_ssh_dir_from_environment(self, tmp_path, monkeypatch):
        target = tmp_path / "keys"
        monkeypatch.setenv("SSHPERMS_SSH_DIR", str(target))
        assert run(["fix-dir"]) == EXIT_OK
        assert target.is_dir()

    def test_audit(self, ssh_dir, make_key, capsys):
        make_key("id_rsa", mode=0o644)
        code = run(["audit", "--ssh-dir", str(ssh_dir), "--format", "json"])
        assert code == EXIT_NEGATIVE
        data = json.loads(capsys.readouterr().out)
        assert data["data"]["invalid"] == 1
        assert "fixes" not in data["data"]

    def test_audit_fix(self, ssh_dir, make_key, capsys):
        key = make_key("id_rsa", mode=0o644)
        os.chmod(ssh_dir, 0o755)
        code = run(["audit", "--fix", "--ssh-dir", str(ssh_dir), "--format", "json"])

        assert code == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["data"]["isHealthy"] is True
        assert data["data"]["fixes"]["fixed"] == 2
        assert _mode(key) == 0o600

    def test_invalid_environment(self, make_key, monkeypatch, capsys):
        monkeypatch.setenv("SSHPERMS_BACKEND", "solaris")
        assert run(["check-key", str(make_key())]) == EXIT_NEGATIVE
        assert "SSHPERMS_BACKEND" in capsys.readouterr().err

    def test_io_error(self, make_key):
        key = make_key(mode=0o644)
        with patch("sshperms.backends.posix.os.chmod", side_effect=PermissionError("denied")):
            assert run(["fix-key", str(key), "--format", "quiet"]) == EXIT_SYSTEM_ERROR

    def test_unexpected_error(self, make_key, capsys):
        with patch("sshperms.cli.main.PermissionService.check_key_permissions",
                   side_effect=RuntimeError("boom")):
            assert run(["check-key", str(make_key()), "--format", "quiet"]) == EXIT_UNEXPECTED
        assert "boom" in capsys.readouterr().err

    def test_unexpected_error_is_logged(self, make_key):
        with patch("sshperms.cli.main.PermissionService.check_key_permissions",
                   side_effect=RuntimeError("boom")), \
                patch("sshperms.cli.main.get_logger") as mock_get_logger:
            assert run(["check-key", str(make_key()), "--format", "quiet"]) == EXIT_UNEXPECTED

        mock_get_logger.return_value.error.assert_called_once()
        error = mock_get_logger.return_value.error.call_args.kwargs["error"]
        assert error.error_code == "INTERNAL_UNEXPECTED_ERROR"

    def test_io_error_exit_code_covers_tool_failures(self, make_key):
        with patch("sshperms.cli.main.PermissionService.check_key_permissions",
                   side_effect=IoError("Failed to run icacls")):
            assert run(["check-key", str(make_key()), "--format", "quiet"]) == EXIT_SYSTEM_ERROR
