"""
Windows ACL权限后端测试

使用假的ACL工具运行器，测试可以在任何平台上运行。
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from sshperms.backends.windows import (
    AclToolOutput,
    WindowsAclPermissionBackend,
    run_acl_tool,
)
from sshperms.exceptions import ExternalToolError, IoError, ResourceNotFoundError
from sshperms.policy import get_access_level
from sshperms.types.enums import ResourceKind

KEY = get_access_level(ResourceKind.KEY_FILE)
SSH_DIR = get_access_level(ResourceKind.SSH_DIRECTORY)


def _backend(runner):
    return WindowsAclPermissionBackend(runner=runner, username_provider=lambda: "alice")


class TestCheck:
    """测试ACL检查"""

    def test_owner_only_key(self, make_key, fake_acl_runner, icacls_listing):
        key = make_key()
        runner = fake_acl_runner(icacls_listing(key, "DESKTOP-01\\alice:(F)", "NT AUTHORITY\\SYSTEM:(F)"))
        result = _backend(runner).check(key, KEY)

        assert result.is_valid
        assert result.current_mode == "ACL"
        assert result.expected_mode == "User only"
        assert result.message == "Key permissions are correct (restricted to current user)"
        assert runner.calls == [[str(key)]]

    def test_key_shared_with_other_user(self, make_key, fake_acl_runner, icacls_listing):
        key = make_key()
        runner = fake_acl_runner(icacls_listing(key, "DESKTOP-01\\alice:(F)", "BUILTIN\\Users:(RX)"))
        result = _backend(runner).check(key, KEY)

        assert not result.is_valid
        assert result.current_mode == "ACL"
        assert "BUILTIN\\Users" in result.message
        assert result.message.startswith("Key is accessible by other users")

    def test_user_without_access(self, make_key, fake_acl_runner, icacls_listing):
        key = make_key()
        runner = fake_acl_runner(icacls_listing(key, "NT AUTHORITY\\SYSTEM:(F)"))
        result = _backend(runner).check(key, KEY)
        assert not result.is_valid
        assert result.message == "Unable to verify Key permissions"

    def test_directory_is_parsed_too(self, ssh_dir, fake_acl_runner, icacls_listing):
        runner = fake_acl_runner(icacls_listing(ssh_dir, "DESKTOP-01\\alice:(OI)(CI)(F)", "Everyone:(OI)(CI)(R)"))
        result = _backend(runner).check(ssh_dir, SSH_DIR)
        assert not result.is_valid
        assert "Everyone" in result.message

    def test_tool_failure_is_soft(self, make_key, fake_acl_runner):
        """测试工具返回失败时得到否定结果而不是异常"""
        key = make_key()
        runner = fake_acl_runner(fail_on=["query"])
        result = _backend(runner).check(key, KEY)

        assert result.is_valid is False
        assert result.current_mode is None
        assert result.expected_mode == "User only"
        assert result.message == "Failed to check Key permissions: Access is denied."

    def test_missing_key_raises_before_running_tool(self, ssh_dir, fake_acl_runner):
        runner = fake_acl_runner()
        with pytest.raises(ResourceNotFoundError):
            _backend(runner).check(ssh_dir / "id_missing", KEY)
        assert runner.calls == []


class TestFix:
    """测试ACL修复"""

    def test_fix_arguments(self, make_key, fake_acl_runner, icacls_listing):
        key = make_key()
        runner = fake_acl_runner(
            icacls_listing(key, "DESKTOP-01\\alice:(I)(F)", "BUILTIN\\Users:(I)(RX)"),
            listing_after_fix=icacls_listing(key, "DESKTOP-01\\alice:(F)"),
        )
        result = _backend(runner).fix(key, KEY)

        assert runner.calls[0] == [str(key), "/inheritance:r", "/grant:r", "alice:F"]
        assert result.success
        assert result.new_mode == "User only"
        assert result.message == "Key permissions restricted to current user (alice) only"

    def test_fix_removes_leftover_grants(self, make_key, fake_acl_runner, icacls_listing):
        """测试删除继承项后残留的其他账户显式授权也被移除"""
        key = make_key()
        runner = fake_acl_runner(
            icacls_listing(key, "DESKTOP-01\\alice:(F)", "DESKTOP-01\\bob:(R)"),
            listing_after_fix=icacls_listing(
                key, "DESKTOP-01\\alice:(F)", "DESKTOP-01\\bob:(R)", "NT AUTHORITY\\SYSTEM:(F)"),
        )
        backend = _backend(runner)
        result = backend.fix(key, KEY)

        assert result.success
        assert [str(key), "/remove", "DESKTOP-01\\bob"] in runner.modify_calls
        assert backend.check(key, KEY).is_valid

    def test_fix_removes_deny_entries(self, make_key, fake_acl_runner, icacls_listing):
        """测试拒绝项也通过 /remove 删除（/remove:g 只删除授权项）"""
        key = make_key()
        runner = fake_acl_runner(
            listing_after_fix=icacls_listing(key, "DESKTOP-01\\alice:(F)", "Everyone:(DENY)(W)"),
        )
        backend = _backend(runner)

        assert backend.fix(key, KEY).success
        assert [str(key), "/remove", "Everyone"] in runner.modify_calls
        assert backend.check(key, KEY).is_valid

    def test_principal_removed_once(self, ssh_dir, fake_acl_runner, icacls_listing):
        runner = fake_acl_runner(
            listing_after_fix=icacls_listing(
                ssh_dir, "DESKTOP-01\\alice:(OI)(CI)(F)", "Everyone:(OI)(CI)(IO)(F)", "Everyone:(F)"),
        )
        assert _backend(runner).fix(ssh_dir, SSH_DIR).success
        removals = [call for call in runner.modify_calls if call[1] == "/remove"]
        assert removals == [[str(ssh_dir), "/remove", "Everyone"]]

    def test_fix_fails_when_entry_survives_removal(self, make_key, fake_acl_runner, icacls_listing):
        """测试删除后复查仍有其他主体时报告失败"""
        key = make_key()
        runner = fake_acl_runner(
            listing_after_fix=icacls_listing(key, "DESKTOP-01\\alice:(F)", "Everyone:(DENY)(W)"),
            kept=["(DENY)"],
        )
        backend = _backend(runner)
        result = backend.fix(key, KEY)

        assert result.success is False
        assert result.new_mode is None
        assert result.message == "Key is still accessible by other users (Everyone) after fix"
        assert runner.calls[-1] == [str(key)]
        assert not backend.check(key, KEY).is_valid

    def test_fix_fails_when_user_not_granted(self, make_key, fake_acl_runner, icacls_listing):
        key = make_key()
        runner = fake_acl_runner(listing_after_fix=icacls_listing(key, "NT AUTHORITY\\SYSTEM:(F)"))
        result = _backend(runner).fix(key, KEY)

        assert result.success is False
        assert result.message == "Unable to verify Key permissions after fix"

    def test_verification_query_failure_is_reported(self, make_key, fake_acl_runner):
        key = make_key()
        runner = fake_acl_runner(fail_on=["query"])
        result = _backend(runner).fix(key, KEY)

        assert result.success is False
        assert result.message == "Failed to set permissions: Access is denied."

    def test_check_after_fix_is_valid(self, make_key, fake_acl_runner, icacls_listing):
        key = make_key()
        runner = fake_acl_runner(
            icacls_listing(key, "DESKTOP-01\\alice:(I)(F)", "Everyone:(I)(R)"),
            listing_after_fix=icacls_listing(key, "DESKTOP-01\\alice:(F)"),
        )
        backend = _backend(runner)
        assert not backend.check(key, KEY).is_valid
        assert backend.fix(key, KEY).success
        assert backend.check(key, KEY).is_valid

    def test_tool_failure_is_reported(self, make_key, fake_acl_runner):
        key = make_key()
        runner = fake_acl_runner(fail_on=["/inheritance:r"])
        result = _backend(runner).fix(key, KEY)

        assert result.success is False
        assert result.new_mode is None
        assert result.message == "Failed to set permissions: Access is denied."

    def test_removal_failure_is_reported(self, make_key, fake_acl_runner, icacls_listing):
        key = make_key()
        runner = fake_acl_runner(
            listing_after_fix=icacls_listing(key, "DESKTOP-01\\alice:(F)", "DESKTOP-01\\bob:(R)"),
            fail_on=["/remove"],
        )
        result = _backend(runner).fix(key, KEY)
        assert not result.success

    def test_fix_missing_key_raises(self, ssh_dir, fake_acl_runner):
        runner = fake_acl_runner()
        with pytest.raises(ResourceNotFoundError):
            _backend(runner).fix(ssh_dir / "id_missing", KEY)
        assert runner.calls == []

    def test_fix_creates_directory(self, tmp_path, fake_acl_runner, icacls_listing):
        target = tmp_path / ".ssh"
        runner = fake_acl_runner(listing_after_fix=icacls_listing(target, "DESKTOP-01\\alice:(OI)(CI)(F)"))
        result = _backend(runner).fix(target, SSH_DIR, create_if_missing=True)

        assert target.is_dir()
        assert result.success
        assert result.message == "SSH directory permissions restricted to current user (alice) only"


class TestRunAclTool:
    """测试ACL工具进程调用"""

    def test_success(self):
        completed = MagicMock(returncode=0, stdout="processed file: x\n", stderr="")
        with patch("sshperms.backends.windows.subprocess.run", return_value=completed) as mock_run:
            output = run_acl_tool(["C:\\x", "/inheritance:r"])

        assert output == AclToolOutput(True, "processed file: x\n", "", 0)
        cmd = mock_run.call_args[0][0]
        assert cmd == ["icacls", "C:\\x", "/inheritance:r"]
        assert mock_run.call_args[1]["shell"] is False

    def test_nonzero_exit(self):
        completed = MagicMock(returncode=5, stdout="", stderr="Access is denied.\n")
        with patch("sshperms.backends.windows.subprocess.run", return_value=completed):
            output = run_acl_tool(["C:\\x"], tool="icacls.exe")

        assert not output.success
        assert output.returncode == 5
        assert output.diagnostic == "Access is denied."

    def test_diagnostic_falls_back_to_stdout(self):
        output = AclToolOutput(False, "C:\\x: The system cannot find the file specified.\n", "", 2)
        assert output.diagnostic == "C:\\x: The system cannot find the file specified."

    def test_spawn_failure_raises(self):
        with patch("sshperms.backends.windows.subprocess.run",
                   side_effect=FileNotFoundError("No such file: 'icacls'")):
            with pytest.raises(ExternalToolError) as exc_info:
                run_acl_tool(["C:\\x"])

        assert isinstance(exc_info.value, IoError)
        assert exc_info.value.tool_name == "icacls"
        assert isinstance(exc_info.value.original_error, FileNotFoundError)

    def test_backend_uses_configured_tool(self, make_key):
        key = make_key()
        completed = subprocess.CompletedProcess(args=[], returncode=0,
                                                stdout=f"{key} alice:(F)\n", stderr="")
        with patch("sshperms.backends.windows.subprocess.run", return_value=completed) as mock_run:
            backend = WindowsAclPermissionBackend(tool="C:\\Windows\\System32\\icacls.exe",
                                                  username_provider=lambda: "alice")
            result = backend.check(key, KEY)

        assert result.is_valid
        assert mock_run.call_args[0][0] == ["C:\\Windows\\System32\\icacls.exe", str(key)]
