"""
Windows ACL权限后端

通过 icacls 检查和修复访问控制列表，目标状态为"仅当前用户"：
- 删除继承的访问控制项
- 授予当前账户完全控制，替换已有的显式授权
- 管理员组和SYSTEM账户不计入"其他用户"

工具运行失败（非零退出码）时返回否定结果而不是抛出异常，
工具无法启动时抛出 ExternalToolError（IoError 的子类）。
"""

import logging
import subprocess
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional, Sequence, Union

from ..exceptions import ExternalToolError
from ..models.results import CheckResult, FixResult
from ..policy import ACL_MARKER, OWNER_ONLY_DESCRIPTOR, AccessLevel
from ..types.enums import PlatformType
from ..utils.system import get_current_username
from .acl_parser import parse_icacls_output
from .base import PermissionBackend

logger = logging.getLogger(__name__)

DEFAULT_ACL_TOOL = "icacls"


class AclToolOutput(NamedTuple):
    """ACL工具一次运行的结果"""
    success: bool
    stdout: str
    stderr: str
    returncode: int = 0

    @property
    def diagnostic(self) -> str:
        """工具给出的诊断文本（icacls 有时把错误写到标准输出）"""
        return (self.stderr or self.stdout).strip()


AclToolRunner = Callable[[Sequence[str]], AclToolOutput]


def run_acl_tool(args: Sequence[str], tool: str = DEFAULT_ACL_TOOL) -> AclToolOutput:
    """
    运行ACL工具并等待结束

    Args:
        args: 传给工具的参数（第一个通常是目标路径）
        tool: 工具可执行文件

    Returns:
        AclToolOutput

    Raises:
        ExternalToolError: 工具无法启动
    """
    cmd: List[str] = [tool, *args]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            shell=False,
        )
    except OSError as e:
        raise ExternalToolError(
            f"Failed to run {tool}: {e}",
            tool_name=tool,
            original_error=e,
        ) from e

    return AclToolOutput(
        success=result.returncode == 0,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        returncode=result.returncode,
    )


class WindowsAclPermissionBackend(PermissionBackend):
    """基于 icacls 的ACL后端"""

    platform = PlatformType.WINDOWS

    def __init__(self, runner: Optional[AclToolRunner] = None,
                 username_provider: Optional[Callable[[], str]] = None,
                 tool: str = DEFAULT_ACL_TOOL):
        """
        Args:
            runner: 运行ACL工具的可调用对象，测试中可替换为返回固定输出的函数
            username_provider: 返回当前账户名的可调用对象
            tool: ACL工具可执行文件
        """
        self.tool = tool
        self._runner = runner or (lambda args: run_acl_tool(args, tool=self.tool))
        self._username_provider = username_provider or get_current_username

    def check(self, path: Union[str, Path], level: AccessLevel) -> CheckResult:
        path = Path(path)
        self._require_exists(path, level)

        output = self._runner([str(path)])
        if not output.success:
            message = f"Failed to check {level.label} permissions"
            if output.diagnostic:
                message += f": {output.diagnostic}"
            logger.warning("检查 %s 的ACL失败 (退出码 %s)", path, output.returncode)
            return CheckResult(
                is_valid=False,
                current_mode=None,
                expected_mode=OWNER_ONLY_DESCRIPTOR,
                message=message,
            )

        verdict = parse_icacls_output(output.stdout, str(path), self._username_provider())

        if verdict.is_valid:
            message = f"{level.label} permissions are correct (restricted to current user)"
        elif verdict.has_other_users:
            message = (f"{level.label} is accessible by other users "
                       f"({', '.join(verdict.other_principals)}). Consider restricting permissions.")
        else:
            message = f"Unable to verify {level.label} permissions"

        logger.debug("检查 %s 的ACL: %s", path, verdict)
        return CheckResult(
            is_valid=verdict.is_valid,
            current_mode=ACL_MARKER,
            expected_mode=OWNER_ONLY_DESCRIPTOR,
            message=message,
        )

    def fix(self, path: Union[str, Path], level: AccessLevel,
            create_if_missing: bool = False) -> FixResult:
        path = Path(path)
        self._prepare(path, level, create_if_missing)

        user = self._username_provider()
        output = self._runner([
            str(path),
            "/inheritance:r",   # 删除继承的访问控制项
            "/grant:r",         # 替换而不是追加显式授权
            f"{user}:F",
        ])

        if output.success:
            output = self._remove_other_principals(path, user)

        if not output.success:
            logger.warning("修复 %s 的ACL失败: %s", path, output.diagnostic)
            return FixResult(
                success=False,
                message=f"Failed to set permissions: {output.diagnostic}",
                new_mode=None,
            )

        # 重新读取ACL，只有复查通过才算修复成功
        verdict = parse_icacls_output(output.stdout, str(path), user)
        if not verdict.is_valid:
            if verdict.has_other_users:
                message = (f"{level.label} is still accessible by other users "
                           f"({', '.join(verdict.other_principals)}) after fix")
            else:
                message = f"Unable to verify {level.label} permissions after fix"
            logger.warning("修复后复查 %s 的ACL未通过: %s", path, verdict)
            return FixResult(success=False, message=message, new_mode=None)

        logger.info("已将 %s 的ACL限制为当前用户 %s", path, user)
        return FixResult(
            success=True,
            message=f"{level.label} permissions restricted to current user ({user}) only",
            new_mode=OWNER_ONLY_DESCRIPTOR,
        )

    def _remove_other_principals(self, path: Path, user: str) -> AclToolOutput:
        """删除其他主体残留的访问控制项，返回删除后的ACL列表

        /inheritance:r 只删除继承项，其他账户的显式授权和拒绝项需要单独移除。
        """
        listing = self._runner([str(path)])
        if not listing.success:
            return listing

        verdict = parse_icacls_output(listing.stdout, str(path), user)
        if not verdict.other_principals:
            return listing

        for principal in verdict.other_principals:
            output = self._runner([str(path), "/remove", principal])
            if not output.success:
                return output
            logger.info("已从 %s 的ACL中移除 %s", path, principal)
        return self._runner([str(path)])
