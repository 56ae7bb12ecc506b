"""
POSIX权限后端

基于权限位（stat/chmod）实现检查和修复：
- 只比较低9位（所有者/组/其他 × 读/写/执行）
- 必须完全相等，更严格的权限同样视为不符合
- 修复后重新读取元数据验证，设置调用成功本身不代表结果正确
"""

import logging
import os
import stat
from pathlib import Path
from typing import Union

from ..exceptions import IoError
from ..models.results import CheckResult, FixResult
from ..policy import AccessLevel, format_mode
from ..types.enums import PlatformType, ResourceKind
from .base import PermissionBackend

logger = logging.getLogger(__name__)


class PosixPermissionBackend(PermissionBackend):
    """基于权限位的后端（Linux、macOS等）"""

    platform = PlatformType.LINUX

    def check(self, path: Union[str, Path], level: AccessLevel) -> CheckResult:
        path = Path(path)
        self._require_exists(path, level)

        mode = self._read_mode(path, level, "read")
        mode_str = format_mode(mode)
        expected = self.expected_descriptor(level)
        is_valid = mode == level.posix_mode

        if is_valid:
            message = f"{level.label} permissions are correct"
        else:
            message = f"{level.label} permissions are {mode_str} but should be {expected}."
            if level.kind == ResourceKind.KEY_FILE:
                message += " File is too accessible."

        logger.debug("检查 %s: 当前 %s, 期望 %s", path, mode_str, expected)
        return CheckResult(
            is_valid=is_valid,
            current_mode=mode_str,
            expected_mode=expected,
            message=message,
        )

    def fix(self, path: Union[str, Path], level: AccessLevel,
            create_if_missing: bool = False) -> FixResult:
        path = Path(path)
        self._prepare(path, level, create_if_missing)

        try:
            os.chmod(path, level.posix_mode)
        except OSError as e:
            raise IoError(
                f"Failed to set permissions: {e}",
                path=path,
                operation="chmod",
                original_error=e,
            ) from e

        # 重新读取，确认实际生效的权限位
        new_mode = self._read_mode(path, level, "verify")
        mode_str = format_mode(new_mode)
        success = new_mode == level.posix_mode

        if success:
            message = f"Permissions set to {mode_str}"
            logger.info("已将 %s 的权限设置为 %s", path, mode_str)
        else:
            message = (f"Permissions are {mode_str} after update, "
                       f"expected {self.expected_descriptor(level)}")
            logger.warning("设置 %s 的权限后验证失败: %s", path, mode_str)

        return FixResult(success=success, message=message, new_mode=mode_str)

    @staticmethod
    def _read_mode(path: Path, level: AccessLevel, action: str) -> int:
        """读取低9位权限位，操作系统错误转换为IoError"""
        try:
            return stat.S_IMODE(path.stat().st_mode) & 0o777
        except OSError as e:
            kind = "file" if level.kind == ResourceKind.KEY_FILE else "directory"
            raise IoError(
                f"Failed to {action} {kind} metadata: {e}",
                path=path,
                operation="stat",
                original_error=e,
            ) from e
