"""
平台权限后端

- PosixPermissionBackend: 权限位（stat/chmod）
- WindowsAclPermissionBackend: 访问控制列表（icacls）

get_backend() 根据配置或当前平台选择实现。
"""

from typing import Optional, Union

from ..types.enums import BackendType, PlatformType
from ..utils.system import get_current_platform
from .acl_parser import TRUSTED_PRINCIPALS, AclVerdict, parse_icacls_output
from .base import PermissionBackend
from .posix import PosixPermissionBackend
from .windows import (
    DEFAULT_ACL_TOOL,
    AclToolOutput,
    AclToolRunner,
    WindowsAclPermissionBackend,
    run_acl_tool,
)


def get_backend(backend: Union[str, BackendType] = BackendType.AUTO,
                platform: Optional[PlatformType] = None,
                acl_tool: str = DEFAULT_ACL_TOOL) -> PermissionBackend:
    """
    创建权限后端

    Args:
        backend: 后端类型，AUTO 表示按平台选择
        platform: 平台（默认检测当前平台），仅在 AUTO 时使用
        acl_tool: Windows 后端使用的ACL工具

    Returns:
        PermissionBackend 实例
    """
    if not isinstance(backend, BackendType):
        backend = BackendType.from_string(backend)

    if backend == BackendType.AUTO:
        platform = platform or get_current_platform()
        backend = BackendType.WINDOWS if platform.is_windows else BackendType.POSIX

    if backend == BackendType.WINDOWS:
        return WindowsAclPermissionBackend(tool=acl_tool)
    return PosixPermissionBackend()


__all__ = [
    "PermissionBackend",
    "PosixPermissionBackend",
    "WindowsAclPermissionBackend",
    "AclToolOutput",
    "AclToolRunner",
    "AclVerdict",
    "DEFAULT_ACL_TOOL",
    "TRUSTED_PRINCIPALS",
    "get_backend",
    "parse_icacls_output",
    "run_acl_tool",
]
