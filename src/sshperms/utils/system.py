"""
系统环境工具模块

提供平台检测、当前账户名和主目录解析，供权限后端和服务层使用。
"""

import getpass
import os
import platform
from pathlib import Path
from typing import Optional, Union

from ..exceptions import HomeDirectoryNotFoundError
from ..types.enums import PlatformType

SSH_DIR_NAME = ".ssh"


def get_current_platform() -> PlatformType:
    """获取当前运行平台"""
    system = platform.system().lower()
    if system == "windows":
        return PlatformType.WINDOWS
    elif system == "darwin":
        return PlatformType.MACOS
    elif system == "linux":
        return PlatformType.LINUX
    else:
        return PlatformType.UNKNOWN


def get_current_username() -> str:
    """获取当前操作系统账户名

    Windows上优先使用USERNAME环境变量，与icacls显示的账户名保持一致。
    """
    user = os.environ.get("USERNAME") if get_current_platform().is_windows else None
    return user or getpass.getuser()


def get_home_directory() -> Path:
    """
    获取用户主目录，跨平台兼容

    Raises:
        HomeDirectoryNotFoundError: 无法确定主目录
    """
    try:
        return Path.home()
    except (RuntimeError, KeyError) as e:
        raise HomeDirectoryNotFoundError(original_error=e) from e


def get_ssh_directory(override: Optional[Union[str, Path]] = None) -> Path:
    """
    获取SSH配置目录

    Args:
        override: 显式指定的目录，优先于 ~/.ssh

    Returns:
        SSH目录的Path对象（不保证存在）
    """
    if override:
        return Path(override).expanduser()
    return get_home_directory() / SSH_DIR_NAME
