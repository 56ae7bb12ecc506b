"""
权限后端抽象基类

每个后端针对一个路径和目标访问级别实现 check 与 fix。
后端不保存任何状态，每次调用都返回新的结果对象。
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from ..exceptions import IoError, ResourceNotFoundError
from ..models.results import CheckResult, FixResult
from ..policy import AccessLevel
from ..types.enums import PlatformType


class PermissionBackend(ABC):
    """平台权限后端的抽象基类"""

    #: 结果中 expected_mode 所使用的平台
    platform: PlatformType = PlatformType.UNKNOWN

    @abstractmethod
    def check(self, path: Union[str, Path], level: AccessLevel) -> CheckResult:
        """检查路径是否满足目标访问级别

        Raises:
            ResourceNotFoundError: 路径不存在
            IoError: 读取权限信息失败
        """

    @abstractmethod
    def fix(self, path: Union[str, Path], level: AccessLevel,
            create_if_missing: bool = False) -> FixResult:
        """把路径的权限收紧到目标访问级别

        Args:
            path: 目标路径
            level: 目标访问级别
            create_if_missing: 路径不存在时是否创建目录（仅SSH目录）

        Raises:
            ResourceNotFoundError: 路径不存在且不允许创建
            IoError: 创建目录或设置权限失败
        """

    def expected_descriptor(self, level: AccessLevel) -> str:
        return level.descriptor(self.platform)

    @staticmethod
    def _exists(path: Path) -> bool:
        try:
            return path.exists()
        except OSError as e:
            raise IoError(f"Failed to access {path}: {e}", path=path,
                          operation="stat", original_error=e) from e

    @classmethod
    def _require_exists(cls, path: Path, level: AccessLevel) -> None:
        if not cls._exists(path):
            raise ResourceNotFoundError(f"{level.label} not found: {path}", path=path)

    @classmethod
    def _prepare(cls, path: Path, level: AccessLevel, create_if_missing: bool) -> None:
        """确保路径存在：允许时创建目录（含缺失的父目录），否则抛出异常"""
        if cls._exists(path):
            return
        if not create_if_missing:
            raise ResourceNotFoundError(f"{level.label} not found: {path}", path=path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IoError(
                f"Failed to create {level.label}: {e}",
                path=path,
                operation="create",
                original_error=e,
            ) from e
