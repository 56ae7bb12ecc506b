"""自定义异常模块，为SSH权限检查与修复提供统一的错误体系。

异常分类：
- 用户错误：目标文件不存在、配置值无效
- 系统错误：主目录无法解析、文件系统IO失败
- 外部依赖错误：ACL工具无法启动（归入系统IO错误）

传播策略：
- 硬性前置条件（资源缺失、主目录无法解析）以异常形式抛出
- Windows上ACL工具运行失败以否定结果返回，而不是抛出异常
- 所有操作都不会自动重试
"""

import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Union


class ErrorSeverity(Enum):
    """错误严重程度枚举。"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """错误分类枚举。"""
    USER = "user"             # 用户操作错误
    SYSTEM = "system"         # 系统环境错误
    INTERNAL = "internal"     # 程序内部错误
    EXTERNAL = "external"     # 外部依赖错误


class ErrorRecoveryAction(Enum):
    """错误恢复动作枚举。"""
    RETRY = "retry"
    SKIP = "skip"
    ABORT = "abort"
    MANUAL = "manual"


class SSHPermsError(Exception):
    """sshperms的基础异常类。

    属性:
        message: 可直接展示给用户的错误消息
        error_code: 标准化错误代码 (格式: CATEGORY_SPECIFIC_CODE)
        suggested_fix: 解决建议
        context: 错误上下文信息
        original_error: 原始异常对象（如果有）
        severity: 错误严重程度
        category: 错误分类
        recovery_actions: 建议的恢复动作列表
        error_id: 唯一错误标识符
        timestamp: 错误发生时间
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        suggested_fix: str = None,
        context: Dict[str, Any] = None,
        original_error: Exception = None,
        severity: Union[str, ErrorSeverity] = ErrorSeverity.MEDIUM,
        category: Union[str, ErrorCategory] = ErrorCategory.INTERNAL,
        recovery_actions: List[ErrorRecoveryAction] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.suggested_fix = suggested_fix or "Check the path and try again"
        self.context = context or {}
        self.original_error = original_error

        # 处理枚举类型
        self.severity = severity if isinstance(severity, ErrorSeverity) else ErrorSeverity(severity)
        self.category = category if isinstance(category, ErrorCategory) else ErrorCategory(category)
        self.recovery_actions = recovery_actions or []

        self.error_id = str(uuid.uuid4())[:8]
        self.timestamp = datetime.now()

    def get_user_message(self) -> str:
        """获取用户友好的错误消息。"""
        user_msg = self.message
        if self.suggested_fix:
            user_msg += f"\nSuggestion: {self.suggested_fix}"
        return user_msg

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式，便于JSON序列化。"""
        return {
            "error_type": type(self).__name__,
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "suggested_fix": self.suggested_fix,
            "recovery_actions": [action.value for action in self.recovery_actions],
            "context": self.context,
            "original_error": str(self.original_error) if self.original_error else None,
        }

    def add_context(self, key: str, value: Any) -> None:
        """添加上下文信息。"""
        self.context[key] = value

    def is_recoverable(self) -> bool:
        """判断错误是否可恢复。"""
        return len(self.recovery_actions) > 0 and ErrorRecoveryAction.ABORT not in self.recovery_actions


# ===== 分类基类 =====

class UserError(SSHPermsError):
    """用户可以直接修正的问题的基类。"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.USER)
        kwargs.setdefault("severity", ErrorSeverity.MEDIUM)
        kwargs.setdefault("recovery_actions", [ErrorRecoveryAction.MANUAL])
        super().__init__(message, **kwargs)


class SystemError(SSHPermsError):
    """系统级错误的基类（主目录、文件系统IO）。"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.SYSTEM)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("recovery_actions", [ErrorRecoveryAction.MANUAL])
        super().__init__(message, **kwargs)


# ===== 具体异常 =====

class ResourceNotFoundError(UserError):
    """目标文件或目录不存在。"""

    def __init__(self, message: str = None, path: Union[str, Path] = None, **kwargs):
        self.path = Path(path) if path else None
        if message is None:
            message = f"Path not found: {self.path}" if self.path else "Path not found"
        kwargs.setdefault("error_code", "USER_RESOURCE_NOT_FOUND")
        kwargs.setdefault("suggested_fix", "Check that the path is spelled correctly and the file exists")
        if self.path:
            kwargs.setdefault("context", {})["path"] = str(self.path)
        super().__init__(message, **kwargs)


# 私钥缺失时调用方习惯使用的名字
KeyNotFoundError = ResourceNotFoundError


class ConfigurationError(UserError):
    """环境变量配置错误。"""

    def __init__(self, message: str, variable: str = None, valid_values: List[str] = None, **kwargs):
        self.variable = variable
        self.valid_values = valid_values or []
        kwargs.setdefault("error_code", "USER_CONFIG_INVALID")

        suggested_fix = "Check the environment configuration"
        if self.variable:
            suggested_fix += f"; set {self.variable}"
            if self.valid_values:
                suggested_fix += f" to one of: {', '.join(self.valid_values)}"
        kwargs.setdefault("suggested_fix", suggested_fix)

        context = kwargs.setdefault("context", {})
        if self.variable:
            context["variable"] = self.variable
        if self.valid_values:
            context["valid_values"] = self.valid_values

        super().__init__(message, **kwargs)


class HomeDirectoryNotFoundError(SystemError):
    """无法定位用户主目录，目录相关操作无法继续。"""

    def __init__(self, message: str = "Could not determine the user's home directory", **kwargs):
        kwargs.setdefault("error_code", "SYSTEM_HOME_NOT_FOUND")
        kwargs.setdefault("suggested_fix", "Set the HOME (or USERPROFILE) environment variable, or pass the SSH directory explicitly")
        kwargs.setdefault("recovery_actions", [ErrorRecoveryAction.ABORT])
        super().__init__(message, **kwargs)


class IoError(SystemError):
    """读取或修改文件系统元数据时发生的操作系统错误。"""

    def __init__(self, message: str, path: Union[str, Path] = None, operation: str = None, **kwargs):
        self.path = Path(path) if path else None
        self.operation = operation
        kwargs.setdefault("error_code", "SYSTEM_IO_ERROR")
        kwargs.setdefault("suggested_fix", "Check that you own the file and the filesystem is writable")

        context = kwargs.setdefault("context", {})
        if self.path:
            context["path"] = str(self.path)
        if self.operation:
            context["operation"] = self.operation

        super().__init__(message, **kwargs)


class ExternalToolError(IoError):
    """外部ACL工具无法启动。

    归入IoError，调用方捕获IoError即可同时处理这种情况。
    工具运行后返回失败状态不会抛出此异常，而是体现在结果对象中。
    """

    def __init__(self, message: str, tool_name: str = None, exit_code: int = None, **kwargs):
        self.tool_name = tool_name
        self.exit_code = exit_code
        kwargs.setdefault("error_code", "EXTERNAL_TOOL_ERROR")
        kwargs.setdefault("category", ErrorCategory.EXTERNAL)
        kwargs.setdefault("suggested_fix", "Check that the ACL tool is installed and on PATH")

        context = kwargs.setdefault("context", {})
        if self.tool_name:
            context["tool_name"] = self.tool_name
        if self.exit_code is not None:
            context["exit_code"] = self.exit_code

        super().__init__(message, **kwargs)


# ===== 异常处理辅助函数 =====

def create_error_from_exception(exc: Exception, message: str = None,
                                path: Union[str, Path] = None, operation: str = None) -> SSHPermsError:
    """从标准异常创建sshperms异常。

    Args:
        exc: 原始异常
        message: 自定义错误消息前缀
        path: 相关路径
        operation: 失败的操作名称

    Returns:
        sshperms异常对象
    """
    if isinstance(exc, SSHPermsError):
        return exc

    error_message = f"{message}: {exc}" if message else str(exc)

    if isinstance(exc, FileNotFoundError):
        return ResourceNotFoundError(error_message, path=path, original_error=exc)
    elif isinstance(exc, OSError):
        return IoError(error_message, path=path, operation=operation, original_error=exc)
    else:
        return SSHPermsError(
            error_message,
            error_code="INTERNAL_UNEXPECTED_ERROR",
            original_error=exc,
            severity=ErrorSeverity.HIGH,
            recovery_actions=[ErrorRecoveryAction.ABORT],
        )


__all__ = [
    # 枚举类型
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorRecoveryAction",
    # 基础异常类
    "SSHPermsError",
    "UserError",
    "SystemError",
    # 具体异常类
    "ResourceNotFoundError",
    "KeyNotFoundError",
    "ConfigurationError",
    "HomeDirectoryNotFoundError",
    "IoError",
    "ExternalToolError",
    # 辅助函数
    "create_error_from_exception",
]
