"""
sshperms工具模块

提供平台检测、日志记录和输出格式化等工具功能。
"""

from .formatters import (
    BaseFormatter,
    JSONFormatter,
    QuietFormatter,
    TableFormatter,
    create_formatter,
)
from .logging import (
    LogFormat,
    LogLevel,
    StructuredLogger,
    configure_logging,
    get_logger,
    log_operation,
)
from .system import (
    SSH_DIR_NAME,
    get_current_platform,
    get_current_username,
    get_home_directory,
    get_ssh_directory,
)

__all__ = [
    # 格式化器
    "BaseFormatter",
    "JSONFormatter",
    "QuietFormatter",
    "TableFormatter",
    "create_formatter",
    # 日志
    "LogFormat",
    "LogLevel",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
    "log_operation",
    # 系统环境
    "SSH_DIR_NAME",
    "get_current_platform",
    "get_current_username",
    "get_home_directory",
    "get_ssh_directory",
]
