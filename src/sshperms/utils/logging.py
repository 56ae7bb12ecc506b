"""结构化日志系统，为sshperms提供统一的日志记录和操作审计。

- 一般日志：各模块通过 logging.getLogger(__name__) 记录，统一挂在 "sshperms" 日志器下
- 审计日志：每次修复权限都会记录一条审计信息（动作、资源、结果）
- 性能日志：log_operation() 记录操作耗时

支持的输出格式：
- 人类友好格式（默认）
- JSON格式（机器可读）
"""

import json
import logging
import logging.handlers
import sys
import threading
import time
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from ..exceptions import SSHPermsError

ROOT_LOGGER_NAME = "sshperms"


class LogLevel(Enum):
    """日志级别枚举。"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_logging_level(self) -> int:
        return getattr(logging, self.value.upper())


class LogFormat(Enum):
    """日志格式枚举。"""
    HUMAN = "human"         # 人类友好格式
    JSON = "json"           # JSON格式，机器可读


class LoggerType(Enum):
    """日志器类型枚举。"""
    GENERAL = "general"
    AUDIT = "audit"


class StructuredLogger:
    """结构化日志记录器。

    general 日志器就是包的根日志器 "sshperms"，模块日志都会传到这里；
    audit 日志器不向上传播，拥有独立的处理器和格式。
    """

    def __init__(self, name: str = ROOT_LOGGER_NAME,
                 log_file: Optional[Path] = None,
                 log_format: LogFormat = LogFormat.HUMAN,
                 log_level: LogLevel = LogLevel.WARNING,
                 enable_console: bool = True,
                 max_file_size: int = 5 * 1024 * 1024,  # 5MB
                 backup_count: int = 3):
        """初始化结构化日志记录器。

        Args:
            name: 根日志器名称
            log_file: 日志文件路径，None表示不写文件
            log_format: 日志格式
            log_level: 日志级别
            enable_console: 是否输出到标准错误
            max_file_size: 单个日志文件的最大字节数
            backup_count: 轮转保留的文件数量
        """
        self.name = name
        self.log_file = Path(log_file) if log_file else None
        self.log_format = log_format
        self.log_level = log_level
        self.enable_console = enable_console

        self.loggers: Dict[LoggerType, logging.Logger] = {}
        self._setup_loggers(max_file_size, backup_count)
        self._lock = threading.Lock()

    def _setup_loggers(self, max_file_size: int, backup_count: int) -> None:
        """设置一般日志器和审计日志器。"""
        for logger_type in LoggerType:
            if logger_type == LoggerType.GENERAL:
                logger = logging.getLogger(self.name)
            else:
                logger = logging.getLogger(f"{self.name}.{logger_type.value}")
                logger.propagate = False
            logger.setLevel(self.log_level.to_logging_level())
            logger.handlers.clear()  # 清除已有处理器

            if self.log_file:
                self.log_file.parent.mkdir(parents=True, exist_ok=True)
                log_file = self.log_file
                if logger_type == LoggerType.AUDIT:
                    log_file = self.log_file.with_name(f"{self.log_file.stem}.audit{self.log_file.suffix}")
                file_handler = logging.handlers.RotatingFileHandler(
                    log_file, maxBytes=max_file_size, backupCount=backup_count,
                    encoding='utf-8'
                )
                file_handler.setFormatter(self._get_formatter(logger_type))
                logger.addHandler(file_handler)

            if self.enable_console:
                console_handler = logging.StreamHandler(sys.stderr)
                console_handler.setFormatter(self._get_formatter(logger_type))
                logger.addHandler(console_handler)

            self.loggers[logger_type] = logger

    def _get_formatter(self, logger_type: LoggerType) -> logging.Formatter:
        """获取指定日志器类型的格式化器。"""
        if self.log_format == LogFormat.JSON:
            return JsonFormatter()
        if logger_type == LoggerType.AUDIT:
            return AuditFormatter()
        return HumanFormatter()

    def debug(self, message: str, **kwargs) -> None:
        self._log(LogLevel.DEBUG, LoggerType.GENERAL, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(LogLevel.INFO, LoggerType.GENERAL, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(LogLevel.WARNING, LoggerType.GENERAL, message, **kwargs)

    def error(self, message: str, error: Exception = None, **kwargs) -> None:
        """记录错误信息。"""
        extra_data = kwargs.copy()
        if error:
            extra_data.update({
                "error_type": type(error).__name__,
                "error_message": str(error),
            })

            # sshperms异常带有更多信息
            if isinstance(error, SSHPermsError):
                extra_data.update({
                    "error_id": error.error_id,
                    "error_code": error.error_code,
                    "category": error.category.value,
                    "context": error.context,
                })

        self._log(LogLevel.ERROR, LoggerType.GENERAL, message, **extra_data)

    def audit(self, action: str, resource: str = None, result: str = "success", **kwargs) -> None:
        """记录审计信息。"""
        audit_data = {
            "action": action,
            "resource": resource,
            "result": result,
            **kwargs
        }
        level = LogLevel.INFO if result == "success" else LogLevel.WARNING
        self._log(level, LoggerType.AUDIT, f"Audit: {action}", **audit_data)

    @contextmanager
    def operation_timer(self, operation_name: str, **kwargs):
        """操作计时上下文管理器。"""
        start_time = time.perf_counter()
        try:
            self.debug(f"开始操作: {operation_name}", operation=operation_name, **kwargs)
            yield
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.debug(f"操作失败: {operation_name} ({duration_ms:.2f}ms)",
                       operation=operation_name, status="failed",
                       error_type=type(e).__name__, **kwargs)
            raise
        else:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.debug(f"操作完成: {operation_name} ({duration_ms:.2f}ms)",
                       operation=operation_name, status="completed", **kwargs)

    def _log(self, level: LogLevel, logger_type: LoggerType, message: str, **kwargs) -> None:
        """内部日志记录方法。"""
        logger = self.loggers.get(logger_type)
        if not logger:
            return

        extra_data = {
            "logger_type": logger_type.value,
            "thread_id": threading.get_ident(),
            **kwargs
        }
        with self._lock:
            logger.log(level.to_logging_level(), message, extra={"extra_data": extra_data})


class JsonFormatter(logging.Formatter):
    """JSON格式化器。"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data.update({k: v for k, v in extra_data.items() if k not in log_data})

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str, separators=(',', ':'))


class HumanFormatter(logging.Formatter):
    """人类友好格式化器。"""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


class AuditFormatter(logging.Formatter):
    """审计专用格式化器。"""

    def format(self, record: logging.LogRecord) -> str:
        extra = getattr(record, "extra_data", None) or {}
        return (f"{datetime.fromtimestamp(record.created).isoformat()} | "
                f"ACTION:{extra.get('action', 'UNKNOWN')} | "
                f"RESOURCE:{extra.get('resource', 'NONE')} | "
                f"RESULT:{extra.get('result', 'UNKNOWN')} | "
                f"MESSAGE:{extra.get('detail', record.getMessage())}")


# 全局日志记录器实例
_global_logger: Optional[StructuredLogger] = None


def get_logger() -> StructuredLogger:
    """获取全局日志记录器。"""
    global _global_logger
    if _global_logger is None:
        _global_logger = StructuredLogger()
    return _global_logger


def configure_logging(log_file: Optional[Path] = None,
                      log_format: LogFormat = LogFormat.HUMAN,
                      log_level: LogLevel = LogLevel.WARNING,
                      enable_console: bool = True) -> StructuredLogger:
    """配置全局日志设置。"""
    global _global_logger
    _global_logger = StructuredLogger(
        log_file=log_file,
        log_format=log_format,
        log_level=log_level,
        enable_console=enable_console,
    )
    return _global_logger


def log_operation(operation_name: str, **kwargs):
    """便捷的操作计时上下文管理器。"""
    return get_logger().operation_timer(operation_name, **kwargs)


__all__ = [
    "LogLevel",
    "LogFormat",
    "LoggerType",
    "StructuredLogger",
    "JsonFormatter",
    "HumanFormatter",
    "AuditFormatter",
    "get_logger",
    "configure_logging",
    "log_operation",
]
