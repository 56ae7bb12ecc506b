"""Main CLI entry point for the sshperms command.

Parses arguments, loads configuration from the environment, runs the
requested service coroutine and renders its result with the selected
formatter.

Exit codes:
    0    result is positive (valid / fixed / healthy)
    1    result is negative, or configuration is invalid
    2    key or path not found
    3    home directory or filesystem error
    4    unexpected error
    130  interrupted
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any, Awaitable, Callable, Dict, List, NoReturn, Optional

from ..config import PermissionConfig
from ..exceptions import (
    ConfigurationError,
    HomeDirectoryNotFoundError,
    IoError,
    ResourceNotFoundError,
    SSHPermsError,
    create_error_from_exception,
)
from ..services.permission_service import PermissionService
from ..types.enums import BackendType
from ..utils.formatters import BaseFormatter, create_formatter
from ..utils.logging import configure_logging, get_logger
from .argument_parser import parse_args

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NEGATIVE = 1
EXIT_NOT_FOUND = 2
EXIT_SYSTEM_ERROR = 3
EXIT_UNEXPECTED = 4
EXIT_INTERRUPTED = 130

CommandHandler = Callable[[PermissionService, argparse.Namespace, BaseFormatter], Awaitable[int]]


async def _check_key(service: PermissionService, args: argparse.Namespace,
                     formatter: BaseFormatter) -> int:
    result = await service.check_key_permissions(args.path)
    formatter.emit(formatter.format_check_result(args.path, result))
    return EXIT_OK if result.is_valid else EXIT_NEGATIVE


async def _fix_key(service: PermissionService, args: argparse.Namespace,
                   formatter: BaseFormatter) -> int:
    result = await service.fix_key_permissions(args.path)
    formatter.emit(formatter.format_fix_result(args.path, result))
    return EXIT_OK if result.success else EXIT_NEGATIVE


async def _check_dir(service: PermissionService, args: argparse.Namespace,
                     formatter: BaseFormatter) -> int:
    path = service.resolve_ssh_dir(args.ssh_dir)
    result = await service.check_ssh_dir_permissions(path)
    formatter.emit(formatter.format_check_result(path, result))
    return EXIT_OK if result.is_valid else EXIT_NEGATIVE


async def _fix_dir(service: PermissionService, args: argparse.Namespace,
                   formatter: BaseFormatter) -> int:
    path = service.resolve_ssh_dir(args.ssh_dir)
    result = await service.fix_ssh_dir_permissions(path)
    formatter.emit(formatter.format_fix_result(path, result))
    return EXIT_OK if result.success else EXIT_NEGATIVE


async def _audit(service: PermissionService, args: argparse.Namespace,
                 formatter: BaseFormatter) -> int:
    fixes = await service.fix_all(args.ssh_dir) if args.fix else None
    report = await service.audit_ssh_directory(args.ssh_dir)
    formatter.emit(formatter.format_audit_report(report, fixes))
    return EXIT_OK if report.is_healthy else EXIT_NEGATIVE


# 命令映射表
COMMAND_REGISTRY: Dict[str, CommandHandler] = {
    "check-key": _check_key,
    "fix-key": _fix_key,
    "check-dir": _check_dir,
    "fix-dir": _fix_dir,
    "audit": _audit,
}


def _setup_signal_handlers() -> None:
    """设置信号处理器以优雅处理中断。"""
    def signal_handler(signum: int, frame: Any) -> None:
        logger.debug("接收到信号: %s", signum)
        print("\n\n操作被中断", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, signal_handler)
    if hasattr(signal, 'SIGTERM'):
        signal.signal(signal.SIGTERM, signal_handler)


def _exit_code_for(error: SSHPermsError) -> int:
    if isinstance(error, ResourceNotFoundError):
        return EXIT_NOT_FOUND
    if isinstance(error, (HomeDirectoryNotFoundError, IoError)):
        return EXIT_SYSTEM_ERROR
    if isinstance(error, ConfigurationError):
        return EXIT_NEGATIVE
    return EXIT_UNEXPECTED


def _execute_command_safely(args: argparse.Namespace, config: PermissionConfig) -> int:
    """安全执行命令，包含统一的错误处理。"""
    output = create_formatter(args.format, sys.stdout)
    errors = create_formatter(args.format, sys.stderr)
    handler = COMMAND_REGISTRY[args.subcommand]

    try:
        service = PermissionService(config=config)
        return asyncio.run(handler(service, args, output))

    except KeyboardInterrupt:
        logger.debug("%s 被用户中断", args.subcommand)
        print("\n操作被中断", file=sys.stderr)
        return EXIT_INTERRUPTED
    except SSHPermsError as e:
        logger.debug("%s 失败: [%s] %s", args.subcommand, e.error_code, e.message)
        errors.emit(errors.format_error(e, debug=config.debug))
        return _exit_code_for(e)
    except Exception as e:
        error = create_error_from_exception(e)
        get_logger().error(f"{args.subcommand} 未预期的错误", error=error)
        logger.debug("未预期错误的堆栈", exc_info=True)
        errors.emit(errors.format_error(error, debug=config.debug))
        return EXIT_UNEXPECTED


def run(argv: Optional[List[str]] = None) -> int:
    """解析参数并执行命令，返回退出码。"""
    args = parse_args(argv)

    try:
        config = PermissionConfig.from_env()
    except ConfigurationError as e:
        create_formatter(args.format, sys.stderr).emit(e.get_user_message())
        return EXIT_NEGATIVE

    if args.backend:
        config.backend = BackendType.from_string(args.backend)

    try:
        configure_logging(
            log_file=config.log_file,
            log_format=config.log_format,
            log_level=config.log_level,
        )
    except OSError as e:
        print(f"无法打开日志文件 {config.log_file}: {e}", file=sys.stderr)
        return EXIT_SYSTEM_ERROR

    return _execute_command_safely(args, config)


def main() -> NoReturn:
    """主入口点 - sshperms 命令。"""
    _setup_signal_handlers()
    sys.exit(run())


if __name__ == "__main__":
    main()
