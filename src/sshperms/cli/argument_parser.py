"""CLI argument parser for sshperms commands.

This module provides the argparse-based CLI for checking and fixing SSH
permissions. It creates a unified parser with one subcommand per operation.

Supported commands:
- check-key: Check a private key file
- fix-key: Restrict a private key file to its owner
- check-dir: Check the SSH directory
- fix-dir: Restrict the SSH directory to its owner (creates it when absent)
- audit: Check the SSH directory and every private key in it

Usage:
    from sshperms.cli.argument_parser import parse_args

    args = parse_args(["check-key", "~/.ssh/id_ed25519"])
    print(f"Command: {args.subcommand}")
"""

import argparse
import sys
from typing import List, Optional

from .. import __version__
from ..types.enums import BackendType, OutputFormat

OUTPUT_FORMATS = OutputFormat.get_all_values()
BACKENDS = BackendType.get_all_values()


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Add arguments shared by every command."""
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=OutputFormat.TABLE.value,
        help="Output format (default: table)"
    )

    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=None,
        help="Permission backend (default: SSHPERMS_BACKEND or auto)"
    )


def _add_ssh_dir_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--ssh-dir",
        default=None,
        help="SSH directory (default: SSHPERMS_SSH_DIR or ~/.ssh)"
    )


def _create_check_key_parser(subparsers) -> argparse.ArgumentParser:
    """Create parser for check-key command."""
    parser = subparsers.add_parser(
        "check-key",
        help="Check a private key's permissions",
        description="Check that a private key is readable and writable by its owner only."
    )
    parser.add_argument("path", help="Path to the private key")
    _add_common_arguments(parser)
    return parser


def _create_fix_key_parser(subparsers) -> argparse.ArgumentParser:
    """Create parser for fix-key command."""
    parser = subparsers.add_parser(
        "fix-key",
        help="Restrict a private key to its owner",
        description="Set a private key's permissions to owner read/write only (600 on POSIX)."
    )
    parser.add_argument("path", help="Path to the private key")
    _add_common_arguments(parser)
    return parser


def _create_check_dir_parser(subparsers) -> argparse.ArgumentParser:
    """Create parser for check-dir command."""
    parser = subparsers.add_parser(
        "check-dir",
        help="Check the SSH directory's permissions",
        description="Check that the SSH directory is accessible by its owner only."
    )
    _add_ssh_dir_argument(parser)
    _add_common_arguments(parser)
    return parser


def _create_fix_dir_parser(subparsers) -> argparse.ArgumentParser:
    """Create parser for fix-dir command."""
    parser = subparsers.add_parser(
        "fix-dir",
        help="Restrict the SSH directory to its owner",
        description="Set the SSH directory's permissions to owner only (700 on POSIX), "
                    "creating it when it does not exist."
    )
    _add_ssh_dir_argument(parser)
    _add_common_arguments(parser)
    return parser


def _create_audit_parser(subparsers) -> argparse.ArgumentParser:
    """Create parser for audit command."""
    parser = subparsers.add_parser(
        "audit",
        help="Audit the SSH directory and its private keys",
        description="Check the SSH directory and every private key candidate in it."
    )
    _add_ssh_dir_argument(parser)
    parser.add_argument(
        "--fix",
        action="store_true",
        help="Fix every failing entry before reporting"
    )
    _add_common_arguments(parser)
    return parser


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the main argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="sshperms",
        description="SSH 权限工具 - 检查并修复SSH私钥和SSH目录的访问权限",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  # 检查私钥权限
  sshperms check-key ~/.ssh/id_ed25519

  # 修复私钥权限
  sshperms fix-key ~/.ssh/id_ed25519

  # 审计整个SSH目录并修复问题
  sshperms audit --fix --format json

环境变量:
  SSHPERMS_BACKEND     权限后端 (auto/posix/windows)
  SSHPERMS_SSH_DIR     SSH目录 (默认 ~/.ssh)
  SSHPERMS_LOG_LEVEL   日志级别 (DEBUG/INFO/WARNING/ERROR)
  SSHPERMS_DEBUG       启用调试模式 (true/false)
        """
    )

    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        help="可用命令",
        metavar="COMMAND"
    )

    _create_check_key_parser(subparsers)
    _create_fix_key_parser(subparsers)
    _create_check_dir_parser(subparsers)
    _create_fix_dir_parser(subparsers)
    _create_audit_parser(subparsers)

    return parser


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: List of arguments to parse. If None, uses sys.argv

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: If parsing fails, or with code 0 after printing help
    """
    parser = create_parser()

    if args is None and len(sys.argv) == 1:
        parser.print_help()
        sys.exit(0)

    parsed_args = parser.parse_args(args)

    if not parsed_args.subcommand:
        parser.print_help()
        sys.exit(0)

    return parsed_args
