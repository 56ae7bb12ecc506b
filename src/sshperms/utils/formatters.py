"""输出格式化器用于sshperms CLI工具。

格式化器类：
- JSONFormatter：结构化JSON输出（结果对象使用camelCase键）
- TableFormatter：人类可读的表格输出
- QuietFormatter：最小输出（仅在结果为否定或出错时输出）

JSON输出结构：
{
    "success": boolean,
    "message": string,
    "data": object,
    "errors": array
}
"""

import json
import os
import shutil
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, TextIO, Union

from ..exceptions import SSHPermsError
from ..models.results import AuditReport, CheckResult, FixReport, FixResult
from ..types.enums import OutputFormat


class BaseFormatter(ABC):
    """输出格式化器的抽象基类。"""

    def __init__(self, file: TextIO = sys.stdout):
        """初始化格式化器。

        Args:
            file: 输出流，默认为stdout
        """
        self.file = file

    @abstractmethod
    def format_check_result(self, path: Union[str, Path], result: CheckResult) -> str:
        """格式化单个路径的检查结果。"""

    @abstractmethod
    def format_fix_result(self, path: Union[str, Path], result: FixResult) -> str:
        """格式化单个路径的修复结果。"""

    @abstractmethod
    def format_audit_report(self, report: AuditReport,
                            fixes: Optional[FixReport] = None) -> str:
        """格式化SSH目录审计报告。

        Args:
            report: 审计报告
            fixes: 审计前执行的修复（audit --fix），可选
        """

    @abstractmethod
    def format_error(self, error: Union[SSHPermsError, str], debug: bool = False) -> str:
        """格式化错误信息。"""

    def emit(self, text: str) -> None:
        """写出格式化后的文本，空文本不输出。"""
        if text:
            print(text, file=self.file)


class JSONFormatter(BaseFormatter):
    """JSON格式输出器。"""

    def __init__(self, file: TextIO = sys.stdout, pretty: bool = True):
        """初始化JSON格式化器。

        Args:
            file: 输出流
            pretty: 是否美化JSON输出（缩进格式）
        """
        super().__init__(file)
        self.pretty = pretty

    def format_check_result(self, path: Union[str, Path], result: CheckResult) -> str:
        return self._format_json({
            "success": result.is_valid,
            "message": result.message,
            "data": {"path": str(path), **result.to_dict()},
            "errors": [],
        })

    def format_fix_result(self, path: Union[str, Path], result: FixResult) -> str:
        return self._format_json({
            "success": result.success,
            "message": result.message,
            "data": {"path": str(path), **result.to_dict()},
            "errors": [],
        })

    def format_audit_report(self, report: AuditReport,
                            fixes: Optional[FixReport] = None) -> str:
        data = report.to_dict()
        if fixes is not None:
            data["fixes"] = fixes.to_dict()
        return self._format_json({
            "success": report.is_healthy,
            "message": _audit_summary(report),
            "data": data,
            "errors": [],
        })

    def format_error(self, error: Union[SSHPermsError, str], debug: bool = False) -> str:
        if isinstance(error, SSHPermsError):
            data = error.to_dict() if debug else {
                "error_code": error.error_code,
                "suggested_fix": error.suggested_fix,
            }
            message = error.message
        else:
            data = {}
            message = str(error)
        return self._format_json({
            "success": False,
            "message": message,
            "data": data,
            "errors": [message],
        })

    def _format_json(self, obj: Any) -> str:
        """格式化对象为JSON字符串。"""
        if self.pretty:
            return json.dumps(obj, ensure_ascii=False, indent=2, default=str)
        return json.dumps(obj, ensure_ascii=False, separators=(',', ':'), default=str)


class TableFormatter(BaseFormatter):
    """表格格式输出器。

    - 自动列宽调整
    - 颜色支持（输出流为终端时）
    """

    def __init__(self, file: TextIO = sys.stdout, max_width: Optional[int] = None):
        """初始化表格格式化器。

        Args:
            file: 输出流
            max_width: 最大表格宽度，None表示使用终端宽度
        """
        super().__init__(file)
        self.max_width = max_width or self._get_terminal_width()
        self._supports_color = self._check_color_support()

    def format_check_result(self, path: Union[str, Path], result: CheckResult) -> str:
        lines = [self._status_line(result.is_valid, result.message)]
        lines.append(f"  路径: {path}")
        lines.append(f"  当前: {result.current_mode or '-'}")
        lines.append(f"  期望: {result.expected_mode}")
        return "\n".join(lines)

    def format_fix_result(self, path: Union[str, Path], result: FixResult) -> str:
        lines = [self._status_line(result.success, result.message)]
        lines.append(f"  路径: {path}")
        if result.new_mode:
            lines.append(f"  新权限: {result.new_mode}")
        return "\n".join(lines)

    def format_audit_report(self, report: AuditReport,
                            fixes: Optional[FixReport] = None) -> str:
        lines = []

        if fixes is not None and fixes.entries:
            lines.append(f"{self._bold}已修复 ({len(fixes.entries)}){self._reset}")
            rows = [
                ["✓" if entry.result.success else "✗",
                 self._truncate(str(entry.path), self._path_width),
                 entry.result.new_mode or "-",
                 entry.result.message]
                for entry in fixes.entries
            ]
            lines.append(self._create_table(["", "路径", "新权限", "说明"], rows))
            lines.append("")

        lines.append(self._status_line(report.is_healthy, _audit_summary(report)))
        if report.entries:
            lines.append("")
            rows = [
                ["✓" if entry.result.is_valid else "✗",
                 self._truncate(str(entry.path), self._path_width),
                 entry.result.current_mode or "-",
                 entry.result.expected_mode,
                 entry.result.message]
                for entry in report.entries
            ]
            lines.append(self._create_table(["", "路径", "当前", "期望", "说明"], rows))

        return "\n".join(lines)

    def format_error(self, error: Union[SSHPermsError, str], debug: bool = False) -> str:
        if isinstance(error, SSHPermsError):
            text = error.get_user_message()
            if debug:
                text += f"\n  错误ID: {error.error_id}"
                for key, value in error.context.items():
                    text += f"\n  {key}: {value}"
        else:
            text = str(error)
        return f"{self._red}✗ {text}{self._reset}"

    def _status_line(self, ok: bool, message: str) -> str:
        status_symbol = "✓" if ok else "✗"
        status_color = self._green if ok else self._red
        return f"{status_color}{status_symbol} {message}{self._reset}"

    def _create_table(self, headers: List[str], rows: List[List[str]]) -> str:
        """创建格式化的表格。

        最后一列（说明）不参与对齐，避免长消息撑宽整张表。
        """
        if not rows:
            return ""

        col_widths = [len(header) for header in headers[:-1]]
        for row in rows:
            for i, cell in enumerate(row[:-1]):
                col_widths[i] = max(col_widths[i], len(str(cell)))

        lines = []

        header_line = " │ ".join(
            [header.ljust(col_widths[i]) for i, header in enumerate(headers[:-1])] + [headers[-1]]
        )
        lines.append(f"{self._bold}{header_line}{self._reset}")

        separator = "─┼─".join("─" * w for w in col_widths + [len(headers[-1])])
        lines.append(separator)

        for row in rows:
            row_line = " │ ".join(
                [str(cell).ljust(col_widths[i]) for i, cell in enumerate(row[:-1])] + [str(row[-1])]
            )
            lines.append(row_line)

        return "\n".join(lines)

    @property
    def _path_width(self) -> int:
        return max(20, self.max_width // 2)

    def _truncate(self, text: str, max_length: int) -> str:
        """截断文本到指定长度，保留路径末尾。"""
        if len(text) <= max_length:
            return text
        return "..." + text[-(max_length - 3):]

    def _get_terminal_width(self) -> int:
        """获取终端宽度。"""
        try:
            return shutil.get_terminal_size().columns
        except (AttributeError, OSError):
            return 80  # 默认宽度

    def _check_color_support(self) -> bool:
        """检查输出流是否支持颜色。"""
        return (
            hasattr(self.file, 'isatty') and self.file.isatty() and
            os.environ.get('TERM', '').lower() != 'dumb' and
            os.environ.get('NO_COLOR') is None
        )

    # 颜色代码
    @property
    def _reset(self) -> str:
        return "\033[0m" if self._supports_color else ""

    @property
    def _bold(self) -> str:
        return "\033[1m" if self._supports_color else ""

    @property
    def _green(self) -> str:
        return "\033[32m" if self._supports_color else ""

    @property
    def _red(self) -> str:
        return "\033[31m" if self._supports_color else ""


class QuietFormatter(BaseFormatter):
    """安静模式输出器。

    结果为肯定时不输出任何内容，适用于脚本自动化（依赖退出码）。
    """

    def format_check_result(self, path: Union[str, Path], result: CheckResult) -> str:
        return "" if result.is_valid else f"{path}: {result.message}"

    def format_fix_result(self, path: Union[str, Path], result: FixResult) -> str:
        return "" if result.success else f"{path}: {result.message}"

    def format_audit_report(self, report: AuditReport,
                            fixes: Optional[FixReport] = None) -> str:
        lines = []
        if fixes is not None:
            lines.extend(f"{entry.path}: {entry.result.message}"
                         for entry in fixes.failed_entries)
        lines.extend(f"{entry.path}: {entry.result.message}"
                     for entry in report.invalid_entries)
        return "\n".join(lines)

    def format_error(self, error: Union[SSHPermsError, str], debug: bool = False) -> str:
        return error.message if isinstance(error, SSHPermsError) else str(error)


def _audit_summary(report: AuditReport) -> str:
    invalid = len(report.invalid_entries)
    if invalid == 0:
        return f"{report.ssh_dir}: {len(report.entries)} 项检查全部通过"
    return f"{report.ssh_dir}: {invalid}/{len(report.entries)} 项权限不正确"


def create_formatter(format_type: str, file: TextIO = sys.stdout) -> BaseFormatter:
    """创建指定类型的格式化器。

    Args:
        format_type: 格式类型 ("json", "table", "quiet")
        file: 输出流

    Raises:
        ValueError: 如果格式类型不支持
    """
    output_format = OutputFormat.from_string(format_type)

    if output_format == OutputFormat.JSON:
        return JSONFormatter(file)
    elif output_format == OutputFormat.QUIET:
        return QuietFormatter(file)
    return TableFormatter(file)


__all__ = [
    "BaseFormatter",
    "JSONFormatter",
    "TableFormatter",
    "QuietFormatter",
    "create_formatter",
]
