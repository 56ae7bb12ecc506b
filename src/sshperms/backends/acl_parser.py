"""
icacls输出解析

icacls 每行输出一个访问控制项（主体:权限），第一行前面带有被查询的路径，
最后一行是 "Successfully processed ..." 状态行，例如::

    C:\\Users\\alice\\.ssh\\id_ed25519 DESKTOP-01\\alice:(F)
                                     NT AUTHORITY\\SYSTEM:(F)
                                     BUILTIN\\Administrators:(F)

    Successfully processed 1 files; Failed processing 0 files

这是针对半结构化文本的启发式判断，不是完整的ACL模型。
依赖英文区域设置下的工具输出格式。
"""

from dataclasses import dataclass, field
from typing import List, Tuple

# 这些主体出现在ACL中不视为安全性降低
TRUSTED_PRINCIPALS: Tuple[str, ...] = (
    "BUILTIN\\Administrators",
    "NT AUTHORITY\\SYSTEM",
)

STATUS_LINE_PREFIX = "Successfully"
PRINCIPAL_DELIMITER = ":"


@dataclass
class AclVerdict:
    """ACL输出的判断结果"""
    user_has_access: bool = False
    has_other_users: bool = False
    other_principals: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.user_has_access and not self.has_other_users


def _strip_path_echo(line: str, path: str) -> str:
    """去掉行首回显的路径，只保留访问控制项部分"""
    stripped = line.strip()
    if path and stripped.lower().startswith(path.lower()):
        return stripped[len(path):].strip()
    return stripped


def _principal_of(entry: str) -> str:
    principal, _, _ = entry.partition(PRINCIPAL_DELIMITER)
    return principal.strip()


def _is_current_user(principal: str, username: str) -> bool:
    """主体与当前用户比较（忽略大小写，允许带域名前缀）"""
    principal = principal.lower()
    username = username.lower()
    if not username:
        return False
    return principal == username or principal.rsplit("\\", 1)[-1] == username


def parse_icacls_output(output: str, path: str, username: str) -> AclVerdict:
    """
    解析 icacls 输出，判断是否只有当前用户（及受信任主体）可以访问

    Args:
        output: icacls 的标准输出
        path: 被查询的路径（用于识别回显行）
        username: 当前账户名

    Returns:
        AclVerdict，is_valid = 当前用户有访问权限 且 没有其他主体
    """
    verdict = AclVerdict()

    for line in output.splitlines():
        entry = _strip_path_echo(line, path)
        if not entry:
            continue

        if _is_current_user(_principal_of(entry), username):
            verdict.user_has_access = True
        elif any(trusted in entry for trusted in TRUSTED_PRINCIPALS):
            continue
        elif PRINCIPAL_DELIMITER in entry and not entry.startswith(STATUS_LINE_PREFIX):
            verdict.has_other_users = True
            principal = _principal_of(entry)
            if principal not in verdict.other_principals:
                verdict.other_principals.append(principal)

    return verdict
