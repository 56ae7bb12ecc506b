"""SSH key and SSH directory permission checks.
MIT License

This module checks and repairs the access permissions of SSH private keys and
of the SSH directory, so that only the owning account can use them. POSIX
systems use permission bits (600 for keys, 700 for the directory); Windows
uses an owner-exclusive ACL managed with icacls.

Basic Usage:
    import asyncio
    from sshperms import PermissionService

    service = PermissionService()
    result = asyncio.run(service.check_key_permissions("~/.ssh/id_ed25519"))

    if not result.is_valid:
        print(result.message)
        asyncio.run(service.fix_key_permissions("~/.ssh/id_ed25519"))

Operations:
    - check_key_permissions / fix_key_permissions: one private key
    - check_ssh_dir_permissions / fix_ssh_dir_permissions: the SSH directory
    - audit_ssh_directory / fix_all: the directory and every key in it
"""

__version__ = "1.0.0"

from .backends import (
    PermissionBackend,
    PosixPermissionBackend,
    WindowsAclPermissionBackend,
    get_backend,
    parse_icacls_output,
)
from .config import PermissionConfig
from .exceptions import (
    ConfigurationError,
    ExternalToolError,
    HomeDirectoryNotFoundError,
    IoError,
    KeyNotFoundError,
    ResourceNotFoundError,
    SSHPermsError,
)
from .models import AuditReport, CheckResult, FixReport, FixResult
from .policy import AccessLevel, expected_descriptor, get_access_level
from .services import (
    PermissionService,
    check_key_permissions,
    check_ssh_dir_permissions,
    fix_key_permissions,
    fix_ssh_dir_permissions,
)
from .types import BackendType, PlatformType, ResourceKind

__all__ = [
    "__version__",
    # Service
    "PermissionService",
    "check_key_permissions",
    "fix_key_permissions",
    "check_ssh_dir_permissions",
    "fix_ssh_dir_permissions",
    # Results
    "CheckResult",
    "FixResult",
    "AuditReport",
    "FixReport",
    # Policy
    "AccessLevel",
    "ResourceKind",
    "expected_descriptor",
    "get_access_level",
    # Backends
    "PermissionBackend",
    "PosixPermissionBackend",
    "WindowsAclPermissionBackend",
    "BackendType",
    "PlatformType",
    "get_backend",
    "parse_icacls_output",
    # Configuration
    "PermissionConfig",
    # Exceptions
    "SSHPermsError",
    "ResourceNotFoundError",
    "KeyNotFoundError",
    "HomeDirectoryNotFoundError",
    "IoError",
    "ExternalToolError",
    "ConfigurationError",
]
