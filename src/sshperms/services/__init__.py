"""Services package for sshperms.

This package contains the permission service that checks and fixes SSH key
files and the SSH directory through the platform backend.
"""

from .permission_service import (
    PermissionService,
    check_key_permissions,
    check_ssh_dir_permissions,
    fix_key_permissions,
    fix_ssh_dir_permissions,
    is_private_key_candidate,
)

__all__ = [
    "PermissionService",
    "check_key_permissions",
    "check_ssh_dir_permissions",
    "fix_key_permissions",
    "fix_ssh_dir_permissions",
    "is_private_key_candidate",
]
