"""Permission service for SSH keys and the SSH directory.

This module implements the PermissionService that dispatches check and fix
requests to the platform backend:

- Private key files must be readable and writable by the owner only
- The SSH directory must be accessible by the owner only
- A whole SSH directory can be audited and fixed in one call

All operations are coroutines that perform their blocking filesystem or
subprocess work inline; they have no internal suspension points.
"""

from pathlib import Path
from typing import List, Optional, Union

from ..backends import PermissionBackend, get_backend
from ..config import PermissionConfig
from ..exceptions import IoError
from ..models.results import AuditReport, CheckResult, FixReport, FixResult
from ..policy import get_access_level
from ..types.enums import ResourceKind
from ..utils.logging import get_logger, log_operation
from ..utils.system import get_ssh_directory

PUBLIC_KEY_SUFFIX = ".pub"
PRIVATE_KEY_MARKER = "PRIVATE KEY"
HEADER_PEEK_BYTES = 200

# Well-known non-key files in an SSH directory (exact names or prefixes)
NON_KEY_NAMES = ("config", "environment")
NON_KEY_PREFIXES = ("known_hosts", "authorized_keys")


def _read_header(path: Path) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read(HEADER_PEEK_BYTES)


def is_private_key_candidate(path: Union[str, Path]) -> bool:
    """Decide whether a file in the SSH directory should be treated as a private key.

    Files named like public keys or well-known SSH files are skipped unless
    their header contains a private key marker (misnamed keys).

    Args:
        path: File to inspect

    Returns:
        True if the file should be held to the key file access level
    """
    path = Path(path)
    name = path.name
    is_known_non_key = (
        name.endswith(PUBLIC_KEY_SUFFIX)
        or name in NON_KEY_NAMES
        or name.startswith(NON_KEY_PREFIXES)
    )
    if not is_known_non_key:
        return True

    try:
        return PRIVATE_KEY_MARKER in _read_header(path)
    except OSError as e:
        get_logger().warning(f"Could not read {path}, treating it as a non-key file",
                             path=str(path), error_message=str(e))
        return False


class PermissionService:
    """Check and fix service for SSH key files and the SSH directory.

    Hard preconditions (missing key, unresolvable home directory) raise;
    tool failures on Windows come back as negative results. Every fix is
    recorded in the audit log.
    """

    def __init__(self, backend: Optional[PermissionBackend] = None,
                 config: Optional[PermissionConfig] = None):
        """Initialize the service.

        Args:
            backend: Platform backend, selected from config when not given
            config: Runtime configuration, defaults are used when not given
        """
        self.config = config or PermissionConfig()
        self.backend = backend or get_backend(self.config.backend, acl_tool=self.config.acl_tool)

    def resolve_ssh_dir(self, ssh_dir: Optional[Union[str, Path]] = None) -> Path:
        """Return the SSH directory to operate on.

        Priority: explicit argument, configured override, then ~/.ssh.

        Raises:
            HomeDirectoryNotFoundError: If ~/.ssh is needed and home cannot be resolved
        """
        return get_ssh_directory(ssh_dir or self.config.ssh_dir)

    async def check_key_permissions(self, key_path: Union[str, Path]) -> CheckResult:
        """Check that a private key is accessible by its owner only.

        Raises:
            ResourceNotFoundError: If the key does not exist
            IoError: If the key's metadata cannot be read
        """
        with log_operation("check_key_permissions", path=str(key_path)):
            return self.backend.check(Path(key_path), get_access_level(ResourceKind.KEY_FILE))

    async def fix_key_permissions(self, key_path: Union[str, Path]) -> FixResult:
        """Restrict a private key to its owner.

        Raises:
            ResourceNotFoundError: If the key does not exist
            IoError: If the permissions cannot be changed
        """
        with log_operation("fix_key_permissions", path=str(key_path)):
            level = get_access_level(ResourceKind.KEY_FILE)
            result = self.backend.fix(Path(key_path), level, create_if_missing=level.kind.creatable)
        self._audit_fix("fix_key_permissions", Path(key_path), result)
        return result

    async def check_ssh_dir_permissions(self, ssh_dir: Optional[Union[str, Path]] = None) -> CheckResult:
        """Check that the SSH directory is accessible by its owner only.

        A missing directory is reported as a negative result, not an error,
        since fix_ssh_dir_permissions creates it.

        Args:
            ssh_dir: Directory to check, defaults to the configured one or ~/.ssh

        Raises:
            HomeDirectoryNotFoundError: If the home directory cannot be resolved
            IoError: If the directory's metadata cannot be read
        """
        path = self.resolve_ssh_dir(ssh_dir)
        level = get_access_level(ResourceKind.SSH_DIRECTORY)

        if not self._path_exists(path):
            return CheckResult(
                is_valid=False,
                current_mode=None,
                expected_mode=self.backend.expected_descriptor(level),
                message=f"{level.label} does not exist",
            )

        with log_operation("check_ssh_dir_permissions", path=str(path)):
            return self.backend.check(path, level)

    async def fix_ssh_dir_permissions(self, ssh_dir: Optional[Union[str, Path]] = None) -> FixResult:
        """Restrict the SSH directory to its owner, creating it when absent.

        Raises:
            HomeDirectoryNotFoundError: If the home directory cannot be resolved
            IoError: If the directory cannot be created or changed
        """
        path = self.resolve_ssh_dir(ssh_dir)
        with log_operation("fix_ssh_dir_permissions", path=str(path)):
            level = get_access_level(ResourceKind.SSH_DIRECTORY)
            result = self.backend.fix(path, level, create_if_missing=level.kind.creatable)
        self._audit_fix("fix_ssh_dir_permissions", path, result)
        return result

    def find_private_keys(self, ssh_dir: Union[str, Path]) -> List[Path]:
        """List private key candidates directly inside an SSH directory.

        Subdirectories and symlinks are not followed.

        Raises:
            IoError: If the directory cannot be listed
        """
        ssh_dir = Path(ssh_dir)
        try:
            children = sorted(ssh_dir.iterdir())
        except OSError as e:
            raise IoError(f"Failed to list SSH directory: {e}", path=ssh_dir,
                          operation="list", original_error=e) from e

        return [
            child for child in children
            if child.is_file() and not child.is_symlink() and is_private_key_candidate(child)
        ]

    async def audit_ssh_directory(self, ssh_dir: Optional[Union[str, Path]] = None) -> AuditReport:
        """Check the SSH directory and every private key in it.

        Args:
            ssh_dir: Directory to audit, defaults to the configured one or ~/.ssh

        Returns:
            AuditReport with one entry per checked path
        """
        path = self.resolve_ssh_dir(ssh_dir)
        report = AuditReport(ssh_dir=path)

        report.add(path, ResourceKind.SSH_DIRECTORY, await self.check_ssh_dir_permissions(path))
        if not self._path_exists(path):
            return report

        for key_path in self.find_private_keys(path):
            report.add(key_path, ResourceKind.KEY_FILE, await self.check_key_permissions(key_path))

        get_logger().info(f"Audited {path}", checked=len(report.entries),
                          invalid=len(report.invalid_entries))
        return report

    async def fix_all(self, ssh_dir: Optional[Union[str, Path]] = None) -> FixReport:
        """Fix the SSH directory and every private key that fails its check.

        The directory is handled first and created when absent. Paths that
        already pass their check are left untouched.

        Returns:
            FixReport with one entry per changed path
        """
        path = self.resolve_ssh_dir(ssh_dir)
        report = FixReport(ssh_dir=path)

        dir_check = await self.check_ssh_dir_permissions(path)
        if not dir_check.is_valid:
            report.add(path, ResourceKind.SSH_DIRECTORY, await self.fix_ssh_dir_permissions(path))

        for key_path in self.find_private_keys(path):
            key_check = await self.check_key_permissions(key_path)
            if not key_check.is_valid:
                report.add(key_path, ResourceKind.KEY_FILE, await self.fix_key_permissions(key_path))

        return report

    @staticmethod
    def _path_exists(path: Path) -> bool:
        try:
            return path.exists()
        except OSError as e:
            raise IoError(f"Failed to access {path}: {e}", path=path,
                          operation="stat", original_error=e) from e

    @staticmethod
    def _audit_fix(action: str, path: Path, result: FixResult) -> None:
        get_logger().audit(
            action,
            resource=str(path),
            result="success" if result.success else "failure",
            detail=result.message,
            new_mode=result.new_mode,
        )


def _service_from_env(backend: Optional[PermissionBackend]) -> PermissionService:
    """Service configured from SSHPERMS_* variables, as the CLI uses it."""
    return PermissionService(backend=backend, config=PermissionConfig.from_env())


async def check_key_permissions(key_path: Union[str, Path],
                                backend: Optional[PermissionBackend] = None) -> CheckResult:
    """Check a private key with the platform backend."""
    return await _service_from_env(backend).check_key_permissions(key_path)


async def fix_key_permissions(key_path: Union[str, Path],
                              backend: Optional[PermissionBackend] = None) -> FixResult:
    """Restrict a private key to its owner with the platform backend."""
    return await _service_from_env(backend).fix_key_permissions(key_path)


async def check_ssh_dir_permissions(ssh_dir: Optional[Union[str, Path]] = None,
                                    backend: Optional[PermissionBackend] = None) -> CheckResult:
    """Check the SSH directory (default SSHPERMS_SSH_DIR or ~/.ssh) with the platform backend."""
    return await _service_from_env(backend).check_ssh_dir_permissions(ssh_dir)


async def fix_ssh_dir_permissions(ssh_dir: Optional[Union[str, Path]] = None,
                                  backend: Optional[PermissionBackend] = None) -> FixResult:
    """Restrict the SSH directory (default SSHPERMS_SSH_DIR or ~/.ssh) to its owner, creating it when absent."""
    return await _service_from_env(backend).fix_ssh_dir_permissions(ssh_dir)
