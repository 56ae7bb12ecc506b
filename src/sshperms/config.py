"""Runtime configuration loaded from environment variables.

Variables:
    SSHPERMS_BACKEND     auto (default), posix or windows
    SSHPERMS_SSH_DIR     SSH directory override (default ~/.ssh)
    SSHPERMS_ACL_TOOL    ACL tool executable used on Windows (default icacls)
    SSHPERMS_LOG_LEVEL   DEBUG/INFO/WARNING/ERROR (default WARNING)
    SSHPERMS_LOG_FORMAT  human (default) or json
    SSHPERMS_LOG_FILE    optional log file, rotated
    SSHPERMS_DEBUG       true/false, forces DEBUG level and verbose errors
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .backends.windows import DEFAULT_ACL_TOOL
from .exceptions import ConfigurationError
from .types.enums import BackendType
from .utils.logging import LogFormat, LogLevel

ENV_PREFIX = "SSHPERMS_"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Invalid boolean value '{value}' for {name}",
        variable=name,
        valid_values=["true", "false"],
    )


@dataclass
class PermissionConfig:
    """Settings shared by the service layer and the CLI."""
    backend: BackendType = BackendType.AUTO
    ssh_dir: Optional[Path] = None
    acl_tool: str = DEFAULT_ACL_TOOL
    log_level: LogLevel = LogLevel.WARNING
    log_format: LogFormat = LogFormat.HUMAN
    log_file: Optional[Path] = None
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PermissionConfig":
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value.strip() if value is not None else None

        config = cls()

        backend = get("BACKEND")
        if backend:
            try:
                config.backend = BackendType.from_string(backend)
            except ValueError as e:
                raise ConfigurationError(
                    str(e), variable=ENV_PREFIX + "BACKEND",
                    valid_values=BackendType.get_all_values(),
                ) from e

        ssh_dir = get("SSH_DIR")
        if ssh_dir:
            config.ssh_dir = Path(ssh_dir).expanduser()

        acl_tool = get("ACL_TOOL")
        if acl_tool:
            config.acl_tool = acl_tool

        log_level = get("LOG_LEVEL")
        if log_level:
            try:
                config.log_level = LogLevel(log_level.lower())
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid log level '{log_level}'", variable=ENV_PREFIX + "LOG_LEVEL",
                    valid_values=[level.value.upper() for level in LogLevel],
                ) from e

        log_format = get("LOG_FORMAT")
        if log_format:
            try:
                config.log_format = LogFormat(log_format.lower())
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid log format '{log_format}'", variable=ENV_PREFIX + "LOG_FORMAT",
                    valid_values=[fmt.value for fmt in LogFormat],
                ) from e

        log_file = get("LOG_FILE")
        if log_file:
            config.log_file = Path(log_file).expanduser()

        debug = get("DEBUG")
        if debug is not None:
            config.debug = _parse_bool(ENV_PREFIX + "DEBUG", debug)
        if config.debug:
            config.log_level = LogLevel.DEBUG

        return config
