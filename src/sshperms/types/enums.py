"""Enumerations for SSH permission checking.

All enums inherit from str and Enum to support JSON serialization; the
selection enums provide a ``from_string`` parser for CLI and environment values.
"""

from enum import Enum
from typing import List


class ResourceKind(str, Enum):
    """Kinds of secret-bearing resources whose permissions are enforced.

    Values:
        KEY_FILE: An SSH private key file. Must already exist to be fixed.
        SSH_DIRECTORY: The SSH configuration directory (~/.ssh). Created on fix
            when absent.
    """
    KEY_FILE = "key_file"
    SSH_DIRECTORY = "ssh_directory"

    @property
    def creatable(self) -> bool:
        """Whether a fix may create the resource when it is missing."""
        return self == ResourceKind.SSH_DIRECTORY


class PlatformType(str, Enum):
    """Host platform families, as reported by ``platform.system()``."""
    WINDOWS = "windows"
    MACOS = "darwin"
    LINUX = "linux"
    UNKNOWN = "unknown"

    @property
    def is_windows(self) -> bool:
        return self == PlatformType.WINDOWS


class BackendType(str, Enum):
    """Permission backend selection.

    Values:
        AUTO: Pick the backend matching the running platform
        POSIX: Mode-bit backend (chmod/stat)
        WINDOWS: ACL backend driven by the icacls tool
    """
    AUTO = "auto"
    POSIX = "posix"
    WINDOWS = "windows"

    @classmethod
    def from_string(cls, value: str) -> "BackendType":
        """Parse backend type from string (case-insensitive).

        Raises:
            ValueError: If value is not a valid backend type
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid_values = [backend.value for backend in cls]
            raise ValueError(f"Invalid backend '{value}'. Valid values: {valid_values}")

    @classmethod
    def get_all_values(cls) -> List[str]:
        return [backend.value for backend in cls]


class OutputFormat(str, Enum):
    """Output format options for CLI commands.

    Values:
        JSON: Structured JSON output for programmatic consumption
        TABLE: Human-readable output
        QUIET: Minimal output (failures only)
    """
    JSON = "json"
    TABLE = "table"
    QUIET = "quiet"

    @classmethod
    def from_string(cls, value: str) -> "OutputFormat":
        """Parse output format from string (case-insensitive).

        Raises:
            ValueError: If value is not a valid output format
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid_values = [fmt.value for fmt in cls]
            raise ValueError(f"Invalid output format '{value}'. Valid values: {valid_values}")

    @classmethod
    def get_all_values(cls) -> List[str]:
        return [fmt.value for fmt in cls]
