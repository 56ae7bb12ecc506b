"""Permission policy: the expected access level for each resource kind.

Pure lookups, no I/O. POSIX renders the level as an octal mode; Windows
renders it as an owner-exclusive ACL, described as "User only".
"""

from dataclasses import dataclass
from typing import Dict

from .types.enums import PlatformType, ResourceKind

# Descriptor used for the owner-exclusive ACL target on Windows
OWNER_ONLY_DESCRIPTOR = "User only"

# current_mode marker reported by the Windows backend
ACL_MARKER = "ACL"


@dataclass(frozen=True)
class AccessLevel:
    """Platform-independent target access for a resource kind.

    Attributes:
        kind: Resource kind this level applies to
        posix_mode: Exact permission bits required on POSIX
        label: Resource name used in result messages
    """
    kind: ResourceKind
    posix_mode: int
    label: str

    @property
    def posix_descriptor(self) -> str:
        return format_mode(self.posix_mode)

    def descriptor(self, platform: PlatformType) -> str:
        """Expected-mode string shown in results for the given platform."""
        if platform.is_windows:
            return OWNER_ONLY_DESCRIPTOR
        return self.posix_descriptor


_ACCESS_LEVELS: Dict[ResourceKind, AccessLevel] = {
    ResourceKind.KEY_FILE: AccessLevel(ResourceKind.KEY_FILE, 0o600, "Key"),
    ResourceKind.SSH_DIRECTORY: AccessLevel(ResourceKind.SSH_DIRECTORY, 0o700, "SSH directory"),
}


def get_access_level(kind: ResourceKind) -> AccessLevel:
    """Return the target access level for a resource kind."""
    return _ACCESS_LEVELS[kind]


def expected_descriptor(kind: ResourceKind, platform: PlatformType) -> str:
    """Return "600", "700" or "User only" for a kind on a platform."""
    return get_access_level(kind).descriptor(platform)


def format_mode(mode: int) -> str:
    """Render the low 9 permission bits as a 3-digit octal string."""
    return f"{mode & 0o777:03o}"
