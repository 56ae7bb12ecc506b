"""Type definitions for sshperms."""

from .enums import BackendType, OutputFormat, PlatformType, ResourceKind

__all__ = [
    "BackendType",
    "OutputFormat",
    "PlatformType",
    "ResourceKind",
]
