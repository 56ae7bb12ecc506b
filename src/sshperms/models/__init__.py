"""Data models for sshperms results."""

from .results import (
    AuditEntry,
    AuditReport,
    CheckResult,
    FixEntry,
    FixReport,
    FixResult,
)

__all__ = [
    "AuditEntry",
    "AuditReport",
    "CheckResult",
    "FixEntry",
    "FixReport",
    "FixResult",
]
