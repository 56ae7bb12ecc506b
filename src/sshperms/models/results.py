"""Result models for permission checks and fixes.

CheckResult and FixResult are built fresh on every call and never persisted.
They serialize with camelCase keys, which is what the UI/CLI layer consumes.
AuditReport aggregates the results of scanning a whole SSH directory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..types.enums import ResourceKind


@dataclass
class CheckResult:
    """Outcome of checking one path against its expected access level.

    Attributes:
        is_valid: True only if the current access exactly matches the target
        current_mode: Octal mode string ("640"), the "ACL" marker on Windows,
            or None when the state could not be read
        expected_mode: Descriptor of the target ("600", "700", "User only")
        message: Human-readable explanation suitable for direct display
    """
    is_valid: bool
    current_mode: Optional[str]
    expected_mode: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (camelCase keys)."""
        return {
            "isValid": self.is_valid,
            "currentMode": self.current_mode,
            "expectedMode": self.expected_mode,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CheckResult:
        """Create CheckResult from dictionary data."""
        return cls(
            is_valid=data["isValid"],
            current_mode=data.get("currentMode"),
            expected_mode=data["expectedMode"],
            message=data["message"],
        )


@dataclass
class FixResult:
    """Outcome of restricting one path to its expected access level.

    Attributes:
        success: True only if the target state was verified after the change
        message: Human-readable explanation, including tool diagnostics on failure
        new_mode: Descriptor of the resulting state, or None on failure
    """
    success: bool
    message: str
    new_mode: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (camelCase keys)."""
        return {
            "success": self.success,
            "message": self.message,
            "newMode": self.new_mode,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FixResult:
        """Create FixResult from dictionary data."""
        return cls(
            success=data["success"],
            message=data["message"],
            new_mode=data.get("newMode"),
        )


@dataclass
class AuditEntry:
    """Check result for one resource found during an SSH directory audit."""
    path: Path
    kind: ResourceKind
    result: CheckResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "kind": self.kind.value,
            **self.result.to_dict(),
        }


@dataclass
class AuditReport:
    """Aggregated results of auditing an SSH directory and its private keys."""
    ssh_dir: Path
    entries: List[AuditEntry] = field(default_factory=list)

    @property
    def is_healthy(self) -> bool:
        return all(entry.result.is_valid for entry in self.entries)

    @property
    def invalid_entries(self) -> List[AuditEntry]:
        return [entry for entry in self.entries if not entry.result.is_valid]

    def add(self, path: Path, kind: ResourceKind, result: CheckResult) -> None:
        self.entries.append(AuditEntry(path=Path(path), kind=kind, result=result))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (camelCase keys)."""
        return {
            "sshDir": str(self.ssh_dir),
            "isHealthy": self.is_healthy,
            "checked": len(self.entries),
            "invalid": len(self.invalid_entries),
            "entries": [entry.to_dict() for entry in self.entries],
        }


@dataclass
class FixEntry:
    """Fix result for one resource changed by fix_all."""
    path: Path
    kind: ResourceKind
    result: FixResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "kind": self.kind.value,
            **self.result.to_dict(),
        }


@dataclass
class FixReport:
    """Fix results for an SSH directory and the keys that failed its audit."""
    ssh_dir: Path
    entries: List[FixEntry] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return all(entry.result.success for entry in self.entries)

    @property
    def failed_entries(self) -> List[FixEntry]:
        return [entry for entry in self.entries if not entry.result.success]

    def add(self, path: Path, kind: ResourceKind, result: FixResult) -> None:
        self.entries.append(FixEntry(path=Path(path), kind=kind, result=result))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (camelCase keys)."""
        return {
            "sshDir": str(self.ssh_dir),
            "allSucceeded": self.all_succeeded,
            "fixed": len(self.entries),
            "failed": len(self.failed_entries),
            "entries": [entry.to_dict() for entry in self.entries],
        }
