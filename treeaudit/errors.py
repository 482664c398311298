"""
Error taxonomy for audit runs.

Every fatal condition maps to a distinct exit code so callers can tell
corruption from I/O failure from misuse.
"""

from __future__ import annotations

from pathlib import Path


class TreeAuditError(Exception):
    """Base class for fatal audit errors."""

    exit_code: int = 1
    label: str = "error"


class ManifestCorruptError(TreeAuditError):
    """A manifest line does not match the `<path> <size> <digest>` grammar."""

    exit_code = 3
    label = "manifest corrupt"

    def __init__(self, manifest_path: Path | str, line_number: int, line: str, reason: str = ""):
        self.manifest_path = Path(manifest_path)
        self.line_number = line_number
        self.line = line
        self.reason = reason or "line does not match '<path> <size> <digest>'"
        super().__init__(f"{self.manifest_path}:{line_number}: {self.reason}: {line!r}")


class IoFailureError(TreeAuditError):
    """A file vanished or became unreadable between scan and read."""

    exit_code = 4
    label = "I/O failure"

    def __init__(self, path: Path | str, original_error: OSError):
        self.path = Path(path)
        self.original_error = original_error
        detail = original_error.strerror or str(original_error)
        super().__init__(f"{self.path}: {detail}")


class ConfigError(TreeAuditError):
    """Configuration file is unreadable or invalid."""

    exit_code = 2
    label = "invalid configuration"
