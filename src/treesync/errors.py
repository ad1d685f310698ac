"""Custom exceptions for treesync.

This module defines typed exceptions for better error handling and clearer
error messages throughout the package.
"""

from typing import Optional


class TreeSyncError(RuntimeError):
    """Base class for all treesync errors."""
    pass


# Walk Errors
class TreeReadError(TreeSyncError, OSError):
    """A file or directory could not be read during a walk.

    Always aborts the enclosing hash call; no partial tree is returned.
    """

    def __init__(self, path: str, operation: str, reason: str):
        self.path = path
        self.operation = operation
        self.reason = reason
        super().__init__(f"cannot {operation} {path}: {reason}")

    @classmethod
    def from_os_error(cls, path: str, operation: str, exc: OSError) -> "TreeReadError":
        """Build from an OSError, keeping only its human-readable reason."""
        reason = exc.strerror or str(exc) or type(exc).__name__
        return cls(path, operation, reason.lower())


class WalkCancelledError(TreeSyncError):
    """Walk was cancelled or hit its deadline before completing."""

    def __init__(self, root: str, timed_out: bool = False):
        self.root = root
        self.timed_out = timed_out
        cause = "timed out" if timed_out else "was cancelled"
        super().__init__(f"Hashing of {root} {cause}; partial results discarded")


# Pattern Errors
class PatternError(TreeSyncError, ValueError):
    """A filter expression is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


# Integrity Errors
class IntegrityMismatch(TreeSyncError):
    """File content does not hash to the expected digest."""

    def __init__(self, path: str, expected: str, actual: Optional[str]):
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Integrity check failed for {path}\n"
            f"  Expected: {expected}\n"
            f"  Got:      {actual or '(unreadable)'}\n"
            f"The file should be fetched again."
        )


# Diff Errors
class TreeConflictError(TreeSyncError):
    """A name is a file on one side and a directory on the other."""

    def __init__(self, path: str, local_kind: str, remote_kind: str):
        self.path = path
        self.local_kind = local_kind
        self.remote_kind = remote_kind
        super().__init__(
            f"Tree conflict at {path}: local is a {local_kind}, remote is a {remote_kind}"
        )


# Snapshot Errors
class SnapshotFormatError(TreeSyncError, ValueError):
    """Snapshot document is not a valid tree."""
    pass


# Configuration Errors
class ConfigError(TreeSyncError):
    """Configuration file is missing required structure or has bad values."""
    pass


# Path Errors
class UnsafePathError(TreeSyncError, ValueError):
    """Relative path is empty, absolute or escapes its root."""

    def __init__(self, rel_path: str):
        self.rel_path = rel_path
        super().__init__(f"Unsafe path: {rel_path!r}")
