"""Resolution of snapshot-relative paths against a local root."""

import re
from pathlib import Path

from .errors import UnsafePathError

_DRIVE = re.compile(r"^[A-Za-z]:")


def safe_target(root: Path, rel_path: str) -> Path:
    """Validate path is safe and within root.

    Args:
        root: Installation or update directory
        rel_path: Root-relative path taken from a snapshot or request

    Returns:
        Safe resolved path

    Raises:
        UnsafePathError: If path is empty, absolute, contains "..", or
            resolves outside root
    """
    if not rel_path or not rel_path.strip() or "\0" in rel_path:
        raise UnsafePathError(rel_path)

    # Check both separators so Windows-style traversal is caught everywhere
    parts = rel_path.replace("\\", "/").split("/")
    if rel_path.startswith(("/", "\\")) or ".." in parts or _DRIVE.match(parts[0]):
        raise UnsafePathError(rel_path)

    target = (root / rel_path).resolve()
    try:
        target.relative_to(root.resolve())
    except ValueError:
        raise UnsafePathError(rel_path) from None
    return target
