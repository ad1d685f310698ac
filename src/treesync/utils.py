"""Utility functions for treesync."""

import os
import tempfile
from pathlib import Path, PurePath
from typing import Union


def humanize_size(size: float) -> str:
    """Convert bytes to human-readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def to_posix(path: Union[str, PurePath]) -> str:
    """Normalize a relative path to forward slashes.

    Backslashes are treated as separators regardless of platform, so
    paths recorded on Windows compare equal to their POSIX form.
    """
    if isinstance(path, PurePath):
        return path.as_posix()
    return path.replace("\\", "/")


def join_rel(parent: str, name: str) -> str:
    """Join a root-relative directory path and a child name."""
    return f"{parent}/{name}" if parent else name


def atomic_write_text(path: Path, text: str) -> None:
    """Atomically write text to file.

    Writes to a temp file in the same directory with fsync, then renames over
    the target so readers never observe a partial file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w",
        delete=False,
        dir=path.parent,
        prefix=f".{path.name}.tmp-",
        encoding="utf-8",
    ) as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
        tmp = Path(f.name)

    try:
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
