"""Content hashing for snapshot entries.

Digests are SHA-256 over the full byte content, hex-encoded in lowercase
without an algorithm prefix.
"""

import hashlib
import threading
from pathlib import Path
from typing import Optional, Union

from .constants import HASH_CHUNK_SIZE
from .errors import TreeReadError, WalkCancelledError


def hash_file(
    path: Union[str, Path],
    cancel: Optional[threading.Event] = None,
    display_path: Optional[str] = None,
) -> str:
    """Compute SHA256 hash of file contents.

    Args:
        path: File to hash
        cancel: Checked between chunks; when set the read stops and
            WalkCancelledError is raised
        display_path: Path used in error messages (defaults to ``path``)

    Returns:
        64-character lowercase hex digest

    Raises:
        TreeReadError: If the file cannot be opened or read to completion
    """
    path = Path(path)
    shown = display_path if display_path is not None else str(path)
    sha256 = hashlib.sha256()
    try:
        with path.open("rb") as f:
            for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
                if cancel is not None and cancel.is_set():
                    raise WalkCancelledError(shown)
                sha256.update(chunk)
    except OSError as e:
        raise TreeReadError.from_os_error(shown, "read", e) from e
    return sha256.hexdigest()

