"""Post-download integrity checks."""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Union

from .errors import IntegrityMismatch, TreeReadError, UnsafePathError
from .hashing import hash_file
from .models import DirEntry, FileEntry, TreeVerification, normalize_digest
from .paths import safe_target
from .snapshot import iter_files

logger = logging.getLogger(__name__)


def _actual_digest(path: Path) -> Optional[str]:
    try:
        return hash_file(path)
    except TreeReadError as e:
        logger.debug("Integrity check could not read %s: %s", path, e.reason)
        return None


def verify_file(path: Union[str, Path], expected_hash: str) -> bool:
    """Check that a file hashes to the expected digest.

    Fails closed: a missing or unreadable file is reported as False, never
    raised. The comparison ignores hex case and a "sha256:" prefix.

    Args:
        path: File to check
        expected_hash: Hex SHA-256 digest from the remote snapshot

    Returns:
        True only if the file was read completely and the digests match
    """
    actual = _actual_digest(Path(path))
    return actual is not None and actual == normalize_digest(expected_hash)


def ensure_verified(path: Union[str, Path], expected_hash: str) -> None:
    """Raise IntegrityMismatch unless verify_file would return True."""
    path = Path(path)
    actual = _actual_digest(path)
    if actual is None or actual != normalize_digest(expected_hash):
        raise IntegrityMismatch(str(path), normalize_digest(expected_hash), actual)


def verify_entry(path: Union[str, Path], entry: FileEntry) -> bool:
    """Check a file against a snapshot entry: size first, then digest.

    A size mismatch is reported without reading the file.
    """
    try:
        size = os.stat(path).st_size
    except OSError as e:
        logger.debug("Integrity check could not stat %s: %s", path, e)
        return False
    if size != entry.size:
        logger.debug("Size mismatch for %s: expected %d, got %d", entry.path, entry.size, size)
        return False
    return verify_file(path, entry.hash)


def verify_entries(root: Union[str, Path], entries: Iterable[FileEntry]) -> TreeVerification:
    """Check snapshot entries against their copies under ``root``.

    Returns:
        TreeVerification with counts and the paths that are missing,
        unreadable, unsafe or differ in size or digest
    """
    root = Path(root)
    total = 0
    failed = []
    for entry in entries:
        total += 1
        try:
            target = safe_target(root, entry.path)
        except UnsafePathError:
            logger.warning("Refusing to verify unsafe path %r", entry.path)
            failed.append(entry.path)
            continue
        if not verify_entry(target, entry):
            failed.append(entry.path)
    return TreeVerification(total=total, valid=total - len(failed), failed=failed)


def verify_tree(root: Union[str, Path], snapshot: DirEntry) -> TreeVerification:
    """Check every file of a snapshot against the copy under ``root``.

    Files present under ``root`` but absent from the snapshot are not
    considered; use compare_trees for those.
    """
    result = verify_entries(root, iter_files(snapshot))
    if not result.ok:
        logger.warning("%d of %d files under %s failed verification", result.invalid, result.total, root)
    return result
