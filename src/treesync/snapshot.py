"""Snapshot traversal and JSON persistence."""

import json
from pathlib import Path
from typing import Iterator, List, Union

from pydantic import ValidationError

from .constants import SNAPSHOT_FORMAT
from .errors import SnapshotFormatError
from .models import DirEntry, FileEntry
from .utils import atomic_write_text


# ============= Traversal =============

def iter_files(tree: DirEntry) -> Iterator[FileEntry]:
    """Yield every file in the tree, depth-first in entry order."""
    stack = [iter(tree.entries.values())]
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
        elif isinstance(entry, FileEntry):
            yield entry
        else:
            stack.append(iter(entry.entries.values()))


def flatten(tree: DirEntry) -> List[FileEntry]:
    """Get the flat list of all files in a tree (no directory entries)."""
    return list(iter_files(tree))


def total_size(tree: DirEntry) -> int:
    """Sum of file sizes in bytes."""
    return sum(f.size for f in iter_files(tree))


def count_files(tree: DirEntry) -> int:
    return sum(1 for _ in iter_files(tree))


# ============= Serialization =============

def dump_snapshot(tree: DirEntry, **kwargs) -> str:
    """Serialize a tree to its JSON wire form (bare, no envelope)."""
    return json.dumps(tree.model_dump(), **kwargs)


def load_snapshot(data: Union[str, bytes]) -> DirEntry:
    """Parse a snapshot document.

    Accepts either the bare tree or the ``{"format": 1, "tree": {...}}``
    envelope written by save_snapshot.

    Raises:
        SnapshotFormatError: If the document is not valid JSON, not a tree,
            or has entry paths that do not match their position
    """
    try:
        doc = json.loads(data)
    except ValueError as e:
        raise SnapshotFormatError(f"Snapshot is not valid JSON: {e}") from e

    if isinstance(doc, dict) and "tree" in doc:
        fmt = doc.get("format")
        if fmt != SNAPSHOT_FORMAT:
            raise SnapshotFormatError(f"Unsupported snapshot format: {fmt!r}")
        doc = doc["tree"]

    try:
        tree = DirEntry.model_validate(doc)
    except ValidationError as e:
        raise SnapshotFormatError(f"Snapshot is not a valid directory tree: {e}") from e
    if tree.path != "":
        raise SnapshotFormatError(f"Snapshot root must have path '', got {tree.path!r}")
    return tree


def read_snapshot(path: Union[str, Path]) -> DirEntry:
    """Load a snapshot file written by save_snapshot (or a bare tree)."""
    return load_snapshot(Path(path).read_bytes())


def save_snapshot(tree: DirEntry, path: Union[str, Path]) -> None:
    """Atomically write a snapshot file wrapped in the format envelope."""
    text = json.dumps({"format": SNAPSHOT_FORMAT, "tree": tree.model_dump()}, indent=2)
    atomic_write_text(Path(path), text)
