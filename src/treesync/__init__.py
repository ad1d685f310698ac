"""treesync: content-hash snapshots and three-way diffs of client file trees."""

from .diffing import compare_trees
from .errors import (
    ConfigError,
    IntegrityMismatch,
    PatternError,
    SnapshotFormatError,
    TreeConflictError,
    TreeReadError,
    TreeSyncError,
    UnsafePathError,
    WalkCancelledError,
)
from .hashing import hash_file
from .integrity import ensure_verified, verify_entries, verify_entry, verify_file, verify_tree
from .models import ConflictPolicy, DirEntry, FileEntry, SyncPlan, TreeDiff, TreeVerification
from .patterns import PathFilter, matches
from .snapshot import flatten, iter_files, load_snapshot, read_snapshot, save_snapshot, total_size
from .walker import hash_directory

__version__ = "0.1.0"

__all__ = [
    "compare_trees",
    "ConfigError",
    "ConflictPolicy",
    "DirEntry",
    "ensure_verified",
    "FileEntry",
    "flatten",
    "hash_directory",
    "hash_file",
    "IntegrityMismatch",
    "iter_files",
    "load_snapshot",
    "matches",
    "PathFilter",
    "PatternError",
    "read_snapshot",
    "save_snapshot",
    "SnapshotFormatError",
    "SyncPlan",
    "total_size",
    "TreeConflictError",
    "TreeDiff",
    "TreeReadError",
    "TreeSyncError",
    "TreeVerification",
    "UnsafePathError",
    "verify_entries",
    "verify_entry",
    "verify_file",
    "verify_tree",
    "WalkCancelledError",
]
