"""Diff computation between a local and a remote snapshot.

Semantics, per directory pair:

- name only in remote: missing (a directory contributes all its files)
- name only in local: extra (a directory contributes all its files)
- both files: modified if the hashes differ
- both directories: descend
- file vs directory: governed by ConflictPolicy

Each name is visited once, so a path appears in at most one list. Lists are
sorted before returning; the comparison itself is set-based and does not
depend on entry order.
"""

from typing import List

from .errors import TreeConflictError
from .models import ConflictPolicy, DirEntry, FileEntry, TreeDiff
from .snapshot import iter_files


def _file_paths(entry) -> List[str]:
    """Paths of the file itself, or of every file below a directory."""
    if isinstance(entry, FileEntry):
        return [entry.path]
    return [f.path for f in iter_files(entry)]


def compare_trees(
    local: DirEntry,
    remote: DirEntry,
    conflict_policy: ConflictPolicy = ConflictPolicy.ERROR,
) -> TreeDiff:
    """Compare a local snapshot against the remote (canonical) one.

    Args:
        local: Snapshot of the consumer's installation
        remote: Authoritative snapshot
        conflict_policy: How to handle a name that is a file on one side and
            a directory on the other

    Returns:
        TreeDiff with missing/modified/extra (and conflicts under REPLACE)

    Raises:
        TreeConflictError: On a kind mismatch with ConflictPolicy.ERROR
    """
    missing: List[str] = []
    modified: List[str] = []
    extra: List[str] = []
    conflicts: List[str] = []

    stack = [(local, remote)]
    while stack:
        local_dir, remote_dir = stack.pop()

        for name, remote_entry in remote_dir.entries.items():
            local_entry = local_dir.entries.get(name)

            if local_entry is None:
                missing.extend(_file_paths(remote_entry))
            elif isinstance(remote_entry, FileEntry) and isinstance(local_entry, FileEntry):
                if remote_entry.hash != local_entry.hash:
                    modified.append(remote_entry.path)
            elif isinstance(remote_entry, DirEntry) and isinstance(local_entry, DirEntry):
                stack.append((local_entry, remote_entry))
            elif conflict_policy == ConflictPolicy.REPLACE:
                modified.extend(_file_paths(remote_entry))
                conflicts.append(local_entry.path)
            else:
                raise TreeConflictError(remote_entry.path, local_entry.kind, remote_entry.kind)

        for name, local_entry in local_dir.entries.items():
            if name not in remote_dir.entries:
                extra.extend(_file_paths(local_entry))

    return TreeDiff(
        missing=sorted(missing),
        modified=sorted(modified),
        extra=sorted(extra),
        conflicts=sorted(conflicts),
    )
