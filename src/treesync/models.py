"""Core data models for treesync.

Snapshot Model:
---------------
A snapshot is an immutable tree of DirEntry/FileEntry nodes describing a
directory at one point in time. Every ``path`` is relative to the walk root
and uses forward slashes on all platforms; the root itself has path "".

The JSON form of a snapshot is the wire format served to launchers:

    {"kind": "dir", "path": "", "entries": {
        "client.jar": {"kind": "file", "path": "client.jar", "size": 123, "hash": "ab12..."}
    }}
"""

import json
import re
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .utils import humanize_size, join_rel


_HEX_DIGEST = re.compile(r"^[0-9a-f]{64}$")


def normalize_digest(digest: str) -> str:
    """Normalize a SHA-256 digest to bare lowercase hex.

    Accepts the "sha256:xxxx" form as well.
    """
    digest = digest.strip().lower()
    if digest.startswith("sha256:"):
        digest = digest[len("sha256:"):]
    return digest


# ============= Snapshot Entries =============

class FileEntry(BaseModel):
    """A regular file in a snapshot."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    path: str
    size: int = Field(ge=0)
    hash: str  # lowercase hex sha256

    @field_validator("hash")
    @classmethod
    def validate_hash(cls, v: str) -> str:
        """Normalize and check the digest is 64 hex characters."""
        v = normalize_digest(v)
        if not _HEX_DIGEST.match(v):
            raise ValueError(f"not a hex SHA-256 digest: {v!r}")
        return v


class DirEntry(BaseModel):
    """A directory in a snapshot, mapping child names to entries."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["dir"] = "dir"
    path: str = ""
    entries: Dict[str, "TreeEntry"] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_child_paths(self) -> "DirEntry":
        """Every child's path must be this directory's path joined with its name.

        Children are validated before their parent, so a valid root ("")
        implies every path in the tree is root-relative with no ".." parts.
        """
        for name, entry in self.entries.items():
            if name in ("", ".", "..") or "/" in name or "\\" in name or "\0" in name:
                raise ValueError(f"invalid entry name {name!r} in {self.path or '/'}")
            expected = join_rel(self.path, name)
            if entry.path != expected:
                raise ValueError(f"entry {name!r} has path {entry.path!r}, expected {expected!r}")
        return self

    def get(self, rel_path: str) -> Optional["TreeEntry"]:
        """Look up a descendant by path relative to this directory."""
        node: TreeEntry = self
        for part in rel_path.strip("/").split("/"):
            if not part:
                continue
            if not isinstance(node, DirEntry) or part not in node.entries:
                return None
            node = node.entries[part]
        return node


TreeEntry = Annotated[Union[FileEntry, DirEntry], Field(discriminator="kind")]

DirEntry.model_rebuild()


# ============= Diffing =============

class ConflictPolicy(str, Enum):
    """What to do when a name is a file on one side and a directory on the other."""

    ERROR = "error"      # raise TreeConflictError
    REPLACE = "replace"  # remote wins: report as modified, flag local node in conflicts


class TreeDiff(BaseModel):
    """Three-way difference between a local and a remote snapshot.

    ``conflicts`` is only populated under ConflictPolicy.REPLACE and lists
    local nodes of the wrong kind that must be removed before fetching.
    """

    missing: List[str] = Field(default_factory=list)
    modified: List[str] = Field(default_factory=list)
    extra: List[str] = Field(default_factory=list)
    conflicts: List[str] = Field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        """True when the local tree already matches the remote one."""
        return not (self.missing or self.modified or self.extra or self.conflicts)

    @property
    def to_fetch(self) -> List[str]:
        """Paths the download scheduler has to fetch (missing then modified)."""
        return self.missing + self.modified

    @property
    def summary(self) -> Dict[str, int]:
        """Get counts per category."""
        return {
            "missing": len(self.missing),
            "modified": len(self.modified),
            "extra": len(self.extra),
            "conflicts": len(self.conflicts),
        }

    def to_json(self, **kwargs) -> str:
        """Serialize as the sync result document."""
        data = {"missing": self.missing, "modified": self.modified, "extra": self.extra}
        if self.conflicts:
            data["conflicts"] = self.conflicts
        return json.dumps(data, **kwargs)


class TreeVerification(BaseModel):
    """Outcome of checking every file of a snapshot against a directory."""

    total: int = 0
    valid: int = 0
    failed: List[str] = Field(default_factory=list)

    @property
    def invalid(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


class SyncPlan(BaseModel):
    """Work list for the download scheduler, resolved against the remote snapshot."""

    files_to_fetch: List[FileEntry] = Field(default_factory=list)
    paths_to_delete: List[str] = Field(default_factory=list)
    total_download_size: int = 0

    @classmethod
    def from_diff(cls, diff: TreeDiff, remote: DirEntry) -> "SyncPlan":
        """Resolve fetch paths to remote entries (expected hash and size).

        Raises:
            ValueError: If a path to fetch is not a file in ``remote``
        """
        files = []
        for path in diff.to_fetch:
            entry = remote.get(path)
            if not isinstance(entry, FileEntry):
                raise ValueError(f"{path} is not a file in the remote snapshot")
            files.append(entry)
        return cls(
            files_to_fetch=files,
            # Wrong-kind local nodes go first so their paths are free for the fetch
            paths_to_delete=diff.conflicts + diff.extra,
            total_download_size=sum(f.size for f in files),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.files_to_fetch or self.paths_to_delete)

    def summary(self) -> str:
        """Get human-readable summary."""
        if self.is_empty:
            return "Up to date"
        parts = []
        if self.files_to_fetch:
            parts.append(
                f"↓ {len(self.files_to_fetch)} files ({humanize_size(self.total_download_size)})"
            )
        if self.paths_to_delete:
            parts.append(f"{len(self.paths_to_delete)} to delete")
        return ", ".join(parts)
