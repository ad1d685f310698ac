"""Gitignore-style exclusion rules applied by the walker.

Rules come from three places, in order: the built-in DEFAULTS, the walk
root's ``.treesyncignore`` and any extra patterns from the caller. They are
evaluated before the regex include/exclude filters, and a skipped directory
takes its whole subtree with it.
"""

from pathlib import Path
from typing import Iterable, List

from pathspec import PathSpec

from .constants import IGNORE_FILE, TREESYNC_DIR


DEFAULTS = [
    f"{TREESYNC_DIR}/",
    f"/{IGNORE_FILE}",
    # partial downloads and editor leftovers
    "*.part",
    "*.tmp",
    "*~",
    # OS litter
    ".DS_Store",
    "Thumbs.db",
    "desktop.ini",
]


def read_ignore_file(root: Path) -> List[str]:
    """Patterns from ``<root>/.treesyncignore``, without blanks and comments."""
    path = root / IGNORE_FILE
    if not path.is_file():
        return []
    lines = (line.strip() for line in path.read_text(encoding="utf-8").splitlines())
    return [line for line in lines if line and not line.startswith("#")]


class IgnoreSpec:
    """Compiled exclusion rules for one walk."""

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns = list(patterns)
        self._spec = PathSpec.from_lines("gitwildmatch", self.patterns)

    @classmethod
    def for_root(cls, root: Path, extra: Iterable[str] = (), defaults: bool = True) -> "IgnoreSpec":
        """Build the rules for walking ``root``.

        Args:
            root: Walk root holding the optional .treesyncignore
            extra: Patterns appended after the file's, so they can override it
            defaults: Start from DEFAULTS
        """
        patterns = list(DEFAULTS) if defaults else []
        patterns.extend(read_ignore_file(root))
        patterns.extend(extra)
        return cls(patterns)

    def skips(self, relpath: str, is_dir: bool = False) -> bool:
        """Check whether the walker leaves out a root-relative POSIX path.

        Directories are matched with a trailing slash so directory-only
        patterns ("saves/") apply. The marker directory is always skipped.
        """
        if is_dir:
            if relpath == TREESYNC_DIR or relpath.startswith(TREESYNC_DIR + "/"):
                return True
            relpath = relpath.rstrip("/") + "/"
        return self._spec.match_file(relpath)
