"""Directory walking that builds immutable snapshots.

The walk runs in three phases:

1. Scan: an iterative (explicit stack) ``os.scandir`` pass that applies the
   ignore rules and include/exclude filters and records the accepted structure.
   Filtered-out directories are never listed.
2. Hash: every accepted file is stat'ed and hashed on a bounded thread pool.
   The pool size also caps the number of open file descriptors.
3. Assemble: DirEntry nodes are built bottom-up once all files are hashed,
   so no worker ever touches shared tree state.

Any read failure aborts the whole walk with TreeReadError, and cancellation
(event or timeout) raises WalkCancelledError. Either way the partial results
are dropped; a half-built snapshot never leaves this module.
"""

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .errors import TreeReadError, WalkCancelledError
from .hashing import hash_file
from .ignore import IgnoreSpec
from .models import DirEntry, FileEntry
from .patterns import PathFilter
from .utils import join_rel

logger = logging.getLogger(__name__)


def default_max_workers() -> int:
    """Small multiple of the CPU count, capped like ThreadPoolExecutor's default."""
    return min(32, (os.cpu_count() or 1) * 2)


class _Interrupt:
    """Combines a caller's cancel event, a deadline and an internal abort flag.

    Quacks like threading.Event for hash_file's chunk loop.
    """

    def __init__(self, cancel: Optional[threading.Event], timeout: Optional[float]):
        self._cancel = cancel
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._abort = threading.Event()
        self.timed_out = False

    def abort(self) -> None:
        self._abort.set()

    def is_set(self) -> bool:
        if self._abort.is_set():
            return True
        if self._cancel is not None and self._cancel.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.timed_out = True
            return True
        return False


@dataclass
class _PendingDir:
    rel: str
    files: List[str] = field(default_factory=list)  # relative paths
    subdirs: List["_PendingDir"] = field(default_factory=list)


@dataclass(frozen=True)
class _FileJob:
    rel: str
    abs_path: str
    display: str


def _scan(
    root: Path,
    path_filter: PathFilter,
    ignore: Optional[IgnoreSpec],
    interrupt: _Interrupt,
) -> Tuple[List[_PendingDir], List[_FileJob]]:
    """List the tree, returning directories in discovery order and file jobs."""
    top = _PendingDir("")
    order = [top]
    jobs = []
    stack = [(str(root), top)]

    while stack:
        if interrupt.is_set():
            raise WalkCancelledError(str(root), interrupt.timed_out)
        abs_dir, pending = stack.pop()
        shown = (root / pending.rel).as_posix()

        try:
            with os.scandir(abs_dir) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise TreeReadError.from_os_error(shown, "list directory", e) from e

        for child in children:
            rel = join_rel(pending.rel, child.name)
            try:
                is_dir = child.is_dir(follow_symlinks=False)
                is_file = not is_dir and child.is_file(follow_symlinks=False)
            except OSError as e:
                raise TreeReadError.from_os_error((root / rel).as_posix(), "stat", e) from e

            if not (is_dir or is_file):
                logger.debug("Skipping %s: not a regular file or directory", rel)
                continue
            if "\\" in child.name:
                # Backslash is a separator in snapshot paths
                logger.warning("Skipping %s: backslash in name", rel)
                continue

            if ignore is not None and ignore.skips(rel, is_dir=is_dir):
                continue
            if not path_filter.accepts(rel, is_dir=is_dir):
                continue

            if is_dir:
                sub = _PendingDir(rel)
                pending.subdirs.append(sub)
                order.append(sub)
                stack.append((child.path, sub))
            else:
                pending.files.append(rel)
                jobs.append(_FileJob(rel, child.path, (root / rel).as_posix()))

    return order, jobs


def _hash_job(job: _FileJob, interrupt: _Interrupt) -> FileEntry:
    if interrupt.is_set():
        raise WalkCancelledError(job.display, interrupt.timed_out)
    try:
        size = os.stat(job.abs_path).st_size
    except OSError as e:
        raise TreeReadError.from_os_error(job.display, "stat", e) from e
    digest = hash_file(job.abs_path, cancel=interrupt, display_path=job.display)
    return FileEntry(path=job.rel, size=size, hash=digest)


def _hash_all(jobs: List[_FileJob], interrupt: _Interrupt, max_workers: int) -> Dict[str, FileEntry]:
    """Hash every job, failing fast on the first error."""
    results: Dict[str, FileEntry] = {}

    if max_workers == 1 or len(jobs) <= 1:
        for job in jobs:
            results[job.rel] = _hash_job(job, interrupt)
        return results

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="treesync-hash") as executor:
        futures = [executor.submit(_hash_job, job, interrupt) for job in jobs]
        try:
            for future in as_completed(futures):
                entry = future.result()
                results[entry.path] = entry
        except BaseException:
            # Stop in-flight reads and drop queued work before re-raising
            interrupt.abort()
            for future in futures:
                future.cancel()
            raise
    return results


def _assemble(order: List[_PendingDir], files: Dict[str, FileEntry]) -> DirEntry:
    """Build DirEntry nodes bottom-up; children are keyed by name in sorted order."""
    built: Dict[str, DirEntry] = {}
    for pending in reversed(order):
        children = {}
        for rel in pending.files:
            children[rel.rsplit("/", 1)[-1]] = files[rel]
        for sub in pending.subdirs:
            children[sub.rel.rsplit("/", 1)[-1]] = built.pop(sub.rel)
        built[pending.rel] = DirEntry(path=pending.rel, entries=dict(sorted(children.items())))
    return built[""]


def hash_directory(
    root: Union[str, Path],
    include_patterns: Optional[Iterable[str]] = None,
    exclude_patterns: Optional[Iterable[str]] = None,
    *,
    ignore: Optional[IgnoreSpec] = None,
    max_workers: Optional[int] = None,
    cancel: Optional[threading.Event] = None,
    timeout: Optional[float] = None,
) -> DirEntry:
    """Hash a directory tree into an immutable snapshot.

    Filters are regular expressions evaluated against paths relative to
    ``root`` (forward slashes) at every depth. Exclusion wins over inclusion,
    and a skipped directory is pruned with its whole subtree.

    Args:
        root: Directory to walk
        include_patterns: If non-empty, only matching paths are kept
        exclude_patterns: Matching paths are skipped
        ignore: Optional gitignore-style rules applied before the regex filters
        max_workers: Hashing thread pool size (1 = sequential in this thread)
        cancel: Set from another thread to abort the walk
        timeout: Seconds before the walk is aborted

    Returns:
        DirEntry for ``root`` with path ""

    Raises:
        TreeReadError: If any directory or accepted file cannot be read
        WalkCancelledError: If cancelled or timed out
    """
    root = Path(root)
    workers = max_workers if max_workers is not None else default_max_workers()
    if workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {workers}")

    started = time.monotonic()
    interrupt = _Interrupt(cancel, timeout)
    path_filter = PathFilter.from_patterns(include_patterns, exclude_patterns)

    try:
        order, jobs = _scan(root, path_filter, ignore, interrupt)
        files = _hash_all(jobs, interrupt, workers)
    except WalkCancelledError:
        raise WalkCancelledError(str(root), interrupt.timed_out) from None

    if interrupt.is_set():
        raise WalkCancelledError(str(root), interrupt.timed_out)

    tree = _assemble(order, files)
    logger.debug(
        "Hashed %d files in %d directories under %s in %.2fs",
        len(files), len(order), root, time.monotonic() - started,
    )
    return tree
