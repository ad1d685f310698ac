"""Operations backing the update routes and the download scheduler.

The update server publishes one snapshot per profile and directory category;
launchers hash their local copy, diff it against that snapshot and hand the
resulting plan to the download scheduler.
"""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .config import SyncConfig
from .diffing import compare_trees
from .ignore import IgnoreSpec
from .integrity import verify_entries
from .models import DirEntry, SyncPlan
from .paths import safe_target
from .walker import hash_directory

logger = logging.getLogger(__name__)


class DirCategory(str, Enum):
    """Directory categories served by the update routes."""

    CLIENT = "client"
    ASSET = "asset"
    JVM = "jvm"


def category_root(
    updates_dir: Path,
    category: DirCategory,
    version: Optional[str] = None,
    asset_index: Optional[str] = None,
) -> Path:
    """Locate a category directory in the updates tree.

    Layout::

        <updates>/<version>                 client
        <updates>/assets/<asset_index>      asset
        <updates>/jvm                       jvm
    """
    category = DirCategory(category)
    if category == DirCategory.CLIENT:
        if not version:
            raise ValueError("client category requires a version")
        return safe_target(updates_dir, version)
    if category == DirCategory.ASSET:
        if not asset_index:
            raise ValueError("asset category requires an asset index")
        return safe_target(updates_dir, f"assets/{asset_index}")
    return updates_dir / "jvm"


def _hash_with_config(
    root: Path,
    config: SyncConfig,
    apply_filters: bool = True,
    cancel: Optional[threading.Event] = None,
) -> DirEntry:
    ignore = IgnoreSpec.for_root(root) if config.use_ignore_file else None
    return hash_directory(
        root,
        config.include if apply_filters else None,
        config.exclude if apply_filters else None,
        ignore=ignore,
        max_workers=config.max_workers,
        cancel=cancel,
        timeout=config.timeout,
    )


def publish_snapshot(
    updates_dir: Path,
    category: DirCategory,
    config: Optional[SyncConfig] = None,
    version: Optional[str] = None,
    asset_index: Optional[str] = None,
    cancel: Optional[threading.Event] = None,
) -> DirEntry:
    """Hash a category directory for the tree-publishing route.

    Include/exclude filters apply to the client category only; asset and
    JVM trees are always published whole.

    Raises:
        TreeReadError: If the directory is missing or unreadable
    """
    config = config or SyncConfig()
    category = DirCategory(category)
    root = category_root(updates_dir, category, version, asset_index)
    tree = _hash_with_config(root, config, apply_filters=category == DirCategory.CLIENT, cancel=cancel)
    logger.info("Published %s snapshot for %s", category.value, root)
    return tree


def plan_sync(
    local_root: Path,
    remote: DirEntry,
    config: Optional[SyncConfig] = None,
    cancel: Optional[threading.Event] = None,
) -> SyncPlan:
    """Hash the local installation and plan what to fetch and delete.

    Raises:
        TreeReadError: If the local tree cannot be read
        WalkCancelledError: If cancelled or timed out
        TreeConflictError: On a kind mismatch under ConflictPolicy.ERROR
    """
    config = config or SyncConfig()
    local = _hash_with_config(local_root, config, cancel=cancel)
    diff = compare_trees(local, remote, config.conflict_policy)
    plan = SyncPlan.from_diff(diff, remote)
    logger.info("Sync plan for %s: %s", local_root, plan.summary())
    return plan


def verify_downloads(local_root: Path, plan: SyncPlan) -> List[str]:
    """Verify every file the plan fetched.

    Returns:
        Paths that are missing, unreadable, unsafe or have the wrong size
        or digest; the scheduler should fetch these again
    """
    result = verify_entries(local_root, plan.files_to_fetch)
    if not result.ok:
        logger.info("%d of %d downloaded files failed verification", result.invalid, result.total)
    return result.failed
