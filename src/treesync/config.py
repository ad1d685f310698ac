"""Sync configuration loaded from YAML.

Lookup order: an explicit path, then ``<root>/.treesync/config.yaml``, then
built-in defaults. ``TREESYNC_MAX_WORKERS`` overrides ``max_workers``.

Example::

    exclude:
      - "\\\\.log$"
      - "^screenshots/"
    include: []
    max_workers: 8
    timeout: 600
    conflict_policy: replace
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import CONFIG_FILE, MAX_WORKERS_ENV, TREESYNC_DIR
from .errors import ConfigError
from .models import ConflictPolicy
from .patterns import compile_patterns
from .utils import atomic_write_text


class SyncConfig(BaseModel):
    """Filters and walk settings for one tree."""

    include: List[str] = Field(default_factory=list)
    exclude: List[str] = Field(default_factory=list)
    max_workers: Optional[int] = Field(default=None, ge=1)
    timeout: Optional[float] = Field(default=None, gt=0)
    conflict_policy: ConflictPolicy = ConflictPolicy.ERROR
    use_ignore_file: bool = True

    @field_validator("include", "exclude")
    @classmethod
    def validate_patterns(cls, v: List[str]) -> List[str]:
        """Reject invalid regular expressions up front."""
        # PatternError is a ValueError, so pydantic reports it as a field error
        compile_patterns(v, strict=True)
        return v


def config_path_for(root: Path) -> Path:
    """Get the default config location for a tree root."""
    return root / TREESYNC_DIR / CONFIG_FILE


def load_config(path: Optional[Path] = None, root: Optional[Path] = None) -> SyncConfig:
    """Load configuration.

    Args:
        path: Explicit config file; must exist
        root: Tree root to look for .treesync/config.yaml in

    Returns:
        SyncConfig (defaults if no file applies)

    Raises:
        ConfigError: If the file is missing, not YAML, or has invalid values
    """
    if path is None and root is not None and config_path_for(root).exists():
        path = config_path_for(root)

    data = {}
    if path is not None:
        if not path.exists():
            raise ConfigError(f"Configuration not found at {path}")
        try:
            with path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {path} must be a mapping")

    env_workers = os.environ.get(MAX_WORKERS_ENV)
    if env_workers:
        data["max_workers"] = env_workers

    try:
        return SyncConfig.model_validate(data)
    except ValidationError as e:
        source = path or "defaults"
        raise ConfigError(f"Invalid configuration ({source}): {e}") from e


def save_config(config: SyncConfig, path: Path) -> None:
    """Save configuration as YAML atomically."""
    atomic_write_text(path, yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False))

