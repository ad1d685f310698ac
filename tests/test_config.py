"""Tests for YAML sync configuration."""

import pytest
import yaml

from treesync.config import SyncConfig, config_path_for, load_config, save_config
from treesync.errors import ConfigError
from treesync.models import ConflictPolicy


class TestLoadConfig:
    """Test configuration lookup and validation."""

    def test_defaults_when_no_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TREESYNC_MAX_WORKERS", raising=False)
        config = load_config(root=tmp_path)

        assert config == SyncConfig()
        assert config.include == []
        assert config.exclude == []
        assert config.max_workers is None
        assert config.conflict_policy == ConflictPolicy.ERROR
        assert config.use_ignore_file

    def test_loads_from_root(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TREESYNC_MAX_WORKERS", raising=False)
        path = config_path_for(tmp_path)
        path.parent.mkdir()
        path.write_text(
            'exclude:\n  - "\\\\.log$"\n  - "^screenshots/"\n'
            "max_workers: 4\n"
            "timeout: 30\n"
            "conflict_policy: replace\n"
        )

        config = load_config(root=tmp_path)
        assert config.exclude == [r"\.log$", "^screenshots/"]
        assert config.max_workers == 4
        assert config.timeout == 30
        assert config.conflict_policy == ConflictPolicy.REPLACE

    def test_explicit_path_must_exist(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("exclude: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(path)

    def test_invalid_pattern_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text('exclude:\n  - "("\n')
        with pytest.raises(ConfigError, match="Invalid pattern"):
            load_config(path)

    def test_invalid_worker_count(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TREESYNC_MAX_WORKERS", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("max_workers: 0\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_env_overrides_workers(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("max_workers: 4\n")
        monkeypatch.setenv("TREESYNC_MAX_WORKERS", "12")

        assert load_config(path).max_workers == 12

    def test_env_garbage_is_config_error(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TREESYNC_MAX_WORKERS", "lots")
        with pytest.raises(ConfigError):
            load_config(root=tmp_path)


class TestSaveConfig:
    """Test writing configuration back to disk."""

    def test_save_and_load(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TREESYNC_MAX_WORKERS", raising=False)
        config = SyncConfig(
            include=["^assets/"],
            exclude=[r"\.log$"],
            max_workers=2,
            conflict_policy=ConflictPolicy.REPLACE,
        )
        path = config_path_for(tmp_path)

        save_config(config, path)

        assert yaml.safe_load(path.read_text())["conflict_policy"] == "replace"
        assert load_config(root=tmp_path) == config
