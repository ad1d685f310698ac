"""Tests for regex filter matching."""

import logging

import pytest

from treesync.errors import PatternError
from treesync.patterns import PathFilter, compile_patterns, matches


class TestMatches:
    """Test the any-of regex matcher."""

    def test_any_pattern_matches(self):
        assert matches("logs/game.log", [r"\.txt$", r"\.log$"])
        assert not matches("config.json", [r"\.txt$", r"\.log$"])

    def test_empty_patterns_never_match(self):
        assert not matches("anything", [])
        assert not matches("anything", None)

    def test_search_is_unanchored(self):
        """Patterns match anywhere unless anchored explicitly."""
        assert matches("mods/optifine.jar", ["optifine"])
        assert not matches("mods/optifine.jar", ["^optifine"])

    def test_backslashes_are_normalized(self):
        """Windows-style paths are tested in forward-slash form."""
        assert matches("assets\\sound.ogg", ["^assets/"])

    def test_invalid_pattern_fails_open(self, caplog):
        """An invalid pattern is a warning and a non-match, not an error."""
        with caplog.at_level(logging.WARNING, logger="treesync.patterns"):
            assert not matches("a.txt", ["(unclosed"])
        assert "Invalid pattern" in caplog.text

    def test_invalid_pattern_does_not_hide_valid_ones(self):
        assert matches("a.txt", ["[", r"\.txt$"])


class TestCompilePatterns:
    """Test pattern compilation."""

    def test_strict_raises(self):
        with pytest.raises(PatternError, match="Invalid pattern"):
            compile_patterns(["ok", "*bad"], strict=True)

    def test_lenient_drops_invalid(self):
        compiled = compile_patterns(["ok", "*bad", "fine$"])
        assert [p.pattern for p in compiled] == ["ok", "fine$"]

    def test_pattern_error_is_value_error(self):
        with pytest.raises(ValueError):
            compile_patterns(["("], strict=True)


class TestPathFilter:
    """Test include/exclude evaluation used by the walker."""

    def test_empty_filter_accepts_everything(self):
        f = PathFilter.from_patterns()
        assert f.is_empty
        assert f.accepts("anything/at/all.bin")
        assert f.accepts("dir", is_dir=True)

    def test_exclude_wins_over_include(self):
        f = PathFilter.from_patterns(include=[r"\.jar$"], exclude=["^mods/"])
        assert f.accepts("client.jar")
        assert not f.accepts("mods/extra.jar")

    def test_include_admits_directory_with_trailing_slash_pattern(self):
        f = PathFilter.from_patterns(include=["^assets/"])
        assert f.accepts("assets", is_dir=True)
        assert f.accepts("assets/sound.ogg")
        assert not f.accepts("readme.txt")
        assert not f.accepts("config", is_dir=True)

    def test_exclude_matches_bare_directory_path(self):
        f = PathFilter.from_patterns(exclude=["^logs$"])
        assert f.excludes("logs", is_dir=True)
        assert not f.excludes("logs.txt")

    def test_files_are_not_tested_with_trailing_slash(self):
        f = PathFilter.from_patterns(exclude=["^logs/$"])
        assert not f.excludes("logs")
        assert f.excludes("logs", is_dir=True)
