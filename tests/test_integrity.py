"""Tests for post-download integrity verification."""

import hashlib
import logging

import pytest

from treesync.errors import IntegrityMismatch
from treesync.integrity import ensure_verified, verify_entries, verify_entry, verify_file, verify_tree
from treesync.models import FileEntry
from treesync.walker import hash_directory

from tests.fixtures.trees import build_tree


@pytest.fixture
def downloaded(write_file):
    path = write_file("client/libraries/x.jar", "jar payload")
    return path, hashlib.sha256(b"jar payload").hexdigest()


class TestVerifyFile:
    """Test the fail-closed yes/no gate."""

    def test_matching_digest(self, downloaded):
        path, digest = downloaded
        assert verify_file(path, digest)

    def test_comparison_ignores_case(self, downloaded):
        path, digest = downloaded
        assert verify_file(path, digest.upper())

    def test_accepts_prefixed_digest(self, downloaded):
        path, digest = downloaded
        assert verify_file(path, f"sha256:{digest}")

    def test_corrupted_file(self, downloaded):
        path, digest = downloaded
        path.write_text("truncated")
        assert not verify_file(path, digest)

    def test_missing_file_returns_false(self, tmp_path):
        assert verify_file(tmp_path / "never-downloaded.jar", "0" * 64) is False

    def test_directory_returns_false(self, tmp_path):
        assert verify_file(tmp_path, "0" * 64) is False

    def test_garbage_expected_hash(self, downloaded):
        path, _ = downloaded
        assert not verify_file(path, "not-a-digest")


class TestEnsureVerified:
    """Test the raising variant used by schedulers."""

    def test_passes_silently(self, downloaded):
        path, digest = downloaded
        ensure_verified(path, digest)

    def test_mismatch_raises(self, downloaded):
        path, digest = downloaded
        path.write_text("tampered")

        with pytest.raises(IntegrityMismatch) as exc_info:
            ensure_verified(path, digest)

        err = exc_info.value
        assert err.expected == digest
        assert err.actual == hashlib.sha256(b"tampered").hexdigest()
        assert "Integrity check failed" in str(err)

    def test_missing_file_reports_unreadable(self, tmp_path):
        with pytest.raises(IntegrityMismatch) as exc_info:
            ensure_verified(tmp_path / "gone.jar", "a" * 64)
        assert exc_info.value.actual is None
        assert "(unreadable)" in str(exc_info.value)


class TestVerifyEntry:
    """Test the size-then-digest check against a snapshot entry."""

    def test_matching_entry(self, downloaded):
        path, digest = downloaded
        assert verify_entry(path, FileEntry(path="x.jar", size=len("jar payload"), hash=digest))

    def test_size_mismatch_skips_hashing(self, downloaded, monkeypatch):
        path, digest = downloaded
        monkeypatch.setattr("treesync.integrity.verify_file", lambda *a: pytest.fail("file was hashed"))

        assert not verify_entry(path, FileEntry(path="x.jar", size=1, hash=digest))

    def test_same_size_wrong_digest(self, downloaded):
        path, _ = downloaded
        wrong = hashlib.sha256(b"jar PAYLOAD").hexdigest()
        assert not verify_entry(path, FileEntry(path="x.jar", size=len("jar payload"), hash=wrong))

    def test_missing_file(self, tmp_path):
        assert not verify_entry(tmp_path / "gone.jar", FileEntry(path="gone.jar", size=0, hash="0" * 64))


class TestVerifyTree:
    """Test checking every file of a snapshot."""

    def test_intact_tree(self, client_tree):
        result = verify_tree(client_tree, hash_directory(client_tree))

        assert result.ok
        assert result.total == 6
        assert result.valid == 6
        assert result.invalid == 0

    def test_reports_each_kind_of_failure(self, client_tree):
        snapshot = hash_directory(client_tree)
        (client_tree / "options.txt").write_text("fov:90")  # same size, new digest
        (client_tree / "client.jar").write_text("jar")  # new size
        (client_tree / "libraries" / "gson.jar").unlink()

        result = verify_tree(client_tree, snapshot)

        assert result.failed == ["client.jar", "libraries/gson.jar", "options.txt"]
        assert (result.total, result.valid, result.invalid) == (6, 3, 3)
        assert not result.ok

    def test_extra_local_files_are_ignored(self, client_tree):
        snapshot = hash_directory(client_tree)
        (client_tree / "screenshot.png").write_text("png")
        assert verify_tree(client_tree, snapshot).ok

    def test_empty_snapshot(self, tmp_path):
        result = verify_tree(tmp_path, build_tree({}))
        assert (result.total, result.valid, result.failed) == (0, 0, [])


class TestVerifyEntries:
    """Test checking a loose list of entries."""

    def test_escaping_path_counts_as_failed(self, client_tree, caplog):
        snapshot = hash_directory(client_tree)
        good = snapshot.entries["options.txt"]
        escaping = FileEntry(path="../options.txt", size=good.size, hash=good.hash)

        with caplog.at_level(logging.WARNING, logger="treesync.integrity"):
            result = verify_entries(client_tree / "libraries", [escaping])

        assert result.failed == ["../options.txt"]
        assert (result.total, result.valid) == (1, 0)
        assert "unsafe path" in caplog.text

    def test_accepts_any_iterable(self, client_tree):
        snapshot = hash_directory(client_tree)
        entries = (snapshot.entries[name] for name in ["client.jar", "options.txt"])
        assert verify_entries(client_tree, entries).valid == 2
