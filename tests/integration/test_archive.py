"""Tests for locating and extracting the resources archive."""

import zipfile
from pathlib import Path

import pytest

from cas_overlay.archive import extract_archive, find_archive, reset_directory
from cas_overlay.errors import ArchiveError, ArchiveNotFoundError
from tests.conftest import RESOURCES, read_tree, write_jar


class TestFindArchive:
    """Tests for resolving the archive by name pattern."""

    def test_matches_resources_jar(self, tmp_path: Path):
        candidates = [
            tmp_path / "cas-server-webapp-init-5.0.0.jar",
            tmp_path / "cas-server-webapp-5.0.0-resources.jar",
            tmp_path / "spring-boot-starter-tomcat-1.4.1.RELEASE.jar",
        ]

        assert find_archive(candidates) == candidates[1]

    def test_pattern_must_match_whole_name(self, tmp_path: Path):
        candidates = [tmp_path / "cas-server-webapp-5.0.0-resources.jar.sha1"]

        with pytest.raises(ArchiveNotFoundError):
            find_archive(candidates)

    def test_no_candidates(self):
        with pytest.raises(ArchiveNotFoundError, match="0 resolved artifacts"):
            find_archive([])

    def test_custom_pattern(self, tmp_path: Path):
        candidates = [tmp_path / "other-1.0.zip"]
        assert find_archive(candidates, pattern=r"other-.*\.zip") == candidates[0]


class TestExtractArchive:
    """Tests for expanding archives into a directory."""

    def test_preserves_structure(self, tmp_path: Path, make_jar):
        jar = make_jar()
        destination = tmp_path / "out"

        written = extract_archive(jar, destination)

        assert written == len(RESOURCES)
        assert read_tree(destination) == RESOURCES

    def test_creates_destination(self, tmp_path: Path, make_jar):
        jar = make_jar({"a.txt": "X"})
        destination = tmp_path / "deep" / "scratch"

        extract_archive(jar, destination)

        assert (destination / "a.txt").read_text() == "X"

    def test_reextract_overwrites(self, tmp_path: Path, make_jar):
        """Extracting twice leaves the archive's content in place."""
        jar = make_jar({"a.txt": "X"})
        destination = tmp_path / "out"
        extract_archive(jar, destination)
        (destination / "a.txt").write_text("tampered")

        extract_archive(jar, destination)

        assert (destination / "a.txt").read_text() == "X"

    def test_corrupt_archive(self, tmp_path: Path):
        bogus = tmp_path / "cas-server-webapp-5.0.0-resources.jar"
        bogus.write_text("not a zip")

        with pytest.raises(ArchiveError):
            extract_archive(bogus, tmp_path / "out")

    def test_rejects_parent_traversal(self, tmp_path: Path):
        jar = tmp_path / "evil.jar"
        with zipfile.ZipFile(jar, "w") as zf:
            zf.writestr("../escape.txt", "nope")

        with pytest.raises(ArchiveError, match="outside destination"):
            extract_archive(jar, tmp_path / "out")

        assert not (tmp_path / "escape.txt").exists()

    def test_binary_content(self, tmp_path: Path):
        payload = bytes(range(256))
        jar = write_jar(tmp_path / "bin.jar", {"static/favicon.ico": payload})

        extract_archive(jar, tmp_path / "out")

        assert (tmp_path / "out" / "static" / "favicon.ico").read_bytes() == payload


class TestResetDirectory:
    """Tests for scratch directory reset."""

    def test_clears_existing_content(self, tmp_path: Path):
        scratch = tmp_path / "scratch"
        (scratch / "stale").mkdir(parents=True)
        (scratch / "stale" / "old.txt").write_text("old")

        reset_directory(scratch)

        assert scratch.is_dir()
        assert list(scratch.iterdir()) == []

    def test_creates_missing(self, tmp_path: Path):
        scratch = tmp_path / "a" / "b"
        reset_directory(scratch)
        assert scratch.is_dir()
