"""Content fingerprints for resource files."""

from __future__ import annotations

import hashlib
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

CHUNK_SIZE = 8192


def compute_file_hash(filepath: Path) -> str:
    """Compute the MD5 hex digest of file contents.

    Only used to tell identical files apart from different ones.
    """
    h = hashlib.md5(usedforsecurity=False)
    with open(filepath, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def files_match(first: Path, second: Path) -> bool:
    """Check that both paths are files with identical content."""
    if not first.is_file() or not second.is_file():
        return False
    return compute_file_hash(first) == compute_file_hash(second)


@dataclass
class FileEntry:
    """A regular file addressed relative to one of the reconciled trees."""

    root: Path
    relative_path: str  # POSIX-style, relative to root
    _fingerprint: str | None = field(default=None, repr=False, compare=False)

    @property
    def path(self) -> Path:
        return self.root / self.relative_path

    @property
    def fingerprint(self) -> str:
        """Content hash, computed on first access."""
        if self._fingerprint is None:
            self._fingerprint = compute_file_hash(self.path)
        return self._fingerprint

    def counterpart(self, other_root: Path) -> Path:
        """Same relative path under another tree root."""
        return other_root / self.relative_path


def iter_files(root: Path) -> Iterator[FileEntry]:
    """Yield every regular file below root.

    Symlinks are skipped. A missing root yields nothing.
    """
    if not root.is_dir():
        return
    yield from _walk(root, root)


def _walk(path: Path, root: Path) -> Iterator[FileEntry]:
    for child in sorted(path.iterdir()):
        if child.is_symlink():
            continue
        if child.is_dir():
            yield from _walk(child, root)
        elif child.is_file():
            yield FileEntry(root=root, relative_path=child.relative_to(root).as_posix())
