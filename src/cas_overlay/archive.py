"""Locating and expanding the CAS resources archive."""

from __future__ import annotations

import logging
import re
import shutil
import zipfile
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from .errors import ArchiveError, ArchiveNotFoundError

logger = logging.getLogger(__name__)

RESOURCES_ARCHIVE_PATTERN = r"cas-server-webapp-.*-resources\.jar"


def find_archive(
    candidates: Iterable[Path],
    pattern: str = RESOURCES_ARCHIVE_PATTERN,
) -> Path:
    """Return the first candidate whose file name fully matches pattern.

    Raises:
        ArchiveNotFoundError: if no candidate matches
    """
    regex = re.compile(pattern)
    searched = 0
    for candidate in candidates:
        searched += 1
        if regex.fullmatch(candidate.name):
            logger.debug("Resolved %s to %s", pattern, candidate)
            return candidate
    raise ArchiveNotFoundError(
        f"No artifact matching '{pattern}' among {searched} resolved artifacts"
    )


def extract_archive(archive: Path, destination: Path) -> int:
    """
    Expand every entry of a zip/jar archive into destination.

    Existing files are overwritten, so extracting twice is the same as
    extracting once.

    Args:
        archive: Path to the archive
        destination: Directory to extract into (created if missing)

    Returns:
        Number of files written
    """
    destination.mkdir(parents=True, exist_ok=True)
    target_root = destination.resolve()
    written = 0

    try:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                target = _entry_target(target_root, info.filename)
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                written += 1
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"Cannot read archive {archive}: {e}") from e

    logger.debug("Extracted %d files from %s into %s", written, archive, destination)
    return written


def reset_directory(path: Path) -> None:
    """Remove a scratch directory and recreate it empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)


def _entry_target(root: Path, name: str) -> Path:
    """Map an archive entry name to a path inside root."""
    entry = PurePosixPath(name)
    if entry.is_absolute() or ".." in entry.parts:
        raise ArchiveError(f"Refusing to extract entry outside destination: {name}")
    return root.joinpath(*entry.parts)
