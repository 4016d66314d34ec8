"""Reconciliation of the local resource tree with the CAS resources archive."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from . import BUILD_TMP_DIR, CAS_ORIG_SUFFIX, CLEAN_TASK_DIR, COPY_TASK_DIR
from .archive import extract_archive, find_archive, reset_directory
from .config import CasConfig, load_config, resources_path
from .dependencies import resolve_artifacts
from .errors import ResourceConflictError
from .fingerprint import compute_file_hash, iter_files

logger = logging.getLogger(__name__)


class ReconcileAction(str, Enum):
    """What happened to a single path during reconciliation."""

    COPIED = "copied"
    COPIED_AS_ORIGINAL = "copied-as-original"
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    DELETED_ORIGINAL = "deleted-original"
    KEPT = "kept"
    REMOVED_DIRECTORY = "removed-directory"


# Progress callback signature: (relative_path, fingerprint, action)
ProgressCallback = Callable[[str, str, ReconcileAction], None]


@dataclass
class ReconcileStats:
    """Statistics from a populate or clean run."""

    copied: int = 0
    copied_as_original: int = 0
    unchanged: int = 0
    deleted: int = 0
    deleted_originals: int = 0
    kept: int = 0
    directories_removed: int = 0
    root_removed: bool = False

    @property
    def total_files(self) -> int:
        return (
            self.copied
            + self.copied_as_original
            + self.unchanged
            + self.deleted
            + self.deleted_originals
            + self.kept
        )

    @property
    def has_changes(self) -> bool:
        return bool(
            self.copied
            or self.copied_as_original
            or self.deleted
            or self.deleted_originals
            or self.directories_removed
            or self.root_removed
        )

    def record(self, action: ReconcileAction) -> None:
        field_name = _STAT_FIELDS[action]
        setattr(self, field_name, getattr(self, field_name) + 1)


_STAT_FIELDS = {
    ReconcileAction.COPIED: "copied",
    ReconcileAction.COPIED_AS_ORIGINAL: "copied_as_original",
    ReconcileAction.UNCHANGED: "unchanged",
    ReconcileAction.DELETED: "deleted",
    ReconcileAction.DELETED_ORIGINAL: "deleted_originals",
    ReconcileAction.KEPT: "kept",
    ReconcileAction.REMOVED_DIRECTORY: "directories_removed",
}


def original_marker(path: Path) -> Path:
    """Sibling path holding the upstream copy of a customised file."""
    return path.with_name(path.name + CAS_ORIG_SUFFIX)


def is_original_marker(path: Path) -> bool:
    return path.name.endswith(CAS_ORIG_SUFFIX)


def populate(
    reference_root: Path,
    local_root: Path,
    progress_callback: ProgressCallback | None = None,
) -> ReconcileStats:
    """
    Copy reference files into the local tree without clobbering edits.

    Missing files are copied as-is. Files whose content differs locally are
    left alone and the reference copy is written next to them with the
    marker suffix, replacing any marker from an earlier run.

    Args:
        reference_root: Extracted archive contents
        local_root: Project resource directory
        progress_callback: Optional callback for each processed file

    Returns:
        ReconcileStats with per-action counts
    """
    stats = ReconcileStats()

    for entry in iter_files(reference_root):
        local_path = entry.counterpart(local_root)
        fingerprint = entry.fingerprint

        if not local_path.exists():
            local_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(entry.path, local_path)
            action = ReconcileAction.COPIED
        elif not local_path.is_file():
            raise ResourceConflictError(
                f"Cannot reconcile {entry.relative_path}: {local_path} is not a regular file"
            )
        elif compute_file_hash(local_path) == fingerprint:
            action = ReconcileAction.UNCHANGED
        else:
            shutil.copyfile(entry.path, original_marker(local_path))
            action = ReconcileAction.COPIED_AS_ORIGINAL

        logger.debug("checking %s (%s): %s", entry.relative_path, fingerprint, action.value)
        stats.record(action)
        if progress_callback:
            progress_callback(entry.relative_path, fingerprint, action)

    return stats


def clean(
    reference_root: Path,
    local_root: Path,
    refresh: Callable[[], object] | None = None,
    progress_callback: ProgressCallback | None = None,
) -> ReconcileStats:
    """
    Strip the local tree down to files that differ from the reference.

    Steps, in order:
        1. refresh() re-extracts the reference tree, when given
        2. every marker-suffixed file is deleted
        3. files identical to their reference counterpart are deleted
        4. directories left without files are removed, deepest first
        5. the local root is removed if nothing is left in it

    Args:
        reference_root: Extracted archive contents
        local_root: Project resource directory
        refresh: Optional callable that re-populates reference_root
        progress_callback: Optional callback for each processed file

    Returns:
        ReconcileStats with per-action counts
    """
    stats = ReconcileStats()

    if refresh is not None:
        refresh()

    if not local_root.is_dir():
        logger.debug("Nothing to clean, %s does not exist", local_root)
        return stats

    def report(relative_path: str, fingerprint: str, action: ReconcileAction) -> None:
        stats.record(action)
        if progress_callback:
            progress_callback(relative_path, fingerprint, action)

    # Marker files are always disposable
    for entry in list(iter_files(local_root)):
        if is_original_marker(entry.path):
            entry.path.unlink()
            report(entry.relative_path, "", ReconcileAction.DELETED_ORIGINAL)

    # Files nobody customised can be regenerated from the archive
    for entry in list(iter_files(local_root)):
        logger.debug("checking %s", entry.relative_path)
        reference_path = entry.counterpart(reference_root)
        if reference_path.is_file() and compute_file_hash(reference_path) == entry.fingerprint:
            entry.path.unlink()
            report(entry.relative_path, entry.fingerprint, ReconcileAction.DELETED)
        else:
            report(entry.relative_path, entry.fingerprint, ReconcileAction.KEPT)

    for directory in remove_empty_directories(local_root):
        relative = directory.relative_to(local_root).as_posix()
        report(relative, "", ReconcileAction.REMOVED_DIRECTORY)

    if not any(local_root.iterdir()):
        local_root.rmdir()
        stats.root_removed = True
        logger.debug("Removed empty resource root %s", local_root)

    return stats


def remove_empty_directories(root: Path) -> list[Path]:
    """
    Remove every directory below root that holds no files at any depth.

    Children are handled before their parents, so a directory containing
    only empty directories is removed in the same pass. Root itself is
    kept.

    Returns:
        Removed directories, deepest first
    """
    removed: list[Path] = []
    if root.is_dir():
        for child in sorted(root.iterdir()):
            if child.is_dir() and not child.is_symlink():
                _prune(child, removed)
    return removed


def _prune(directory: Path, removed: list[Path]) -> bool:
    """Remove directory if it ends up empty. Returns True when removed."""
    for child in sorted(directory.iterdir()):
        if child.is_dir() and not child.is_symlink():
            _prune(child, removed)

    if any(directory.iterdir()):
        return False

    directory.rmdir()
    removed.append(directory)
    return True


class ResourceReconciler:
    """Runs the copy and clean resource tasks for an overlay project."""

    def __init__(
        self,
        project_root: Path,
        config: CasConfig | None = None,
        archive: Path | None = None,
        verbose: bool = False,
        console: Console | None = None,
    ):
        self.project_root = project_root
        self.config = config or load_config(project_root)
        self.verbose = verbose
        self.console = console or Console()
        self._archive = archive

    @property
    def resources_root(self) -> Path:
        return resources_path(self.config, self.project_root)

    def scratch_dir(self, task: str) -> Path:
        """Temporary extraction directory owned by a task."""
        return self.project_root / BUILD_TMP_DIR / task

    @property
    def archive(self) -> Path:
        """Resources archive, resolved from the dependency set on first use."""
        if self._archive is None:
            self._archive = find_archive(resolve_artifacts(self.config))
        return self._archive

    def fetch_resources(self, destination: Path) -> int:
        """Extract a fresh copy of the archive into destination."""
        reset_directory(destination)
        return extract_archive(self.archive, destination)

    def copy_resources(self, progress_callback: ProgressCallback | None = None) -> ReconcileStats:
        """Populate the resource tree from the archive."""
        self.console.print("[bold]Copying resources from CAS...[/bold]")
        reference_root = self.scratch_dir(COPY_TASK_DIR)
        self.fetch_resources(reference_root)
        return populate(
            reference_root,
            self.resources_root,
            progress_callback=self._progress(progress_callback),
        )

    def clean_resources(self, progress_callback: ProgressCallback | None = None) -> ReconcileStats:
        """Remove default and marker resources from the resource tree."""
        self.console.print("[bold]Cleaning up resources from CAS...[/bold]")
        reference_root = self.scratch_dir(CLEAN_TASK_DIR)
        # Resolve before anything is deleted
        archive = self.archive
        logger.debug("Using resources archive %s", archive)
        return clean(
            reference_root,
            self.resources_root,
            refresh=lambda: self.fetch_resources(reference_root),
            progress_callback=self._progress(progress_callback),
        )

    def _progress(self, callback: ProgressCallback | None) -> ProgressCallback:
        def report(relative_path: str, fingerprint: str, action: ReconcileAction) -> None:
            if self.verbose:
                detail = f" ({fingerprint})" if fingerprint else ""
                self.console.print(
                    f"[dim]checking {escape(relative_path)}{detail}: {action.value}[/dim]"
                )
            if callback:
                callback(relative_path, fingerprint, action)

        return report


def run_copy_resources(
    project_root: Path,
    archive: Path | None = None,
    verbose: bool = False,
    console: Console | None = None,
    progress_callback: ProgressCallback | None = None,
) -> ReconcileStats:
    """
    Run the copy-resources task.

    This is the entry point called by the CLI.
    """
    reconciler = ResourceReconciler(project_root, archive=archive, verbose=verbose, console=console)
    return reconciler.copy_resources(progress_callback)


def run_clean_resources(
    project_root: Path,
    archive: Path | None = None,
    verbose: bool = False,
    console: Console | None = None,
    progress_callback: ProgressCallback | None = None,
) -> ReconcileStats:
    """
    Run the clean-resources task.

    This is the entry point called by the CLI.
    """
    reconciler = ResourceReconciler(project_root, archive=archive, verbose=verbose, console=console)
    return reconciler.clean_resources(progress_callback)
