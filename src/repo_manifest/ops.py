"""Manifest operations: init and snapshot a repository tree, load a manifest."""
import logging
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from repo_manifest.core import git
from repo_manifest.core.errors import (
    InvalidManifestError,
    ManifestExistsError,
    RootNotFoundError,
)
from repo_manifest.discovery import extract_entries, scan_repositories
from repo_manifest.manifest import Manifest, ManifestDefaults, SnapshotKind

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = ".gitrepos"


def resolve_config_path(root: Path, config_path: Optional[Path] = None) -> Path:
    """Return the manifest file path: config_path if given, else root/.gitrepos."""
    if config_path is not None:
        return Path(config_path)
    return Path(root) / DEFAULT_CONFIG_FILENAME


def load_manifest(root: Path, config_path: Optional[Path] = None) -> Optional[Manifest]:
    """Load the manifest for root.

    Returns:
        The parsed manifest, or None if there is no manifest file

    Raises:
        ManifestParseError: If the manifest file is malformed
    """
    return Manifest.load(resolve_config_path(root, config_path))


def _check_root(root: Path) -> Path:
    root = Path(root)
    if not root.is_dir():
        raise RootNotFoundError(f"Root directory not found: {root}")
    return root


def _build_defaults(root: Path, existing: Optional[Manifest]) -> ManifestDefaults:
    """Carry defaults over from the existing manifest, filling the branch from git."""
    if existing is not None:
        defaults = existing.defaults.model_copy()
    else:
        defaults = ManifestDefaults()
    if defaults.default_branch is None:
        defaults.default_branch = git.get_default_branch(root)
    return defaults


def _write_manifest(
    root: Path,
    path: Path,
    force: bool,
    kind: SnapshotKind,
    ignore: Optional[Iterable[str]],
    max_workers: Optional[int],
    existing: Optional[Manifest],
) -> Manifest:
    # Everything is computed before the file is touched; save() is atomic.
    locals_ = scan_repositories(root, force=force, ignore=ignore)
    entries = extract_entries(root, locals_, kind, max_workers=max_workers)

    try:
        manifest = Manifest(defaults=_build_defaults(root, existing), repos=entries)
    except ValidationError as e:
        raise InvalidManifestError(f"Cannot build manifest for {root}: {e}")
    manifest.sort_repos()
    manifest.save(path)
    logger.info(f"Wrote {len(manifest.repos)} repositories to {path}")
    return manifest


def init_manifest(
    root: Path,
    config_path: Optional[Path] = None,
    force: bool = False,
    ignore: Optional[Iterable[str]] = None,
    max_workers: Optional[int] = None,
) -> Manifest:
    """Create a manifest tracking the current branch of every repository under root.

    Args:
        root: Directory to scan
        config_path: Manifest file (default: root/.gitrepos)
        force: Overwrite an existing manifest and include root if it is a repository
        ignore: Paths relative to root to leave out
        max_workers: Extraction worker pool size

    Raises:
        RootNotFoundError: If root does not exist
        ManifestExistsError: If the manifest file exists and force is not set
        RootIsRepositoryError: If root is a repository and force is not set
    """
    root = _check_root(root)
    path = resolve_config_path(root, config_path)
    if path.exists() and not force:
        raise ManifestExistsError(f"Manifest already exists: {path}; use force to overwrite")

    logger.info(f"Initializing manifest for {root}")
    return _write_manifest(root, path, force, SnapshotKind.BRANCH, ignore, max_workers, None)


def snapshot_manifest(
    root: Path,
    config_path: Optional[Path] = None,
    force: bool = False,
    kind: SnapshotKind = SnapshotKind.COMMIT,
    ignore: Optional[Iterable[str]] = None,
    max_workers: Optional[int] = None,
) -> Manifest:
    """Snapshot every repository under root into the manifest file.

    An existing manifest is overwritten; its defaults are carried over
    unless force is set, in which case it is discarded without being read.

    Args:
        root: Directory to scan
        config_path: Manifest file (default: root/.gitrepos)
        force: Discard the existing manifest and include root if it is a repository
        kind: Record HEAD commits (default) or current branches
        ignore: Paths relative to root to leave out
        max_workers: Extraction worker pool size

    Raises:
        RootNotFoundError: If root does not exist
        ManifestParseError: If the existing manifest is malformed and force is not set
        RootIsRepositoryError: If root is a repository and force is not set
    """
    root = _check_root(root)
    path = resolve_config_path(root, config_path)

    existing = None
    if not force:
        existing = Manifest.load(path)

    logger.info(f"Snapshotting {root} ({kind.value})")
    return _write_manifest(root, path, force, kind, ignore, max_workers, existing)
