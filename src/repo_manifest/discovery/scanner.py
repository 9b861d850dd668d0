"""Repository-tree scanner: find git repositories below a root directory."""
import logging
import posixpath
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set

from repo_manifest.core import git
from repo_manifest.core.errors import RootIsRepositoryError, RootNotFoundError, ScanError
from repo_manifest.manifest.schemas import ROOT_LOCAL, local_sort_key, normalize_local

logger = logging.getLogger(__name__)

# Directories never descended into
SKIPPED_DIRS = {".git"}


def normalize_ignore(ignore: Optional[Iterable[str]]) -> Set[str]:
    """Normalize user-typed ignore entries to manifest-relative POSIX paths.

    Backslashes are read as separators here; paths produced by the scan
    itself are never rewritten.
    """
    return {normalize_local(item.replace("\\", "/")) for item in ignore or ()}


def scan_repositories(
    root: Path,
    force: bool = False,
    ignore: Optional[Iterable[str]] = None,
    is_repository: Callable[[Path], bool] = git.is_repository,
) -> List[str]:
    """Discover git repositories under root.

    Args:
        root: Directory to scan
        force: Allow root itself to be recorded as a repository
        ignore: Paths relative to root to leave out, together with their
            subtrees. ``"."`` only drops the root entry; its children are
            still scanned.
        is_repository: Predicate telling whether a directory is a repository root

    Returns:
        Sorted list of repository paths relative to root, ``"."`` for root

    Raises:
        RootNotFoundError: If root is not an existing directory
        RootIsRepositoryError: If root is a repository and force is not set
        ScanError: If a directory cannot be listed
    """
    root = Path(root)
    if not root.is_dir():
        raise RootNotFoundError(f"Root directory not found: {root}")

    ignored = normalize_ignore(ignore)
    found: List[str] = []

    if ROOT_LOCAL not in ignored and is_repository(root):
        if not force:
            raise RootIsRepositoryError(
                f"{root} is itself a git repository; use force to include it"
            )
        found.append(ROOT_LOCAL)

    # Depth-first walk; ignored directories are pruned before being visited.
    pending = [(root, "")]
    while pending:
        directory, rel = pending.pop()
        for child in _list_subdirectories(directory):
            child_rel = posixpath.join(rel, child.name) if rel else child.name
            if child_rel in ignored:
                logger.debug(f"Ignoring {child_rel}")
                continue
            if is_repository(child):
                logger.debug(f"Found repository {child_rel}")
                found.append(child_rel)
            pending.append((child, child_rel))

    found.sort(key=local_sort_key)
    logger.info(f"Discovered {len(found)} repositories in {root}")
    return found


def _list_subdirectories(directory: Path) -> List[Path]:
    try:
        children = sorted(directory.iterdir())
    except OSError as e:
        raise ScanError(f"Cannot list directory {directory}: {e}")

    return [
        child
        for child in children
        if child.name not in SKIPPED_DIRS and child.is_dir() and not child.is_symlink()
    ]
