"""Snapshot extractor: turn discovered repositories into manifest entries."""
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, List, Optional

from repo_manifest.core import git
from repo_manifest.core.errors import GitOperationError
from repo_manifest.manifest.schemas import (
    ROOT_LOCAL,
    RepositoryEntry,
    SnapshotKind,
    local_sort_key,
)

logger = logging.getLogger(__name__)


def extract_entry(root: Path, local: str, kind: SnapshotKind) -> RepositoryEntry:
    """Build the manifest entry for one repository.

    Each git query is independent: a failing query leaves its field
    absent and is logged, without failing the entry.

    Args:
        root: Scan root
        local: Repository path relative to root (``"."`` for root)
        kind: Whether to record the current branch or the HEAD commit
    """
    repo_path = Path(root) if local == ROOT_LOCAL else Path(root) / local

    remote = _query(local, "remote", git.get_remote_url, repo_path)
    if kind == SnapshotKind.BRANCH:
        branch = _query(local, "branch", git.get_current_branch, repo_path)
        return RepositoryEntry(local=local, remote=remote, branch=branch)

    commit = _query(local, "commit", git.get_head_commit, repo_path)
    return RepositoryEntry(local=local, remote=remote, commit=commit)


def _query(local: str, field: str, func, repo_path: Path) -> Optional[str]:
    try:
        value = func(repo_path)
    except GitOperationError as e:
        logger.warning(f"{local}: cannot read {field}: {e}")
        return None
    if value is None:
        logger.debug(f"{local}: no {field}")
    return value


def extract_entries(
    root: Path,
    locals_: Iterable[str],
    kind: SnapshotKind,
    max_workers: Optional[int] = None,
) -> List[RepositoryEntry]:
    """Extract entries for all repositories, in parallel.

    Args:
        root: Scan root
        locals_: Repository paths relative to root
        kind: Snapshot kind applied to every entry
        max_workers: Worker pool size (default: CPU count); 1 runs sequentially

    Returns:
        Entries sorted by local path, root first
    """
    locals_ = list(locals_)
    workers = max_workers or os.cpu_count() or 1

    entries: List[RepositoryEntry] = []
    if workers == 1 or len(locals_) <= 1:
        for local in locals_:
            entries.append(extract_entry(root, local, kind))
    else:
        with ThreadPoolExecutor(max_workers=min(workers, len(locals_))) as executor:
            futures = [executor.submit(extract_entry, root, local, kind) for local in locals_]
            for future in as_completed(futures):
                entries.append(future.result())

    entries.sort(key=lambda entry: local_sort_key(entry.local))
    logger.info(f"Extracted {len(entries)} {kind.value} entries")
    return entries
