"""Git collaborator: read-only repository queries through the git binary."""
import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from repo_manifest.core.errors import GitOperationError

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_NAME = "origin"
GIT_TIMEOUT = 30


def _run_git(path: Path, *args: str) -> subprocess.CompletedProcess:
    """Run a git command inside path.

    Returns the completed process; a non-zero return code is left for the
    caller to interpret since several queries use it to signal "absent".

    Raises:
        GitOperationError: If git is missing or the command timed out
    """
    cmd = ["git", "-C", str(path), *args]
    # Stop repository discovery at path: a broken .git entry must not
    # resolve to an enclosing repository.
    env = {**os.environ, "GIT_CEILING_DIRECTORIES": str(Path(path).resolve().parent)}
    logger.debug(f"Running {' '.join(cmd)}")
    try:
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
            env=env,
        )
    except subprocess.TimeoutExpired:
        raise GitOperationError(f"git {args[0]} timed out in {path}")
    except OSError as e:
        raise GitOperationError(f"Failed to run git in {path}: {e}")


def is_repository(path: Path) -> bool:
    """Check whether path is the root of a git repository.

    A ``.git`` directory marks a regular repository; a ``.git`` file marks
    a worktree or submodule checkout. Both count.
    """
    return (Path(path) / ".git").exists()


def get_remote_url(path: Path, remote: str = DEFAULT_REMOTE_NAME) -> Optional[str]:
    """Return the URL of ``remote``, or None if it is not configured."""
    result = _run_git(path, "remote", "get-url", remote)
    if result.returncode != 0:
        logger.debug(f"No remote '{remote}' in {path}: {result.stderr.strip()}")
        return None
    return result.stdout.strip() or None


def get_current_branch(path: Path) -> Optional[str]:
    """Return the checked-out branch name, or None on a detached HEAD.

    Works on unborn branches (fresh repositories without commits).
    """
    result = _run_git(path, "symbolic-ref", "--short", "-q", "HEAD")
    if result.returncode == 1:
        return None
    if result.returncode != 0:
        raise GitOperationError(
            f"Failed to read current branch in {path}: {result.stderr.strip()}"
        )
    return result.stdout.strip() or None


def get_head_commit(path: Path) -> str:
    """Return the full SHA of HEAD.

    Raises:
        GitOperationError: If HEAD cannot be resolved (e.g. no commits yet)
    """
    result = _run_git(path, "rev-parse", "--verify", "-q", "HEAD")
    if result.returncode != 0:
        raise GitOperationError(
            f"Failed to resolve HEAD in {path}: {result.stderr.strip() or 'no commits'}"
        )
    return result.stdout.strip()


def get_default_branch(path: Path) -> Optional[str]:
    """Return git's configured ``init.defaultBranch``, or None if unset."""
    try:
        result = _run_git(path, "config", "--get", "init.defaultBranch")
    except GitOperationError as e:
        logger.warning(f"Cannot read git default branch: {e}")
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None
