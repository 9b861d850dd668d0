"""Pytest fixtures for repo-manifest tests."""
import subprocess
from pathlib import Path
from typing import Dict

import pytest

REMOTE_URL = "https://example.com/fleet/foobar.git"


@pytest.fixture(autouse=True)
def isolated_git_config(tmp_path: Path, monkeypatch) -> Path:
    """Point git at a throwaway global config.

    The config sets a commit identity and ``init.defaultBranch = develop``,
    which ends up as the manifest's default branch.
    """
    home = tmp_path / "home"
    home.mkdir()
    gitconfig = home / ".gitconfig"
    gitconfig.write_text(
        "[user]\n"
        "\tname = Test User\n"
        "\temail = test@example.com\n"
        "[init]\n"
        "\tdefaultBranch = develop\n"
    )

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(gitconfig))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    return gitconfig


def make_repo(path: Path, remote: str = REMOTE_URL) -> str:
    """Create a git repository on branch master with one commit.

    Returns:
        SHA of the commit
    """
    path.mkdir(parents=True, exist_ok=True)

    subprocess.run(
        ["git", "init", "--initial-branch=master"],
        cwd=path,
        capture_output=True,
        check=True,
    )
    if remote:
        subprocess.run(
            ["git", "remote", "add", "origin", remote],
            cwd=path,
            capture_output=True,
            check=True,
        )

    (path / "README.md").write_text(f"# {path.name}\n")
    subprocess.run(
        ["git", "add", "README.md"],
        cwd=path,
        capture_output=True,
        check=True,
    )
    subprocess.run(
        ["git", "commit", "-m", f"Initial commit of {path.name}"],
        cwd=path,
        capture_output=True,
        check=True,
    )

    result = subprocess.run(
        ["git", "rev-parse", "HEAD"],
        cwd=path,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def flat_tree(tmp_path: Path) -> Dict[str, any]:
    """Two sibling repositories under a root that is not a repository.

    Layout:
        flat/
          foobar-1 (.git)
          foobar-2 (.git)

    Returns dict with:
        - path: Path to root
        - commits: {local: sha}
    """
    root = tmp_path / "flat"
    root.mkdir()

    commits = {}
    for name in ["foobar-1", "foobar-2"]:
        commits[name] = make_repo(root / name)

    return {"path": root, "commits": commits}


@pytest.fixture
def nested_tree(tmp_path: Path) -> Dict[str, any]:
    """A root repository holding repositories that hold further repositories.

    Layout:
        nested/ (.git)
          foobar-1 (.git)
            foobar-1-1 (.git)
            foobar-1-2 (.git)
          foobar-2 (.git)
            foobar-2-1 (.git)
            foobar-2-2 (.git)

    Returns dict with:
        - path: Path to root
        - commits: {local: sha}, "." for the root
    """
    root = tmp_path / "nested"
    root.mkdir()

    commits = {}
    for parent in ["foobar-1", "foobar-2"]:
        for idx in (1, 2):
            local = f"{parent}/{parent}-{idx}"
            commits[local] = make_repo(root / local)
        commits[parent] = make_repo(root / parent)

    commits["."] = make_repo(root)

    return {"path": root, "commits": commits}
