"""repo-manifest CLI - capture a tree of git repositories in a manifest file."""
import logging
import sys
from pathlib import Path

import click

from repo_manifest.core.errors import (
    ManifestExistsError,
    ManifestParseError,
    RootIsRepositoryError,
    RootNotFoundError,
)
from repo_manifest.manifest import SnapshotKind
from repo_manifest.ops import init_manifest, resolve_config_path, snapshot_manifest

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(name)s: %(message)s",
)
logger = logging.getLogger("repo_manifest")

EXIT_ROOT_NOT_FOUND = 3
EXIT_ROOT_IS_REPOSITORY = 4
EXIT_MANIFEST_BLOCKED = 5


def _run(operation, **kwargs):
    """Run an operation, mapping known failures to exit codes."""
    try:
        return operation(**kwargs)

    except RootNotFoundError as e:
        logger.error(str(e))
        sys.exit(EXIT_ROOT_NOT_FOUND)

    except RootIsRepositoryError as e:
        logger.error(str(e))
        sys.exit(EXIT_ROOT_IS_REPOSITORY)

    except (ManifestExistsError, ManifestParseError) as e:
        logger.error(f"{e} (use --force to overwrite)")
        sys.exit(EXIT_MANIFEST_BLOCKED)

    except Exception as e:
        logger.error(f"Failed: {str(e)}")
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """repo-manifest - track a tree of git repositories in a .gitrepos file."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


root_argument = click.argument(
    "path",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
)
config_option = click.option(
    "--config",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Manifest file (default: PATH/.gitrepos)",
)
force_option = click.option(
    "--force",
    is_flag=True,
    help="Overwrite the existing manifest and include PATH if it is a repository",
)
ignore_option = click.option(
    "--ignore",
    multiple=True,
    help="Path relative to PATH to leave out, with its subtree (repeatable)",
)
jobs_option = click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Number of parallel git queries (default: CPU count)",
)


@main.command()
@root_argument
@config_option
@force_option
@ignore_option
@jobs_option
def init(path: Path, config: Path, force: bool, ignore: tuple, jobs: int):
    """Create a manifest recording the current branch of each repository.

    Examples:
        repo-manifest init
        repo-manifest init ~/work --force

    Exit codes:
        0: Success
        1: Generic runtime failure
        3: PATH not found
        4: PATH is a repository and --force was not given
        5: Manifest already exists and --force was not given
    """
    manifest = _run(
        init_manifest,
        root=path,
        config_path=config,
        force=force,
        ignore=ignore,
        max_workers=jobs,
    )
    click.echo(f"[OK] Manifest written: {resolve_config_path(path, config)}")
    click.echo(f"  Repositories: {len(manifest.repos)}")
    sys.exit(0)


@main.command()
@root_argument
@config_option
@force_option
@ignore_option
@jobs_option
@click.option(
    "--branch",
    "use_branch",
    is_flag=True,
    help="Record current branches instead of commit hashes",
)
def snapshot(path: Path, config: Path, force: bool, ignore: tuple, jobs: int, use_branch: bool):
    """Snapshot the repositories under PATH into the manifest.

    Records the HEAD commit of each repository, or its branch with --branch.

    Examples:
        repo-manifest snapshot
        repo-manifest snapshot ~/work --force --ignore vendor --ignore .

    Exit codes:
        0: Success
        1: Generic runtime failure
        3: PATH not found
        4: PATH is a repository and --force was not given
        5: Existing manifest is malformed and --force was not given
    """
    kind = SnapshotKind.BRANCH if use_branch else SnapshotKind.COMMIT
    manifest = _run(
        snapshot_manifest,
        root=path,
        config_path=config,
        force=force,
        kind=kind,
        ignore=ignore,
        max_workers=jobs,
    )
    click.echo(f"[OK] Snapshot written: {resolve_config_path(path, config)}")
    click.echo(f"  Repositories: {len(manifest.repos)}")
    click.echo(f"  Kind: {kind.value}")
    sys.exit(0)


if __name__ == "__main__":
    main()
