"""Core exception types for repo-manifest."""


class RepoManifestError(Exception):
    """Base exception for all repo-manifest errors."""
    pass


class GitOperationError(RepoManifestError):
    """Raised when a git operation fails."""
    pass


class ManifestParseError(RepoManifestError):
    """Raised when an existing manifest file cannot be parsed."""
    pass


class ManifestExistsError(RepoManifestError):
    """Raised when init would overwrite an existing manifest."""
    pass


class ManifestWriteError(RepoManifestError):
    """Raised when the manifest file cannot be written."""
    pass


class InvalidManifestError(RepoManifestError):
    """Raised when extracted entries do not form a valid manifest."""
    pass


class RootNotFoundError(RepoManifestError):
    """Raised when the scan root does not exist."""
    pass


class RootIsRepositoryError(RepoManifestError):
    """Raised when the scan root is itself a repository and force is not set."""
    pass


class ScanError(RepoManifestError):
    """Raised when a directory in the tree cannot be listed."""
    pass
