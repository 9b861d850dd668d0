"""Manifest models: shared defaults, repository entries and the manifest itself."""
import logging
import os
import posixpath
import tempfile
import tomllib
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from repo_manifest.core.errors import ManifestParseError, ManifestWriteError
from repo_manifest.manifest import toml_format

logger = logging.getLogger(__name__)

ROOT_LOCAL = "."


class SnapshotKind(str, Enum):
    """What an extracted entry pins: the current branch or the exact commit."""

    BRANCH = "branch"
    COMMIT = "commit"


class PinKind(str, Enum):
    """Which revision field an entry carries."""

    BRANCH = "branch"
    TAG = "tag"
    COMMIT = "commit"
    UNTRACKED = "untracked"


def normalize_local(path: str) -> str:
    """Normalize a manifest-relative path.

    Whitespace and backslashes are legal in directory names and are kept;
    the empty string is the only alias of the root marker.

    Examples:
        "" -> "."
        "./foo/" -> "foo"
        " lead" -> " lead"
    """
    if not path:
        return ROOT_LOCAL
    return posixpath.normpath(path)


def local_sort_key(local: str) -> tuple:
    """Sort key placing the root marker first, then plain lexical order."""
    return (local != ROOT_LOCAL, local)


class ManifestDefaults(BaseModel):
    """Top-level manifest fields shared by all entries."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    schema_version: Optional[str] = Field(default=None, alias="version")
    default_branch: Optional[str] = Field(default=None, alias="default-branch")
    default_remote: Optional[str] = Field(default=None, alias="default-remote")


class RepositoryEntry(BaseModel):
    """One tracked repository.

    ``branch``, ``tag`` and ``commit`` are mutually exclusive: an entry pins
    at most one revision. ``local`` is relative to the manifest root, with
    ``"."`` for the root itself.
    """

    model_config = ConfigDict(extra="ignore")

    local: str = Field(..., description="Path relative to the manifest root")
    remote: Optional[str] = Field(default=None, description="Remote (origin) URL")
    branch: Optional[str] = Field(default=None, description="Tracked branch name")
    tag: Optional[str] = Field(default=None, description="Pinned tag")
    commit: Optional[str] = Field(default=None, description="Pinned commit SHA")
    sparse: Optional[List[str]] = Field(default=None, description="Sparse-checkout patterns")

    @field_validator("local")
    @classmethod
    def validate_local(cls, v: str) -> str:
        return normalize_local(v)

    @field_validator("sparse")
    @classmethod
    def validate_sparse(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        """An empty pattern list means no sparse checkout."""
        return v or None

    @model_validator(mode="after")
    def validate_single_pin(self) -> "RepositoryEntry":
        pins = [name for name in ("branch", "tag", "commit") if getattr(self, name) is not None]
        if len(pins) > 1:
            raise ValueError(
                f"repository '{self.local}' sets {' and '.join(pins)}; only one may be given"
            )
        return self

    @property
    def pin(self) -> PinKind:
        if self.commit is not None:
            return PinKind.COMMIT
        if self.tag is not None:
            return PinKind.TAG
        if self.branch is not None:
            return PinKind.BRANCH
        return PinKind.UNTRACKED

    @property
    def is_root(self) -> bool:
        return self.local == ROOT_LOCAL


class Manifest(BaseModel):
    """Manifest of a repository tree: shared defaults plus one entry per repository.

    Entries are kept sorted by ``local`` (root first) after parsing and are
    always written in that order, so the file stays diff-stable no matter
    in which order repositories were discovered.
    """

    defaults: ManifestDefaults = Field(default_factory=ManifestDefaults)
    repos: List[RepositoryEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_locals(self) -> "Manifest":
        seen = set()
        for entry in self.repos:
            if entry.local in seen:
                raise ValueError(f"repository '{entry.local}' is listed more than once")
            seen.add(entry.local)
        return self

    def sorted_repos(self) -> List[RepositoryEntry]:
        return sorted(self.repos, key=lambda entry: local_sort_key(entry.local))

    def sort_repos(self) -> None:
        self.repos = self.sorted_repos()

    def get(self, local: str) -> Optional[RepositoryEntry]:
        """Return the entry tracking local, if any."""
        local = normalize_local(local)
        for entry in self.repos:
            if entry.local == local:
                return entry
        return None

    def to_document(self) -> dict:
        """Convert to the plain dict shape of the manifest file."""
        document = self.defaults.model_dump(by_alias=True, exclude_none=True)
        document[toml_format.REPOS_KEY] = [
            entry.model_dump(exclude_none=True) for entry in self.sorted_repos()
        ]
        return document

    def to_toml(self) -> str:
        """Serialize to manifest text."""
        return toml_format.dumps(self.to_document())

    @classmethod
    def parse(cls, text: str) -> Optional["Manifest"]:
        """Parse manifest text.

        Returns:
            The manifest with entries sorted, or None if the text is not
            valid TOML or does not have the manifest shape.
        """
        try:
            data = toml_format.loads(text)
        except tomllib.TOMLDecodeError as e:
            logger.debug(f"Manifest is not valid TOML: {e}")
            return None

        try:
            manifest = cls(
                defaults=ManifestDefaults.model_validate(data),
                repos=data.get(toml_format.REPOS_KEY, []),
            )
        except ValidationError as e:
            logger.debug(f"Manifest has an invalid shape: {e}")
            return None

        manifest.sort_repos()
        return manifest

    @classmethod
    def load(cls, path: Path) -> Optional["Manifest"]:
        """Load a manifest file.

        Returns None if the file does not exist.

        Raises:
            ManifestParseError: If the file exists but cannot be read or parsed
        """
        path = Path(path)
        if not path.is_file():
            return None

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestParseError(f"Cannot read manifest {path}: {e}")

        manifest = cls.parse(text)
        if manifest is None:
            raise ManifestParseError(f"Malformed manifest: {path}")
        return manifest

    def save(self, path: Path) -> None:
        """Write the manifest atomically.

        The text is written to a temporary file next to path and renamed
        over it, so readers see either the old file or the complete new one.

        Raises:
            ManifestWriteError: If the file cannot be written
        """
        path = Path(path)
        content = self.to_toml()
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                newline="\n",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(content)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ManifestWriteError(f"Cannot write manifest {path}: {e}")


def parse_manifest(text: str) -> Optional[Manifest]:
    """Parse manifest text; None if it is malformed."""
    return Manifest.parse(text)


def format_manifest(manifest: Manifest) -> str:
    """Render a manifest as text, entries sorted by local path."""
    return manifest.to_toml()
