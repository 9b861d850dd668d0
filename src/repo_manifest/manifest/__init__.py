"""Manifest model and its TOML file format."""
from repo_manifest.manifest.schemas import (
    ROOT_LOCAL,
    Manifest,
    ManifestDefaults,
    PinKind,
    RepositoryEntry,
    SnapshotKind,
    format_manifest,
    parse_manifest,
)

__all__ = [
    "ROOT_LOCAL",
    "Manifest",
    "ManifestDefaults",
    "PinKind",
    "RepositoryEntry",
    "SnapshotKind",
    "format_manifest",
    "parse_manifest",
]
