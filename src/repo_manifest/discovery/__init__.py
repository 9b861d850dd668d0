"""Discovery: scan a directory tree for repositories and snapshot their state."""
from repo_manifest.discovery.extractor import extract_entries, extract_entry
from repo_manifest.discovery.scanner import scan_repositories

__all__ = [
    "extract_entries",
    "extract_entry",
    "scan_repositories",
]
