"""Manifest system: entries, text store, and content hashing."""

from treeaudit.core.manifest.entry import (
    Altered,
    EntryStatus,
    Manifest,
    ManifestEntry,
    Mark,
    Renamed,
)
from treeaudit.core.manifest.hash import FileHasher, compute_file_hash
from treeaudit.core.manifest.store import load_manifest, parse_manifest, save_manifest

__all__ = [
    "Altered",
    "EntryStatus",
    "Manifest",
    "ManifestEntry",
    "Mark",
    "Renamed",
    "FileHasher",
    "compute_file_hash",
    "load_manifest",
    "parse_manifest",
    "save_manifest",
]
