"""Core utilities: manifest model, hashing, canonical JSON, run reports."""

from treeaudit.core.json_canonical import canonical_json_dumps
from treeaudit.core.manifest import EntryStatus, Manifest, ManifestEntry
from treeaudit.core.run_report import IndexReport

__all__ = [
    "canonical_json_dumps",
    "EntryStatus",
    "Manifest",
    "ManifestEntry",
    "IndexReport",
]
