"""
Manifest persistence policy.

The manifest is rewritten only when the run found something other than
CHECKED entries, so an unchanged tree leaves the file byte-identical.
"""

from __future__ import annotations

from pathlib import Path

from treeaudit.core.manifest.entry import EntryStatus, Manifest, ManifestEntry
from treeaudit.core.manifest.store import save_manifest
from treeaudit.log import get_logger

logger = get_logger(__name__)


def should_persist(manifest: Manifest) -> bool:
    """True iff at least one entry is not CHECKED."""
    return any(entry.status is not EntryStatus.CHECKED for entry in manifest)


def entries_to_persist(manifest: Manifest) -> list[ManifestEntry]:
    """Surviving entries, sorted by path; MISSING entries are dropped."""
    return [e for e in manifest.sorted_entries() if e.status is not EntryStatus.MISSING]


def persist_manifest(manifest: Manifest, path: Path) -> bool:
    """
    Write the manifest if the run changed anything.

    Args:
        manifest: Reconciled manifest.
        path: Manifest file to replace.

    Returns:
        True if the file was written.
    """
    if not should_persist(manifest):
        logger.info("No changes; manifest %s left untouched", path)
        return False

    entries = entries_to_persist(manifest)
    save_manifest(entries, path)
    logger.info("Wrote %d entries to %s", len(entries), path)
    return True
