"""
Manifest reconciliation.

Turns {previous manifest, live file list} into a classified manifest. The
passes run in a fixed order and each one only touches entries the earlier
passes left alone:

1. new files are indexed (hashed once to register them),
2. unknown entries that are no longer on disk become missing,
3. missing entries whose exact content (size and digest) turned up under a
   new path are folded into that path as a rename,
4. whatever is still unknown is verified against the disk.
"""

from __future__ import annotations

from collections import defaultdict
from enum import Enum
from typing import Iterable, Protocol

from treeaudit.core.manifest.entry import (
    CHECKED,
    DELETED,
    INDEXED,
    MISSING,
    EntryStatus,
    Manifest,
    ManifestEntry,
    Renamed,
)
from treeaudit.log import get_logger

logger = get_logger(__name__)


class VerificationMode(str, Enum):
    """How existing entries are checked against the disk."""

    FAST = "fast"
    """Size only; hashes a file only when its size changed."""

    FULL = "full"
    """Size and digest; every existing file is hashed."""


class Hasher(Protocol):
    """Size and digest lookups for manifest paths."""

    def size(self, rel_path: str) -> int:
        ...

    def digest(self, rel_path: str) -> str:
        ...


def index_new_files(manifest: Manifest, live_files: Iterable[str], hasher: Hasher) -> int:
    """
    Add an INDEXED entry for every live path the manifest does not know.

    Entries are added in ``live_files`` order.

    Returns:
        Number of entries added.
    """
    added = 0
    for path in live_files:
        if path in manifest:
            continue
        entry = ManifestEntry(
            path=path,
            size=hasher.size(path),
            digest=hasher.digest(path),
            state=INDEXED,
        )
        manifest.add(entry)
        added += 1
        logger.debug("new: %s", path)
    return added


def mark_missing(manifest: Manifest, live_files: Iterable[str]) -> int:
    """Mark every UNKNOWN entry whose path is not live as MISSING."""
    live = set(live_files)
    missing = 0
    for entry in manifest.with_status(EntryStatus.UNKNOWN):
        if entry.path not in live:
            entry.state = MISSING
            missing += 1
            logger.debug("missing: %s", entry.path)
    return missing


def detect_renames(manifest: Manifest) -> int:
    """
    Pair MISSING entries with INDEXED entries of identical content.

    A missing entry matches the first indexed candidate, in insertion order,
    that has the same digest and size and has not already been claimed. The
    missing entry is dropped and the candidate becomes RENAMED with the old
    path recorded. When several live files are byte-identical to one missing
    file the choice is the first one scanned; it is only as stable as the
    scan order.

    Returns:
        Number of renames detected.
    """
    candidates: dict[str, list[ManifestEntry]] = defaultdict(list)
    for entry in manifest.with_status(EntryStatus.INDEXED):
        candidates[entry.digest].append(entry)

    renamed = 0
    for missing in manifest.with_status(EntryStatus.MISSING):
        for candidate in candidates.get(missing.digest, ()):
            if candidate.status is not EntryStatus.INDEXED or candidate.size != missing.size:
                continue
            missing.state = DELETED
            candidate.state = Renamed(prior_path=missing.path)
            renamed += 1
            logger.debug("renamed: %s -> %s", missing.path, candidate.path)
            break

    for entry in manifest.with_status(EntryStatus.DELETED):
        manifest.remove(entry.path)

    return renamed


def verify_existing(manifest: Manifest, mode: VerificationMode, hasher: Hasher) -> int:
    """
    Classify every remaining UNKNOWN entry as CHECKED or ALTERED.

    In FAST mode only the size decides; a changed file is hashed afterwards
    purely to record its new digest, so a same-size content change goes
    unnoticed. In FULL mode both size and digest decide.

    Returns:
        Number of entries found altered.
    """
    altered = 0
    for entry in manifest.with_status(EntryStatus.UNKNOWN):
        size = hasher.size(entry.path)

        if mode is VerificationMode.FAST:
            changed = size != entry.size
            digest = hasher.digest(entry.path) if changed else entry.digest
        else:
            digest = hasher.digest(entry.path)
            changed = size != entry.size or digest != entry.digest

        if changed:
            entry.mark_altered(size, digest)
            altered += 1
            logger.debug("altered: %s", entry.path)
        else:
            entry.state = CHECKED

    return altered


def reconcile(
    manifest: Manifest,
    live_files: Iterable[str],
    mode: VerificationMode,
    hasher: Hasher,
) -> Manifest:
    """
    Reconcile a loaded manifest against the live file list.

    The manifest is mutated in place and returned. Afterwards every entry is
    CHECKED, MISSING, ALTERED, INDEXED or RENAMED.

    Args:
        manifest: Manifest as loaded, every entry UNKNOWN.
        live_files: Paths found by the scanner, in scan order.
        mode: Verification strategy for existing entries.
        hasher: Size/digest source for live paths.

    Returns:
        The same manifest, classified.

    Raises:
        IoFailureError: If a live file cannot be read; nothing is recovered.
    """
    live = list(live_files)

    added = index_new_files(manifest, live, hasher)
    missing = mark_missing(manifest, live)
    renamed = detect_renames(manifest)
    altered = verify_existing(manifest, mode, hasher)

    logger.info(
        "Reconciled %d entries (%s mode): %d new, %d missing, %d renamed, %d altered",
        len(manifest),
        mode.value,
        added - renamed,
        missing - renamed,
        renamed,
        altered,
    )
    return manifest
