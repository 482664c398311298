"""
Change sets derived from a reconciled manifest.

Besides the per-category lists, the ``backup`` set records every
pre-existing entry as it was before this run, enough to rebuild the
previous manifest for everything except brand-new files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from treeaudit.core.manifest.entry import Altered, EntryStatus, Manifest, Renamed

CHANGE_SET_NAMES = ("deleted", "new", "moved", "modified", "backup")


@dataclass
class ChangeSets:
    """Categorised changes of one run, each list in path order."""

    deleted: list[str] = field(default_factory=list)
    new: list[str] = field(default_factory=list)
    moved: list[tuple[str, str]] = field(default_factory=list)
    modified: list[tuple[str, str, str]] = field(default_factory=list)
    backup: list[tuple[str, int, str]] = field(default_factory=list)

    def non_empty(self) -> Iterator[tuple[str, list]]:
        """Yield ``(name, records)`` for every set that has records."""
        for name in CHANGE_SET_NAMES:
            records = getattr(self, name)
            if records:
                yield name, records


def derive_change_sets(manifest: Manifest) -> ChangeSets:
    """
    Derive change sets from a reconciled manifest.

    - deleted: MISSING paths
    - new: INDEXED paths
    - moved: (prior_path, path) for RENAMED
    - modified: (path, prior_digest, digest) for ALTERED
    - backup: (path, size, digest) of every non-INDEXED entry, using the
      prior values where the entry carries them
    """
    changes = ChangeSets()

    for entry in manifest.sorted_entries():
        state = entry.state
        status = entry.status

        if status is EntryStatus.MISSING:
            changes.deleted.append(entry.path)
        elif status is EntryStatus.INDEXED:
            changes.new.append(entry.path)
            continue
        elif isinstance(state, Renamed):
            changes.moved.append((state.prior_path, entry.path))
        elif isinstance(state, Altered):
            changes.modified.append((entry.path, state.prior_digest, entry.digest))

        changes.backup.append(
            (
                state.prior_path if isinstance(state, Renamed) else entry.path,
                state.prior_size if isinstance(state, Altered) else entry.size,
                state.prior_digest if isinstance(state, Altered) else entry.digest,
            )
        )

    return changes
