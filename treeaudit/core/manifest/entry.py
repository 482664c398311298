"""
Manifest entry model.

An entry's lifecycle state is a tagged variant: payload-free statuses use
``Mark``, while ``Altered`` and ``Renamed`` carry the values they replaced.
Prior values therefore exist exactly when the status calls for them.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterable, Iterator, Union

DIGEST_PATTERN = re.compile(r"^[0-9a-f]+$")


class EntryStatus(str, Enum):
    """Classification of an entry during reconciliation."""

    UNKNOWN = "unknown"
    CHECKED = "checked"
    MISSING = "missing"
    ALTERED = "altered"
    INDEXED = "indexed"
    RENAMED = "renamed"
    DELETED = "deleted"


TERMINAL_STATUSES = frozenset(
    {
        EntryStatus.CHECKED,
        EntryStatus.MISSING,
        EntryStatus.ALTERED,
        EntryStatus.INDEXED,
        EntryStatus.RENAMED,
    }
)


@dataclass(frozen=True)
class Mark:
    """State without payload."""

    status: EntryStatus

    def __post_init__(self) -> None:
        if self.status in (EntryStatus.ALTERED, EntryStatus.RENAMED):
            raise ValueError(f"{self.status.value} state requires its prior values")


@dataclass(frozen=True)
class Altered:
    """Content changed; holds the size and digest recorded before the change."""

    prior_size: int
    prior_digest: str
    status: ClassVar[EntryStatus] = EntryStatus.ALTERED


@dataclass(frozen=True)
class Renamed:
    """Content moved here from ``prior_path``."""

    prior_path: str
    status: ClassVar[EntryStatus] = EntryStatus.RENAMED


EntryState = Union[Mark, Altered, Renamed]

UNKNOWN = Mark(EntryStatus.UNKNOWN)
CHECKED = Mark(EntryStatus.CHECKED)
MISSING = Mark(EntryStatus.MISSING)
INDEXED = Mark(EntryStatus.INDEXED)
DELETED = Mark(EntryStatus.DELETED)


@dataclass
class ManifestEntry:
    """One tracked file."""

    path: str
    size: int
    digest: str
    state: EntryState = field(default=UNKNOWN)

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("Entry path must not be empty")
        if self.size < 0:
            raise ValueError(f"Entry size must be non-negative, got {self.size}")
        if not DIGEST_PATTERN.match(self.digest):
            raise ValueError(f"Entry digest must be lowercase hex, got {self.digest!r}")

    @property
    def status(self) -> EntryStatus:
        return self.state.status

    @property
    def prior_size(self) -> int | None:
        return self.state.prior_size if isinstance(self.state, Altered) else None

    @property
    def prior_digest(self) -> str | None:
        return self.state.prior_digest if isinstance(self.state, Altered) else None

    @property
    def prior_path(self) -> str | None:
        return self.state.prior_path if isinstance(self.state, Renamed) else None

    def mark_altered(self, size: int, digest: str) -> None:
        """Record new content, keeping the previous values as priors."""
        self.state = Altered(prior_size=self.size, prior_digest=self.digest)
        self.size = size
        self.digest = digest


class Manifest:
    """
    Mapping of path to entry, kept in insertion order.

    Insertion order is scan order for newly indexed entries, which is what
    rename detection relies on for its tie-break.
    """

    def __init__(self, entries: Iterable[ManifestEntry] = ()):
        self._entries: dict[str, ManifestEntry] = {}
        for entry in entries:
            self.add(entry)

    def add(self, entry: ManifestEntry) -> ManifestEntry:
        """Add an entry; a path may appear only once."""
        if entry.path in self._entries:
            raise ValueError(f"Duplicate manifest path: {entry.path}")
        self._entries[entry.path] = entry
        return entry

    def get(self, path: str) -> ManifestEntry | None:
        return self._entries.get(path)

    def remove(self, path: str) -> ManifestEntry:
        return self._entries.pop(path)

    def paths(self) -> list[str]:
        return list(self._entries)

    def with_status(self, *statuses: EntryStatus) -> list[ManifestEntry]:
        """Entries whose status is one of ``statuses``, in insertion order."""
        wanted = set(statuses)
        return [e for e in self._entries.values() if e.status in wanted]

    def sorted_entries(self) -> list[ManifestEntry]:
        return [self._entries[p] for p in sorted(self._entries)]

    def status_counts(self) -> Counter[EntryStatus]:
        return Counter(e.status for e in self._entries.values())

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __getitem__(self, path: str) -> ManifestEntry:
        return self._entries[path]

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Manifest({len(self)} entries)"
