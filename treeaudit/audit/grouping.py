"""
Content-addressed grouping.

Entries are identified by ``(size, digest)``: the digest alone would treat a
rare collision as identity, the size alone would call same-sized files
duplicates. Both ``find`` and ``dedup`` work on this key and ignore paths.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, NamedTuple

from treeaudit.core.manifest.entry import Manifest, ManifestEntry


class ContentKey(NamedTuple):
    """Identity of a file's content."""

    size: int
    digest: str

    @classmethod
    def of(cls, entry: ManifestEntry) -> ContentKey:
        return cls(entry.size, entry.digest)


def group_by_content(entries: Iterable[ManifestEntry]) -> dict[ContentKey, list[str]]:
    """
    Group entry paths by content key.

    Keys keep first-seen order and each path list keeps iteration order.
    """
    groups: dict[ContentKey, list[str]] = defaultdict(list)
    for entry in entries:
        groups[ContentKey.of(entry)].append(entry.path)
    return dict(groups)


def find_unindexed(
    reference: Iterable[ManifestEntry],
    local: Iterable[ManifestEntry],
) -> list[ManifestEntry]:
    """
    Local entries whose content appears nowhere in the reference.

    Name-blind: a local file counts as indexed if any reference entry has the
    same size and digest, whatever its path.
    """
    known = set(group_by_content(reference))
    return [entry for entry in local if ContentKey.of(entry) not in known]


@dataclass(frozen=True)
class DuplicateGroup:
    """Paths sharing one content key; the first path is the kept copy."""

    key: ContentKey
    paths: tuple[str, ...]

    @property
    def original(self) -> str:
        return self.paths[0]

    @property
    def redundant(self) -> tuple[str, ...]:
        return self.paths[1:]

    @property
    def reclaimable_bytes(self) -> int:
        return (len(self.paths) - 1) * self.key.size


@dataclass
class DedupReport:
    """Duplicate sets found in one manifest."""

    groups: list[DuplicateGroup] = field(default_factory=list)

    @property
    def redundant_paths(self) -> list[str]:
        return [path for group in self.groups for path in group.redundant]

    @property
    def redundant_count(self) -> int:
        return sum(len(group.redundant) for group in self.groups)

    @property
    def reclaimable_bytes(self) -> int:
        return sum(group.reclaimable_bytes for group in self.groups)


def find_duplicates(manifest: Manifest | Iterable[ManifestEntry]) -> DedupReport:
    """
    Report every content key shared by more than one entry.

    Args:
        manifest: Entries to examine, in the order that decides which copy
            is the original.

    Returns:
        DedupReport with groups in first-seen order.
    """
    groups = [
        DuplicateGroup(key=key, paths=tuple(paths))
        for key, paths in group_by_content(manifest).items()
        if len(paths) > 1
    ]
    return DedupReport(groups=groups)
