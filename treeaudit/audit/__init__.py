"""Reconciliation engine: classification, content grouping, change sets, persistence."""

from treeaudit.audit.changes import ChangeSets, derive_change_sets
from treeaudit.audit.grouping import (
    ContentKey,
    DedupReport,
    DuplicateGroup,
    find_duplicates,
    find_unindexed,
    group_by_content,
)
from treeaudit.audit.reconcile import VerificationMode, reconcile
from treeaudit.audit.writer import entries_to_persist, persist_manifest, should_persist

__all__ = [
    "ChangeSets",
    "derive_change_sets",
    "ContentKey",
    "DedupReport",
    "DuplicateGroup",
    "find_duplicates",
    "find_unindexed",
    "group_by_content",
    "VerificationMode",
    "reconcile",
    "entries_to_persist",
    "persist_manifest",
    "should_persist",
]
