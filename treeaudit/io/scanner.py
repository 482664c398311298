"""
Directory enumeration.

Produces manifest paths: relative to the root, with POSIX separators.
Entries within a directory are visited in sorted order so the scan order,
and with it the rename tie-break, is reproducible.
"""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import Iterable, Iterator

from treeaudit.errors import IoFailureError
from treeaudit.log import get_logger

logger = get_logger(__name__)


def normalize_path(rel_path: str) -> str:
    """Convert a relative path to the manifest form (forward slashes)."""
    return rel_path.replace(os.sep, "/")


def is_utf8_name(rel_path: str) -> bool:
    """False for names decoded with surrogate escapes, which cannot be written as UTF-8."""
    try:
        rel_path.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def is_excluded(rel_path: str, patterns: Iterable[str]) -> bool:
    """Match a relative path, or its final component, against fnmatch patterns."""
    name = rel_path.rsplit("/", 1)[-1]
    for pattern in patterns:
        if fnmatch.fnmatchcase(rel_path, pattern) or fnmatch.fnmatchcase(name, pattern):
            return True
    return False


def iter_directory(
    root: Path,
    exclude: Iterable[str] = (),
    skip: Iterable[str] = (),
) -> Iterator[str]:
    """
    Yield manifest paths of regular files under ``root``.

    Symlinks are neither followed nor reported. A directory pattern in
    ``exclude`` prunes the whole subtree.

    Args:
        root: Directory to walk.
        exclude: fnmatch patterns of relative paths to skip.
        skip: Exact relative paths to skip (files or directories).

    Yields:
        Relative POSIX paths in depth-first, name-sorted order.

    Raises:
        IoFailureError: If a directory cannot be listed.
    """
    root = Path(root)
    patterns = list(exclude)
    skipped = set(skip)
    stack: list[tuple[Path, str]] = [(root, "")]

    while stack:
        current, prefix = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise IoFailureError(current, e) from e

        subdirs: list[tuple[Path, str]] = []
        for entry in entries:
            rel_path = normalize_path(prefix + entry.name)
            if "\n" in rel_path or "\r" in rel_path:
                logger.warning("Skipping file with line break in its name: %r", rel_path)
                continue
            if not is_utf8_name(rel_path):
                logger.warning("Skipping file whose name is not valid UTF-8: %r", rel_path)
                continue
            if rel_path in skipped or is_excluded(rel_path, patterns):
                logger.debug("Excluded %s", rel_path)
                continue

            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append((Path(entry.path), rel_path + "/"))
                elif entry.is_file(follow_symlinks=False):
                    yield rel_path
            except OSError as e:
                raise IoFailureError(entry.path, e) from e

        # Reversed so the stack pops subdirectories in sorted order
        stack.extend(reversed(subdirs))


def scan_directory(
    root: Path,
    exclude: Iterable[str] = (),
    skip: Iterable[str] = (),
) -> list[str]:
    """Materialise ``iter_directory`` into a list."""
    paths = list(iter_directory(root, exclude, skip))
    logger.info("Scanned %d files under %s", len(paths), root)
    return paths
