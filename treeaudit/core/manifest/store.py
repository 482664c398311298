"""
Manifest text format.

One entry per line, ``<path> <size> <digest>``. The path is matched greedily
so it may contain spaces; size is decimal and digest is lowercase hex.
Loading is all-or-nothing: the first bad line aborts with
``ManifestCorruptError`` and no partial manifest is returned.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable

from treeaudit.core.manifest.entry import Manifest, ManifestEntry
from treeaudit.errors import IoFailureError, ManifestCorruptError

LINE_PATTERN = re.compile(r"^(?P<path>.+) (?P<size>\d+) (?P<digest>[0-9a-f]+)$")
TEMP_SUFFIX = ".tmp"


def format_line(path: str, size: int, digest: str) -> str:
    """Render one manifest record, without the trailing newline."""
    return f"{path} {size} {digest}"


def parse_line(line: str) -> tuple[str, int, str] | None:
    """Split a manifest line into (path, size, digest), or None if malformed."""
    match = LINE_PATTERN.match(line)
    if match is None:
        return None
    return match.group("path"), int(match.group("size")), match.group("digest")


def split_lines(content: str) -> list[str]:
    """
    Split manifest text on LF only.

    File names may contain any other line-like separator (form feed, U+2028
    and so on), so ``str.splitlines`` cannot be used. A single trailing
    newline ends the last line; a CR before each LF is dropped.
    """
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_manifest(content: str, source: Path | str = "<manifest>") -> Manifest:
    """
    Parse manifest text.

    Args:
        content: Full manifest text.
        source: Where the text came from, for error messages.

    Returns:
        Manifest with every entry in UNKNOWN state, in file order.

    Raises:
        ManifestCorruptError: On the first line that fails the grammar or
            repeats an earlier path.
    """
    manifest = Manifest()
    for line_number, line in enumerate(split_lines(content), start=1):
        parsed = parse_line(line)
        if parsed is None:
            raise ManifestCorruptError(source, line_number, line)

        path, size, digest = parsed
        if path in manifest:
            raise ManifestCorruptError(source, line_number, line, reason="duplicate path")
        manifest.add(ManifestEntry(path=path, size=size, digest=digest))

    return manifest


def load_manifest(path: Path) -> Manifest:
    """
    Load a manifest file.

    A file that does not exist yields an empty manifest (first run).
    """
    path = Path(path)
    if not path.exists():
        return Manifest()

    try:
        with open(path, encoding="utf-8", newline="") as f:
            content = f.read()
    except UnicodeDecodeError as e:
        raise ManifestCorruptError(path, 0, "", reason=f"not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise IoFailureError(path, e) from e

    return parse_manifest(content, source=path)


def render_manifest(entries: Iterable[ManifestEntry]) -> str:
    """Render entries sorted by path."""
    lines = [
        format_line(e.path, e.size, e.digest)
        for e in sorted(entries, key=lambda e: e.path)
    ]
    return "".join(line + "\n" for line in lines)


def save_manifest(entries: Iterable[ManifestEntry], path: Path) -> None:
    """
    Write entries to ``path``, replacing it atomically.

    Only path, size and digest are written; entry states are transient.
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + TEMP_SUFFIX)
    content = render_manifest(entries)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        raise IoFailureError(path, e) from e
