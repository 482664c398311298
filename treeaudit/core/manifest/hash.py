"""
Content hashing for manifest entries.

Digests are lowercase hex strings; the algorithm is fixed per audit root so
digests in one manifest are always comparable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import xxhash

from treeaudit.errors import IoFailureError

ALGORITHMS: dict[str, Callable[..., Any]] = {
    "xxh64": xxhash.xxh64,
    "xxh3_128": xxhash.xxh3_128,
    "xxh128": xxhash.xxh128,
}


class FileHasher:
    """
    Reads sizes and digests of files under a root.

    Paths handed to ``size`` and ``digest`` are manifest paths, relative to
    the root.
    """

    def __init__(self, root: Path, algorithm: str = "xxh64", chunk_size: int = 65536):
        if algorithm not in ALGORITHMS:
            raise ValueError(
                f"Unsupported hash algorithm: {algorithm}. Supported: {sorted(ALGORITHMS)}"
            )
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.root = Path(root)
        self.algorithm = algorithm
        self.chunk_size = chunk_size

    def resolve(self, rel_path: str) -> Path:
        return self.root / rel_path

    def size(self, rel_path: str) -> int:
        """Current size of a file in bytes."""
        path = self.resolve(rel_path)
        try:
            return path.stat().st_size
        except OSError as e:
            raise IoFailureError(path, e) from e

    def digest(self, rel_path: str) -> str:
        """Hex digest of a file's contents."""
        path = self.resolve(rel_path)
        return compute_file_hash(path, self.algorithm, self.chunk_size)


def compute_file_hash(path: Path, algorithm: str = "xxh64", chunk_size: int = 65536) -> str:
    """
    Compute hash of a file's contents.

    Args:
        path: Path to file.
        algorithm: One of ``ALGORITHMS``.
        chunk_size: Bytes read per iteration.

    Returns:
        Hex-encoded hash string.

    Raises:
        IoFailureError: If the file cannot be opened or read.
    """
    hasher = ALGORITHMS[algorithm]()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                hasher.update(chunk)
    except OSError as e:
        raise IoFailureError(path, e) from e
    return hasher.hexdigest()
