"""
treeaudit: Directory integrity auditor.

Keeps a manifest of (path, size, digest) for a directory tree and reconciles
it against the live filesystem, with rename detection, content-addressed
find, and duplicate reporting.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
