"""
Logging setup for treeaudit.

Modules call ``get_logger(__name__)``; the CLI calls ``configure_logging``
once. Diagnostics go to stderr through rich so stdout carries only the path
lists produced by ``find`` and ``dedup``.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "treeaudit"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure the package logger.

    Safe to call more than once; the rich handler is installed only once.

    Args:
        verbose: Log per-entry classification at DEBUG level.

    Returns:
        The package root logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            show_time=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package namespace."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
