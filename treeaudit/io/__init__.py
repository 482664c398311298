"""I/O utilities: directory scanning and change log files."""

from treeaudit.io.change_logs import (
    commit_change_logs,
    discard_change_logs,
    log_base_path,
    stage_change_logs,
)
from treeaudit.io.scanner import iter_directory, scan_directory

__all__ = [
    "iter_directory",
    "scan_directory",
    "log_base_path",
    "stage_change_logs",
    "commit_change_logs",
    "discard_change_logs",
]
