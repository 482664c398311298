"""
Change log files.

Each non-empty change set is written to ``<base>-<name>``, one record per
line. The backup log uses the manifest grammar, so it can be loaded back
with ``load_manifest``.

Logs are staged under a temporary suffix and only committed once the
manifest they describe has been saved; a run that fails before then leaves
no logs behind.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from treeaudit.audit.changes import CHANGE_SET_NAMES, ChangeSets
from treeaudit.core.manifest.store import TEMP_SUFFIX, format_line
from treeaudit.errors import IoFailureError
from treeaudit.log import get_logger

logger = get_logger(__name__)


def run_stamp(now: datetime | None = None) -> str:
    """UTC timestamp, to the microsecond, used in log file names."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y%m%dT%H%M%S%fZ")


def log_base_path(log_dir: Path, log_base: str, stamp: str | None = None) -> Path:
    """Timestamped base path that change log suffixes are appended to."""
    return Path(log_dir) / f"{log_base}-{stamp or run_stamp()}"


def log_path(base: Path, name: str) -> Path:
    """Log file for one change set."""
    return base.with_name(f"{base.name}-{name}")


def unused_base(base: Path) -> Path:
    """
    ``base``, or ``base`` with a counter appended, such that no log of any
    change set exists under it yet.
    """
    base = Path(base)
    candidate = base
    counter = 0
    while any(
        log_path(candidate, name).exists()
        or log_path(candidate, name + TEMP_SUFFIX).exists()
        for name in CHANGE_SET_NAMES
    ):
        counter += 1
        candidate = base.with_name(f"{base.name}-{counter}")
    return candidate


def format_record(name: str, record: str | tuple) -> str:
    """Render one change record as a log line."""
    if name in ("deleted", "new"):
        return record
    if name == "moved":
        prior_path, path = record
        return f"{prior_path}\t{path}"
    if name == "modified":
        path, prior_digest, digest = record
        return f"{path} {prior_digest} {digest}"
    if name == "backup":
        path, size, digest = record
        return format_line(path, size, digest)
    raise ValueError(f"Unknown change set: {name}")


def stage_change_logs(changes: ChangeSets, base: Path) -> list[Path]:
    """
    Write every non-empty change set to a temporary file next to ``base``.

    Args:
        changes: Derived change sets.
        base: Timestamped base path, see ``log_base_path``. A counter is
            appended when logs already exist under it.

    Returns:
        Final log paths, in change set order. Their contents sit under
        ``<path>.tmp`` until ``commit_change_logs`` is called.
    """
    base = unused_base(base)
    staged: list[Path] = []

    for name, records in changes.non_empty():
        path = log_path(base, name)
        tmp_path = path.with_name(path.name + TEMP_SUFFIX)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("x", encoding="utf-8", newline="\n") as f:
                for record in records:
                    f.write(format_record(name, record) + "\n")
        except OSError as e:
            discard_change_logs(staged)
            raise IoFailureError(tmp_path, e) from e

        logger.debug("Staged %d %s records in %s", len(records), name, tmp_path)
        staged.append(path)

    return staged


def commit_change_logs(staged: list[Path]) -> list[Path]:
    """Move staged logs to their final names."""
    for path in staged:
        tmp_path = path.with_name(path.name + TEMP_SUFFIX)
        try:
            tmp_path.replace(path)
        except OSError as e:
            raise IoFailureError(path, e) from e
        logger.info("Wrote change log %s", path)
    return staged


def discard_change_logs(staged: list[Path]) -> None:
    """Remove staged logs of a run that did not complete."""
    for path in staged:
        path.with_name(path.name + TEMP_SUFFIX).unlink(missing_ok=True)
