"""
treeaudit CLI.

Command-line interface for indexing a directory, finding unindexed content,
and reporting duplicates.

Standard output carries only path lists; summaries and diagnostics go to
standard error. Running two instances against the same manifest at once is
not supported and is not detected.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Callable, TypeVar

import click
from rich.console import Console
from rich.filesize import decimal
from rich.markup import escape
from rich.table import Table

from treeaudit import __version__
from treeaudit.audit.changes import derive_change_sets
from treeaudit.audit.grouping import find_duplicates, find_unindexed
from treeaudit.audit.reconcile import VerificationMode, index_new_files, reconcile
from treeaudit.audit.writer import persist_manifest, should_persist
from treeaudit.config import CONFIG_FILENAME, AuditConfig, load_config
from treeaudit.core.manifest.entry import EntryStatus, Manifest
from treeaudit.core.manifest.hash import FileHasher
from treeaudit.core.manifest.store import TEMP_SUFFIX, load_manifest
from treeaudit.core.run_report import IndexReport
from treeaudit.errors import ConfigError, IoFailureError, TreeAuditError
from treeaudit.io.change_logs import (
    commit_change_logs,
    discard_change_logs,
    log_base_path,
    stage_change_logs,
)
from treeaudit.io.scanner import scan_directory
from treeaudit.log import configure_logging, get_logger

logger = get_logger(__name__)
err_console = Console(stderr=True, soft_wrap=True)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class AuditContext:
    """Resolved root and configuration shared by all commands."""

    root: Path
    config: AuditConfig

    def resolve_manifest(self, manifest: str | None, must_exist: bool) -> Path:
        """
        Manifest path from the command line, or the root's default.

        An explicitly named manifest must exist; the default must exist only
        when ``must_exist`` is set.
        """
        if manifest is not None:
            path = Path(manifest)
            if not path.is_file():
                raise click.UsageError(f"Manifest not found: {manifest}")
            return path

        path = self.config.manifest_path(self.root)
        if must_exist and not path.is_file():
            raise click.UsageError(
                f"No manifest at {path}; run 'treeaudit index' first "
                "(a root with no files gets no manifest)"
            )
        return path

    def skip_paths(self, manifest_path: Path) -> list[str]:
        """Tool-owned files under the root that must never be indexed."""
        owned = [
            manifest_path,
            manifest_path.with_name(manifest_path.name + TEMP_SUFFIX),
            self.config.log_path(self.root),
            self.root / CONFIG_FILENAME,
        ]
        root = os.path.abspath(self.root)
        skipped = []
        for path in owned:
            rel_path = os.path.relpath(os.path.abspath(path), root)
            if rel_path != os.pardir and not rel_path.startswith(os.pardir + os.sep):
                skipped.append(rel_path.replace(os.sep, "/"))
        return skipped

    def scan(self, manifest_path: Path) -> list[str]:
        return scan_directory(
            self.root,
            exclude=self.config.exclude,
            skip=self.skip_paths(manifest_path),
        )

    def hasher(self) -> FileHasher:
        return FileHasher(
            self.root,
            algorithm=self.config.hash_algorithm,
            chunk_size=self.config.chunk_size,
        )


def handle_errors(func: F) -> F:
    """Turn fatal audit errors into a stderr message and a distinct exit code."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except TreeAuditError as e:
            click.echo(f"Error ({e.label}): {e}", err=True)
            raise SystemExit(e.exit_code)

    return wrapper  # type: ignore[return-value]


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--root", "-r",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=Path("."),
    help="Directory to audit",
)
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help=f"Config YAML (default: <root>/{CONFIG_FILENAME} if present)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every classified entry")
@click.pass_context
def main(ctx: click.Context, root: Path, config: Path | None, verbose: bool) -> None:
    """treeaudit: Directory integrity auditor."""
    configure_logging(verbose)

    try:
        audit_config = load_config(root, config)
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    ctx.obj = AuditContext(root=root, config=audit_config)


def _print_summary(manifest: Manifest, mode: VerificationMode, dry_run: bool) -> None:
    counts = manifest.status_counts()
    changed = {status: n for status, n in counts.items() if status is not EntryStatus.CHECKED}
    checked = counts.get(EntryStatus.CHECKED, 0)

    if not changed:
        err_console.print(f"No changes ({checked} files checked, {mode.value} mode)")
        return

    table = Table(title=f"Changes ({mode.value} mode{', dry run' if dry_run else ''})")
    table.add_column("Status", style="cyan")
    table.add_column("Files", justify="right")
    for status in EntryStatus:
        if status in changed:
            table.add_row(status.value, str(changed[status]))
    table.add_row("checked", str(checked), style="dim")
    err_console.print(table)


@main.command()
@click.argument("manifest", required=False)
@click.option("--fast", is_flag=True, help="Detect changes by size only (same-size edits go unnoticed)")
@click.option("--dry-run", is_flag=True, help="Report changes without writing logs or the manifest")
@click.option(
    "--report",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write a JSON run report to this path",
)
@click.pass_obj
@handle_errors
def index(
    audit: AuditContext,
    manifest: str | None,
    fast: bool,
    dry_run: bool,
    report: Path | None,
) -> None:
    """Reconcile the manifest with the directory and record changes."""
    started_at = datetime.now(timezone.utc)
    manifest_path = audit.resolve_manifest(manifest, must_exist=False)
    mode = VerificationMode.FAST if fast else VerificationMode.FULL

    entries = load_manifest(manifest_path)
    logger.info("Loaded %d entries from %s", len(entries), manifest_path)

    live_files = audit.scan(manifest_path)
    reconcile(entries, live_files, mode, audit.hasher())

    _print_summary(entries, mode, dry_run)

    change_logs: list[Path] = []
    persisted = False
    if dry_run:
        logger.info("Dry run: change logs and manifest not written")
    elif should_persist(entries):
        base = log_base_path(audit.config.log_path(audit.root), audit.config.log_base)
        staged = stage_change_logs(derive_change_sets(entries), base)
        try:
            persisted = persist_manifest(entries, manifest_path)
        except TreeAuditError:
            discard_change_logs(staged)
            raise
        change_logs = commit_change_logs(staged)

    if report is not None:
        counts = entries.status_counts()
        run_report = IndexReport(
            root=str(audit.root),
            manifest_path=str(manifest_path),
            mode=mode.value,
            dry_run=dry_run,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            counts={status.value: counts.get(status, 0) for status in EntryStatus},
            persisted=persisted,
            change_logs=[str(p) for p in change_logs],
        )
        try:
            run_report.save(report)
        except OSError as e:
            raise IoFailureError(report, e) from e
        logger.info("Wrote run report to %s", report)


@main.command()
@click.argument("manifest", required=False)
@click.pass_obj
@handle_errors
def find(audit: AuditContext, manifest: str | None) -> None:
    """List files whose content is absent from MANIFEST, whatever their name."""
    reference_path = audit.resolve_manifest(manifest, must_exist=True)
    reference = load_manifest(reference_path)
    logger.info("Loaded %d reference entries from %s", len(reference), reference_path)

    local = Manifest()
    index_new_files(local, audit.scan(reference_path), audit.hasher())

    unindexed = find_unindexed(reference, local)
    for entry in unindexed:
        click.echo(entry.path)

    err_console.print(
        f"{len(unindexed)} of {len(local)} files have content not in {escape(str(reference_path))}"
    )


@main.command()
@click.argument("manifest", required=False)
@click.pass_obj
@handle_errors
def dedup(audit: AuditContext, manifest: str | None) -> None:
    """List redundant copies of identical content recorded in MANIFEST."""
    manifest_path = audit.resolve_manifest(manifest, must_exist=True)
    report = find_duplicates(load_manifest(manifest_path))

    for group in report.groups:
        err_console.print(
            f"[bold]{len(group.paths)} copies[/bold] of {group.key.size} bytes, "
            f"keeping {escape(group.original)}"
        )
        for path in group.redundant:
            click.echo(path)

    err_console.print(
        f"{len(report.groups)} duplicate sets, {report.redundant_count} redundant files, "
        f"{report.reclaimable_bytes} bytes ({decimal(report.reclaimable_bytes)}) reclaimable"
    )


if __name__ == "__main__":
    main()
