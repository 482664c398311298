"""
Run report schema.

Machine-readable summary of one ``index`` run.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from treeaudit.core.json_canonical import canonical_json_dumps


class IndexReport(BaseModel):
    """Outcome of a reconciliation run."""

    model_config = ConfigDict(frozen=True)

    root: str = Field(description="Audited directory")
    manifest_path: str = Field(description="Manifest that was reconciled")
    mode: str = Field(description="Verification mode (fast or full)")
    dry_run: bool = Field(default=False, description="Whether writes were suppressed")

    started_at: datetime = Field(description="Run start timestamp")
    completed_at: datetime | None = Field(default=None, description="Run completion timestamp")

    counts: dict[str, int] = Field(
        default_factory=dict, description="Entry count per status"
    )
    persisted: bool = Field(default=False, description="Whether the manifest was rewritten")
    change_logs: list[str] = Field(
        default_factory=list, description="Change log files written"
    )

    def to_json(self, indent: bool = True) -> str:
        """Serialize to canonical JSON."""
        return canonical_json_dumps(self.model_dump(mode="json"), indent=indent)

    def save(self, path: Path) -> None:
        """Save report to file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(indent=True) + "\n", encoding="utf-8")
