"""Tests for canonical JSON and the run report."""

from datetime import datetime, timezone

import orjson
import pytest
from pydantic import ValidationError

from treeaudit.core.json_canonical import canonical_json_dumps
from treeaudit.core.run_report import IndexReport


class TestCanonicalJson:
    """Tests for canonical JSON."""

    def test_keys_sorted(self):
        """Dict ordering does not change the output."""
        assert canonical_json_dumps({"b": 2, "a": 1}) == canonical_json_dumps({"a": 1, "b": 2})
        assert canonical_json_dumps({"b": 2, "a": 1}) == '{"a":1,"b":2}'

    def test_nested_keys_sorted(self):
        """Sorting applies at every level."""
        assert canonical_json_dumps({"o": {"z": 1, "a": 2}}) == '{"o":{"a":2,"z":1}}'

    def test_unicode_handling(self):
        """Unicode paths should be preserved."""
        obj = {"path": "фото/снимок 1.jpg"}
        assert orjson.loads(canonical_json_dumps(obj)) == obj

    def test_list_order_preserved(self):
        """Lists are not sorted."""
        assert orjson.loads(canonical_json_dumps({"items": [3, 1, 2]}))["items"] == [3, 1, 2]

    def test_unserializable(self):
        """Unknown objects raise TypeError."""
        with pytest.raises(TypeError):
            canonical_json_dumps({"x": object()})

    def test_indent(self):
        """Indented output spans several lines."""
        assert "\n" in canonical_json_dumps({"a": 1, "b": 2}, indent=True)


class TestIndexReport:
    """Tests for the run report."""

    def make_report(self, **overrides):
        fields = dict(
            root="/data",
            manifest_path="/data/.treeaudit.manifest",
            mode="full",
            started_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            completed_at=datetime(2026, 1, 1, 0, 0, 5, tzinfo=timezone.utc),
            counts={"checked": 4, "indexed": 2, "missing": 1},
            persisted=True,
        )
        fields.update(overrides)
        return IndexReport(**fields)

    def test_save_writes_sorted_json(self, tmp_path):
        """A saved report is indented, key-sorted JSON ending in a newline."""
        report = self.make_report(change_logs=["/data/.treeaudit-logs/treeaudit-x-new"])
        path = tmp_path / "reports" / "run.json"

        report.save(path)

        text = path.read_text(encoding="utf-8")
        assert text.endswith("}\n")
        data = orjson.loads(text)
        assert list(data) == sorted(data)
        assert data["counts"] == {"checked": 4, "indexed": 2, "missing": 1}
        assert data["started_at"].startswith("2026-01-01T00:00:00")
        assert IndexReport.model_validate(data) == report

    def test_json_is_deterministic(self):
        """Identical reports serialize identically."""
        assert self.make_report().to_json() == self.make_report().to_json()

    def test_frozen(self):
        """Reports are immutable."""
        report = self.make_report()
        with pytest.raises(ValidationError):
            report.mode = "fast"
