"""End-to-end tests for the treeaudit CLI."""

import json

import pytest
import xxhash
from click.testing import CliRunner

import treeaudit.cli
import treeaudit.io.change_logs
from treeaudit.cli import main
from treeaudit.errors import IoFailureError

MANIFEST = ".treeaudit.manifest"
LOG_DIR = ".treeaudit-logs"


def write(root, rel, data):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def digest(data):
    return xxhash.xxh64(data).hexdigest()


def line(path, data):
    return f"{path} {len(data)} {digest(data)}\n"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def root(tmp_path):
    """Audit root with two files."""
    root = tmp_path / "root"
    write(root, "a.txt", b"hello")
    write(root, "sub/b.bin", b"\x00\x01\x02")
    return root


def invoke(runner, root, *args):
    return runner.invoke(main, ["-r", str(root), *args])


class TestIndex:
    """Tests for the index command."""

    def test_first_run_indexes_everything(self, runner, root):
        """A missing manifest is created with every file, sorted."""
        result = invoke(runner, root, "index")

        assert result.exit_code == 0, result.output
        assert result.stdout == ""
        assert (root / MANIFEST).read_text(encoding="utf-8") == (
            line("a.txt", b"hello") + line("sub/b.bin", b"\x00\x01\x02")
        )
        new_logs = list((root / LOG_DIR).glob("*-new"))
        assert len(new_logs) == 1
        assert new_logs[0].read_text(encoding="utf-8") == "a.txt\nsub/b.bin\n"
        assert not list((root / LOG_DIR).glob("*-backup"))

    def test_second_run_is_idempotent(self, runner, root):
        """An unchanged tree leaves the manifest byte-identical and writes no logs."""
        invoke(runner, root, "index")
        before = (root / MANIFEST).read_bytes()
        logs_before = sorted((root / LOG_DIR).iterdir())

        result = invoke(runner, root, "index")

        assert result.exit_code == 0, result.output
        assert "No changes" in result.stderr
        assert (root / MANIFEST).read_bytes() == before
        assert sorted((root / LOG_DIR).iterdir()) == logs_before

    def test_rename_is_detected(self, runner, root):
        """A moved file is recorded as a rename, not a delete plus a new file."""
        invoke(runner, root, "index")
        (root / "a.txt").rename(root / "c.txt")

        result = invoke(runner, root, "index")

        assert result.exit_code == 0, result.output
        content = (root / MANIFEST).read_text(encoding="utf-8")
        assert "a.txt" not in content
        assert line("c.txt", b"hello") in content
        moved = list((root / LOG_DIR).glob("*-moved"))
        assert moved[0].read_text(encoding="utf-8") == "a.txt\tc.txt\n"
        assert not list((root / LOG_DIR).glob("*-deleted"))

    def test_deleted_file_is_dropped(self, runner, root):
        """A vanished file leaves the manifest and lands in the deleted log."""
        invoke(runner, root, "index")
        (root / "sub" / "b.bin").unlink()

        result = invoke(runner, root, "index")

        assert result.exit_code == 0, result.output
        assert (root / MANIFEST).read_text(encoding="utf-8") == line("a.txt", b"hello")
        deleted = list((root / LOG_DIR).glob("*-deleted"))
        assert deleted[0].read_text(encoding="utf-8") == "sub/b.bin\n"
        backup = list((root / LOG_DIR).glob("*-backup"))
        assert line("sub/b.bin", b"\x00\x01\x02") in backup[0].read_text(encoding="utf-8")

    def test_dry_run_writes_nothing(self, runner, root):
        """--dry-run reports changes but leaves the disk alone."""
        result = invoke(runner, root, "index", "--dry-run")

        assert result.exit_code == 0, result.output
        assert "dry run" in result.stderr
        assert not (root / MANIFEST).exists()
        assert not (root / LOG_DIR).exists()

    def test_fast_mode_misses_same_size_edit(self, runner, root):
        """Fast mode compares sizes only; full mode catches the edit."""
        invoke(runner, root, "index")
        write(root, "a.txt", b"jello")

        fast = invoke(runner, root, "index", "--fast")
        assert fast.exit_code == 0, fast.output
        assert "No changes" in fast.stderr
        assert line("a.txt", b"hello") in (root / MANIFEST).read_text(encoding="utf-8")

        full = invoke(runner, root, "index")
        assert full.exit_code == 0, full.output
        assert line("a.txt", b"jello") in (root / MANIFEST).read_text(encoding="utf-8")
        modified = list((root / LOG_DIR).glob("*-modified"))
        assert modified[0].read_text(encoding="utf-8") == (
            f"a.txt {digest(b'hello')} {digest(b'jello')}\n"
        )

    def test_report(self, runner, root, tmp_path):
        """--report writes a JSON run summary."""
        report = tmp_path / "out" / "report.json"

        result = invoke(runner, root, "index", "--report", str(report))

        assert result.exit_code == 0, result.output
        data = json.loads(report.read_text(encoding="utf-8"))
        assert data["counts"]["indexed"] == 2
        assert data["mode"] == "full"
        assert data["persisted"] is True
        assert len(data["change_logs"]) == 1

    def test_corrupt_manifest_aborts(self, runner, root):
        """A malformed line exits 3 and leaves the manifest untouched."""
        (root / MANIFEST).write_text("a.txt 5\n", encoding="utf-8")

        result = invoke(runner, root, "index")

        assert result.exit_code == 3
        assert "manifest corrupt" in result.stderr
        assert (root / MANIFEST).read_text(encoding="utf-8") == "a.txt 5\n"
        assert not (root / LOG_DIR).exists()

    def test_named_manifest_must_exist(self, runner, root, tmp_path):
        """An explicitly named manifest that does not exist is a usage error."""
        result = invoke(runner, root, "index", str(tmp_path / "nope.manifest"))
        assert result.exit_code == 2

    def test_config_exclude(self, runner, root):
        """Root config excludes patterns and is never indexed itself."""
        (root / ".treeaudit.yaml").write_text("exclude:\n  - '*.tmp'\n", encoding="utf-8")
        write(root, "junk.tmp", b"x")

        result = invoke(runner, root, "index")

        assert result.exit_code == 0, result.output
        content = (root / MANIFEST).read_text(encoding="utf-8")
        assert "junk.tmp" not in content
        assert ".treeaudit.yaml" not in content

    @pytest.mark.parametrize("name", ["a\x0cb.txt", "a\u2028b.txt", "a\x85b.txt"])
    def test_line_separator_names_reindex_cleanly(self, runner, root, name):
        """Names holding non-LF separators round-trip through the manifest."""
        write(root, name, b"odd")
        assert invoke(runner, root, "index").exit_code == 0

        result = invoke(runner, root, "index")

        assert result.exit_code == 0, result.output
        assert "No changes" in result.stderr
        assert line(name, b"odd") in (root / MANIFEST).read_text(encoding="utf-8")

    def test_same_stamp_runs_keep_every_log(self, runner, root, monkeypatch):
        """Runs sharing a timestamp get distinct log names."""
        monkeypatch.setattr(
            treeaudit.io.change_logs, "run_stamp", lambda now=None: "20260101T000000000000Z"
        )

        invoke(runner, root, "index")
        write(root, "c.txt", b"added")
        invoke(runner, root, "index")
        (root / "c.txt").unlink()
        invoke(runner, root, "index")

        logs = root / LOG_DIR
        assert sorted(p.name for p in logs.glob("*-new")) == [
            "treeaudit-20260101T000000000000Z-1-new",
            "treeaudit-20260101T000000000000Z-new",
        ]
        assert len(list(logs.glob("*-backup"))) == 2
        assert len(list(logs.glob("*-deleted"))) == 1

    def test_failed_manifest_write_leaves_no_logs(self, runner, root, monkeypatch):
        """Logs are only kept for runs whose manifest was saved."""

        def fail(manifest, path):
            raise IoFailureError(path, OSError(28, "No space left on device"))

        monkeypatch.setattr(treeaudit.cli, "persist_manifest", fail)

        result = invoke(runner, root, "index")

        assert result.exit_code == 4
        assert "I/O failure" in result.stderr
        assert not list((root / LOG_DIR).glob("*"))

    def test_invalid_config_is_usage_error(self, runner, root):
        (root / ".treeaudit.yaml").write_text("hash_algorithm: md5\n", encoding="utf-8")
        result = invoke(runner, root, "index")
        assert result.exit_code == 2


class TestFind:
    """Tests for the find command."""

    def test_find_is_name_blind(self, runner, tmp_path):
        """Renamed copies count as indexed; only new content is listed."""
        archive = tmp_path / "archive"
        write(archive, "photos/img1.jpg", b"image bytes")
        assert invoke(runner, archive, "index").exit_code == 0

        incoming = tmp_path / "incoming"
        write(incoming, "import/img1_copy.jpg", b"image bytes")
        write(incoming, "import/img2.jpg", b"other image")

        result = invoke(runner, incoming, "find", str(archive / MANIFEST))

        assert result.exit_code == 0, result.output
        assert result.stdout == "import/img2.jpg\n"
        assert "1 of 2 files" in result.stderr

    def test_find_requires_manifest(self, runner, root):
        result = invoke(runner, root, "find")
        assert result.exit_code == 2


class TestDedup:
    """Tests for the dedup command."""

    def test_dedup_lists_redundant_copies(self, runner, tmp_path):
        """The first copy is kept; the rest are listed with the savings."""
        root = tmp_path / "root"
        for name in ["x1", "x2", "x3"]:
            write(root, name, b"12345")
        write(root, "y", b"abcde")
        assert invoke(runner, root, "index").exit_code == 0

        result = invoke(runner, root, "dedup")

        assert result.exit_code == 0, result.output
        assert result.stdout == "x2\nx3\n"
        assert "1 duplicate sets, 2 redundant files, 10 bytes" in result.stderr
        assert "keeping x1" in result.stderr

    def test_no_duplicates(self, runner, root):
        invoke(runner, root, "index")
        result = invoke(runner, root, "dedup")
        assert result.exit_code == 0
        assert result.stdout == ""

    def test_empty_root_explains_missing_manifest(self, runner, tmp_path):
        """Indexing an empty root writes nothing; dedup says why."""
        empty = tmp_path / "empty"
        empty.mkdir()
        assert invoke(runner, empty, "index").exit_code == 0

        result = invoke(runner, empty, "dedup")

        assert result.exit_code == 2
        assert "no files" in result.stderr

    def test_dedup_requires_manifest(self, runner, root):
        """Without a manifest there is nothing to examine."""
        result = invoke(runner, root, "dedup")
        assert result.exit_code == 2
        assert "treeaudit index" in result.stderr
