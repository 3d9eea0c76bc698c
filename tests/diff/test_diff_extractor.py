import unittest
from types import SimpleNamespace

from commit_splitter.diff.diff_extractor import extract_staged_records
from commit_splitter.diff.diff_model import FileStatus, build_snapshot
from commit_splitter.vcs.git_client import GitError, StagedChange


class DummyClient:
    def __init__(self, changes, diffs, failing=()):
        self.changes = changes
        self.diffs = diffs
        self.failing = set(failing)
        self.diff_calls = []

    def get_staged_changes(self):
        return self.changes

    def get_staged_diff(self, path, old_path=None):
        self.diff_calls.append((path, old_path))
        if path in self.failing:
            raise GitError("cannot diff")
        return self.diffs.get(path, "")


class TestExtractStagedRecords(unittest.TestCase):
    def test_builds_records_from_client(self) -> None:
        client = DummyClient(
            [StagedChange("a.py", "M"), StagedChange("new.py", "R", old_path="old.py")],
            {"a.py": "+x\n-y\n"},
        )
        records = extract_staged_records(client)
        self.assertEqual(records[0], {"path": "a.py", "status": "M", "hunks": "+x\n-y\n", "old_path": None})
        self.assertEqual(records[1]["old_path"], "old.py")
        self.assertIn(("new.py", "old.py"), client.diff_calls)

        snapshot = build_snapshot(records)
        self.assertEqual(snapshot[1].status, FileStatus.RENAMED)
        self.assertEqual(snapshot[0].line_delta, 2)

    def test_unreadable_diff_becomes_empty(self) -> None:
        client = DummyClient([StagedChange("logo.png", "A")], {}, failing={"logo.png"})
        records = extract_staged_records(client)
        self.assertEqual(records[0]["hunks"], "")

    def test_explicit_changes_skip_listing(self) -> None:
        client = DummyClient([], {"b.py": "+1"})
        records = extract_staged_records(client, [SimpleNamespace(path="b.py", status="A")])
        self.assertEqual([record["path"] for record in records], ["b.py"])

    def test_nothing_staged(self) -> None:
        self.assertEqual(extract_staged_records(DummyClient([], {})), [])


if __name__ == "__main__":
    unittest.main()
