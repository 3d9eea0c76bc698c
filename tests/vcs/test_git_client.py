import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

from commit_splitter.vcs.git_client import GitClient, GitError, StagedChange


class DummyProc(SimpleNamespace):
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""


class TestGitClient(unittest.TestCase):
    def test_get_staged_changes_parses_name_status(self) -> None:
        output = (
            "M\tmodified_file.py\n"
            "A\tadded_file.py\n"
            "D\tdeleted_file.py\n"
            "R087\tsrc/old_name.py\tsrc/new_name.py\n"
            "C100\tbase.cfg\tcopy.cfg\n"
            "\n"
        )

        def fake_run(self, args, check=True):
            if args[:2] == ["diff", "--cached"] and "--name-status" in args:
                return DummyProc(returncode=0, stdout=output, stderr="")
            raise AssertionError(f"Unexpected git command: {args}")

        with patch.object(GitClient, "_run", autospec=True) as mock_run:
            mock_run.side_effect = fake_run
            changes = GitClient(Path("/repo")).get_staged_changes()

        self.assertEqual(
            changes,
            [
                StagedChange(path="modified_file.py", status="M"),
                StagedChange(path="added_file.py", status="A"),
                StagedChange(path="deleted_file.py", status="D"),
                StagedChange(path="src/new_name.py", status="R", old_path="src/old_name.py"),
                StagedChange(path="copy.cfg", status="C", old_path="base.cfg"),
            ],
        )

    def test_get_staged_diff_includes_rename_source(self) -> None:
        calls = []

        def fake_run(self, args, check=True):
            calls.append(args)
            return DummyProc(returncode=0, stdout="+x\n", stderr="")

        with patch.object(GitClient, "_run", autospec=True) as mock_run:
            mock_run.side_effect = fake_run
            client = GitClient(Path("/repo"))
            self.assertEqual(client.get_staged_diff("a.py"), "+x\n")
            client.get_staged_diff("new.py", old_path="old.py")

        self.assertEqual(calls[0], ["diff", "--cached", "-M", "--", "a.py"])
        self.assertEqual(calls[1], ["diff", "--cached", "-M", "--", "old.py", "new.py"])

    def test_reset_index_with_and_without_head(self) -> None:
        for head_code, expected in ((0, ["read-tree", "HEAD"]), (1, ["read-tree", "--empty"])):
            calls = []

            def fake_run(self, args, check=True):
                calls.append(args)
                if args[0] == "rev-parse":
                    return DummyProc(returncode=head_code, stdout="", stderr="")
                return DummyProc(returncode=0, stdout="", stderr="")

            with self.subTest(head_code=head_code):
                with patch.object(GitClient, "_run", autospec=True) as mock_run:
                    mock_run.side_effect = fake_run
                    GitClient(Path("/repo")).reset_index()
                self.assertEqual(calls[-1], expected)

    def test_stage_from_tree_uses_saved_tree(self) -> None:
        calls = []

        def fake_run(self, args, check=True):
            calls.append(args)
            return DummyProc(returncode=0, stdout="", stderr="")

        with patch.object(GitClient, "_run", autospec=True) as mock_run:
            mock_run.side_effect = fake_run
            client = GitClient(Path("/repo"))
            client.stage_from_tree("abc123", ["a.py", "b.py", "a.py"])
            client.stage_from_tree("abc123", [])
        self.assertEqual(calls, [["restore", "--staged", "--source=abc123", "--", "a.py", "b.py"]])

    def test_commit_passes_no_verify(self) -> None:
        calls = []

        def fake_run(self, args, check=True):
            calls.append(args)
            return DummyProc(returncode=0, stdout="", stderr="")

        with patch.object(GitClient, "_run", autospec=True) as mock_run:
            mock_run.side_effect = fake_run
            client = GitClient(Path("/repo"))
            client.commit("📝 docs: Add install section")
            client.commit("🐛 fix: Fix rounding\n\n- a.py", no_verify=True)

        self.assertEqual(calls[0], ["commit", "-m", "📝 docs: Add install section"])
        self.assertEqual(calls[1], ["commit", "-m", "🐛 fix: Fix rounding\n\n- a.py", "--no-verify"])

    def test_commit_group_commits_from_saved_tree(self) -> None:
        calls = []

        def fake_run(self, args, check=True):
            calls.append(args)
            return DummyProc(returncode=0, stdout="", stderr="")

        with patch.object(GitClient, "_run", autospec=True) as mock_run:
            mock_run.side_effect = fake_run
            client = GitClient(Path("/repo"))
            client.commit_group(["new.py", "b.py"], "♻️ refactor: Move helpers", old_paths=["old.py"],
                                index_tree="abc123")

        self.assertEqual(calls[0][0], "rev-parse")
        self.assertEqual(calls[1], ["read-tree", "HEAD"])
        self.assertEqual(calls[2], ["restore", "--staged", "--source=abc123", "--", "old.py", "new.py", "b.py"])
        self.assertEqual(calls[3], ["commit", "-m", "♻️ refactor: Move helpers"])
        self.assertFalse(any(args[0] == "add" for args in calls))

    def test_commit_group_saves_index_when_no_tree_given(self) -> None:
        calls = []

        def fake_run(self, args, check=True):
            calls.append(args)
            if args[0] == "write-tree":
                return DummyProc(returncode=0, stdout="feed42\n", stderr="")
            return DummyProc(returncode=0, stdout="", stderr="")

        with patch.object(GitClient, "_run", autospec=True) as mock_run:
            mock_run.side_effect = fake_run
            GitClient(Path("/repo")).commit_group(["a.py"], "msg")

        self.assertEqual(calls[0], ["write-tree"])
        self.assertIn(["restore", "--staged", "--source=feed42", "--", "a.py"], calls)

    def test_failed_commit_restores_index(self) -> None:
        calls = []

        def fake_run(self, args, check=True):
            calls.append(args)
            if args[0] == "commit":
                raise GitError("pre-commit hook failed")
            return DummyProc(returncode=0, stdout="", stderr="")

        with patch.object(GitClient, "_run", autospec=True) as mock_run:
            mock_run.side_effect = fake_run
            with self.assertRaises(GitError):
                GitClient(Path("/repo")).commit_group(["a.py"], "msg", index_tree="abc123")

        self.assertEqual(calls[-1], ["read-tree", "abc123"])

    def test_run_raises_git_error_on_failure(self) -> None:
        failed = DummyProc(returncode=128, stdout="", stderr="fatal: not a git repository")
        with patch("commit_splitter.vcs.git_client.subprocess.run", return_value=failed):
            with self.assertRaises(GitError) as ctx:
                GitClient(Path("/repo")).get_staged_changes()
        self.assertIn("not a git repository", str(ctx.exception))

    def test_run_raises_git_error_without_git(self) -> None:
        with patch("commit_splitter.vcs.git_client.subprocess.run", side_effect=FileNotFoundError):
            with self.assertRaises(GitError):
                GitClient(Path("/repo")).get_staged_changes()

    def test_find_repo_root(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            (root / ".git").mkdir()
            nested = root / "src" / "pkg"
            nested.mkdir(parents=True)
            self.assertEqual(GitClient.find_repo_root(nested), root)

    def test_find_repo_root_outside_repository(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with patch("pathlib.Path.exists", return_value=False):
                self.assertIsNone(GitClient.find_repo_root(Path(tmp)))


@unittest.skipUnless(shutil.which("git"), "git is not installed")
class TestGitClientRepository(unittest.TestCase):
    """Runs the staging and commit operations against a real repository."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name).resolve()
        self.git("init", "-q")
        self.git("config", "user.name", "Test User")
        self.git("config", "user.email", "test@example.com")
        self.git("config", "commit.gpgsign", "false")
        self.git("config", "core.hooksPath", ".git/hooks")
        self.write("a.py", "x = 1\n")
        self.write("b.md", "# Title\n")
        self.git("add", "-A")
        self.git("commit", "-q", "-m", "initial")
        self.client = GitClient(self.root)

    def git(self, *args: str) -> str:
        result = subprocess.run(["git"] + list(args), cwd=self.root, check=True,
                                stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        return result.stdout

    def write(self, name: str, content: str) -> None:
        (self.root / name).write_text(content, encoding="utf-8")

    def staged_names(self):
        return self.git("diff", "--cached", "--name-only").split()

    def test_unstaged_edits_stay_out_of_the_commit(self) -> None:
        self.write("a.py", "x = 2\n")
        self.git("add", "a.py")
        self.write("a.py", "x = 2\nUNSTAGED = 1\n")

        self.client.commit_group(["a.py"], "🐛 fix: Fix x")

        self.assertEqual(self.git("show", "HEAD:a.py"), "x = 2\n")
        self.assertEqual((self.root / "a.py").read_text(encoding="utf-8"), "x = 2\nUNSTAGED = 1\n")
        self.assertEqual(self.staged_names(), [])

    def test_groups_commit_in_turn_and_leftovers_stay_staged(self) -> None:
        self.write("a.py", "x = 2\n")
        self.write("b.md", "# Title\n\nMore.\n")
        self.write("c.txt", "new\n")
        self.git("add", "-A")
        tree = self.client.save_index()

        self.client.commit_group(["b.md"], "📝 docs: Update title", index_tree=tree)
        self.client.commit_group(["a.py"], "🐛 fix: Fix x", index_tree=tree)
        self.client.stage_from_tree(tree, ["c.txt"])

        self.assertEqual(self.git("log", "--format=%s", "-2").splitlines(), ["🐛 fix: Fix x", "📝 docs: Update title"])
        self.assertEqual(self.git("show", "--name-only", "--format=", "HEAD").split(), ["a.py"])
        self.assertEqual(self.staged_names(), ["c.txt"])

    def test_rename_commits_source_removal(self) -> None:
        self.git("mv", "a.py", "renamed.py")
        self.client.commit_group(["renamed.py"], "♻️ refactor: Move a", old_paths=["a.py"])
        self.assertEqual(sorted(self.git("ls-tree", "--name-only", "HEAD").split()), ["b.md", "renamed.py"])
        self.assertEqual(self.staged_names(), [])

    def test_rejected_commit_keeps_everything_staged(self) -> None:
        self.write("a.py", "x = 2\n")
        self.write("b.md", "# Title\n\nMore.\n")
        self.git("add", "-A")
        hook = self.root / ".git" / "hooks" / "pre-commit"
        hook.parent.mkdir(parents=True, exist_ok=True)
        hook.write_text("#!/bin/sh\nexit 1\n", encoding="utf-8")
        hook.chmod(0o755)
        head = self.git("rev-parse", "HEAD")

        with self.assertRaises(GitError):
            self.client.commit_group(["b.md"], "📝 docs: Update title")

        self.assertEqual(self.git("rev-parse", "HEAD"), head)
        self.assertEqual(sorted(self.staged_names()), ["a.py", "b.md"])

    def test_no_verify_skips_rejecting_hook(self) -> None:
        self.write("b.md", "# Title\n\nMore.\n")
        self.git("add", "b.md")
        hook = self.root / ".git" / "hooks" / "pre-commit"
        hook.parent.mkdir(parents=True, exist_ok=True)
        hook.write_text("#!/bin/sh\nexit 1\n", encoding="utf-8")
        hook.chmod(0o755)

        self.client.commit_group(["b.md"], "📝 docs: Update title", no_verify=True)
        self.assertEqual(self.git("log", "--format=%s", "-1").strip(), "📝 docs: Update title")


if __name__ == "__main__":
    unittest.main()
