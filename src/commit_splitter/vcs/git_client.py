"""
Git client implementation for commit_splitter.

This module wraps the Git operations the commit planner needs: listing
the staged files, reading their staged diffs and committing one group of
files at a time. All subprocess calls go through :meth:`GitClient._run`
so that unit tests can mock them easily.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


@dataclass
class StagedChange:
    """A file listed by ``git diff --cached --name-status``."""

    path: str
    status: str  # 'A' added, 'M' modified, 'D' deleted, 'R' renamed
    old_path: Optional[str] = None


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


class GitClient:
    """Client for interacting with a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = start.resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                return None
            current = current.parent

    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is True,
            or if Git is not installed.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            raise GitError("Git executable not found") from e

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    # ------------------------------------------------------------------
    # Staged changes
    # ------------------------------------------------------------------
    def get_staged_changes(self) -> List[StagedChange]:
        """List the staged files.

        Parses ``git diff --cached --name-status -M``. Each line is
        ``<status>\\t<path>`` or, for renames and copies,
        ``<status><score>\\t<old>\\t<new>``.

        Raises
        ------
        GitError
            If the git command fails.
        """
        result = self._run(["diff", "--cached", "--name-status", "-M"], check=True)
        changes = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            parts = line.split("\t")
            if len(parts) < 2:
                logger.debug("Skipping unparsable name-status line: %r", line)
                continue
            status = parts[0].strip()
            if status[:1] in {"R", "C"} and len(parts) >= 3:
                changes.append(StagedChange(path=parts[2], status=status[0], old_path=parts[1]))
            else:
                changes.append(StagedChange(path=parts[1], status=status[:1]))
        return changes

    def get_staged_diff(self, file_path: str, old_path: Optional[str] = None) -> str:
        """Return the staged unified diff of one file."""
        paths = [old_path, file_path] if old_path else [file_path]
        result = self._run(["diff", "--cached", "-M", "--"] + paths, check=True)
        return result.stdout

    # ------------------------------------------------------------------
    # Staging and committing
    # ------------------------------------------------------------------
    def save_index(self) -> str:
        """Write the current index to a tree object and return its id.

        The tree is the snapshot of what the user staged; groups are
        committed from it, never from the working tree.
        """
        result = self._run(["write-tree"], check=True)
        return result.stdout.strip()

    def restore_index(self, tree: str) -> None:
        """Replace the index with a tree saved by :meth:`save_index`."""
        self._run(["read-tree", tree], check=True)

    def reset_index(self) -> None:
        """Make the index match HEAD, leaving the working tree untouched."""
        head = self._run(["rev-parse", "--verify", "-q", "HEAD"], check=False)
        if head.returncode == 0:
            self._run(["read-tree", "HEAD"], check=True)
        else:
            # unborn branch: there is no HEAD to reset to
            self._run(["read-tree", "--empty"], check=True)

    def stage_from_tree(self, tree: str, files: Iterable[str]) -> None:
        """Copy the entries of ``files`` from ``tree`` into the index.

        Paths missing from ``tree`` (deletions, rename sources) are removed
        from the index.
        """
        paths = list(dict.fromkeys(files))
        if not paths:
            return
        self._run(["restore", "--staged", f"--source={tree}", "--"] + paths, check=True)

    def commit(self, message: str, no_verify: bool = False) -> None:
        """Create a commit from the index.

        Multi-line commit messages are supported. ``no_verify`` bypasses
        the pre-commit and commit-msg hooks.
        """
        args = ["commit", "-m", message]
        if no_verify:
            args.append("--no-verify")
        self._run(args, check=True)

    def commit_group(self, files: Iterable[str], message: str, no_verify: bool = False,
                     old_paths: Iterable[str] = (), index_tree: Optional[str] = None) -> None:
        """Commit exactly ``files`` (plus the sources of renames) as staged.

        The staged content comes from ``index_tree``, the index saved before
        the first group was committed; when omitted the current index is
        saved first. If any step fails the saved index is put back, so the
        other groups stay staged.
        """
        tree = index_tree or self.save_index()
        try:
            self.reset_index()
            self.stage_from_tree(tree, list(old_paths) + list(files))
            self.commit(message, no_verify=no_verify)
        except GitError:
            logger.debug("Restoring staged changes from tree %s", tree)
            self.restore_index(tree)
            raise
