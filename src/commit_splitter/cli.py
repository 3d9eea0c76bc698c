"""
Command line interface for the commit_splitter tool.

This module defines the ``main`` command group used as the entry point
of the ``commitsplit`` executable and its single ``commit`` subcommand.
``commit`` reads the staged changes, plans atomic commits, lets the user
review each proposal and finally creates the commits in order of
ascending risk.
"""

from __future__ import annotations

import logging
import time
import warnings
from pathlib import Path
from typing import List, Optional, Tuple

import click

from commit_splitter import __version__
from commit_splitter.config.loader import ConfigError, load_config
from commit_splitter.diff.diff_extractor import extract_staged_records
from commit_splitter.diff.diff_model import (
    EmptyStagingError,
    FileStatus,
    InvalidRecordError,
    UnmergedPathError,
)
from commit_splitter.grouping.group_model import CommitGroup, CommitMessage
from commit_splitter.grouping.partitioner import OversizedGroupWarning
from commit_splitter.message.composer import UncomposableMessageError, compose_message
from commit_splitter.pipeline import plan_commits
from commit_splitter.vcs.git_client import GitClient, GitError

# Create a module-level logger. Attach a null handler and disable
# propagation until the CLI configures logging.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_EMPTY_STAGING = 1
EXIT_UNCOMPOSABLE = 2
EXIT_NO_REPO = 3
EXIT_CONFIG_ERROR = 4
EXIT_VCS_FAILURE = 5
EXIT_ALL_DECLINED = 6
EXIT_GENERIC_ERROR = 7


# ---------------------------------------------------------------------------
# Progress and status display utilities
# ---------------------------------------------------------------------------

class ProgressIndicator:
    """Simple progress indicator for user feedback."""

    def __init__(self, message: str):
        self.message = message
        self.start_time = 0.0

    def __enter__(self):
        self.start_time = time.time()
        click.echo(f"→ {self.message}...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            elapsed = time.time() - self.start_time
            click.echo(f"  ✓ Done ({elapsed:.1f}s)")
        return False


def print_step(step_num: int, total_steps: int, message: str):
    """Print a step indicator."""
    click.echo(f"\n{'=' * 60}")
    click.echo(f"Step {step_num}/{total_steps}: {message}")
    click.echo(f"{'=' * 60}")


def print_info(message: str, indent: int = 0):
    click.echo(f"{'  ' * indent}ℹ {message}")


def print_success(message: str, indent: int = 0):
    click.echo(f"{'  ' * indent}✓ {message}")


def print_warning(message: str, indent: int = 0):
    click.echo(f"{'  ' * indent}⚠ {message}")


def print_error(message: str, indent: int = 0):
    click.echo(f"{'  ' * indent}✗ {message}", err=True)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def show_group(group: CommitGroup, group_num: int, total_groups: int, message: Optional[CommitMessage]) -> None:
    """Print one commit group and its proposed header."""
    click.echo(f"\n{'─' * 60}")
    click.echo(f"📦 Commit Group {group_num}/{total_groups}")
    click.echo(f"{'─' * 60}")
    click.echo(f"\n🏷️  Type: {click.style(group.change_type.value, fg='cyan', bold=True)}"
               f"  ({group.line_delta} changed lines)")
    if group.oversized:
        print_warning("Oversized: this change is larger than the split threshold; review it manually", indent=1)

    click.echo(f"\n📄 Files ({len(group.files)}):")
    for changed in group.files:
        click.echo(f"   • {changed.path}")

    if message is not None:
        click.echo("\n💬 Proposed header:")
        click.echo(f"   {message.header}")


def prompt_user(message: CommitMessage) -> Optional[str]:
    """Ask whether to accept, edit or decline a proposal.

    Returns
    -------
    Optional[str]
        The final commit message, or ``None`` if the group is declined.
    """
    choice = click.prompt(
        "   Choose action",
        type=click.Choice(["A", "E", "D"], case_sensitive=False),
        default="A",
        show_choices=True,
        show_default=True,
    ).strip().lower()

    if choice == "a":
        print_success("Accepted commit group")
        return message.text

    if choice == "d":
        print_warning("Declined commit group")
        return None

    edited = click.edit(message.text)
    if edited is None:
        # No editor available or the file was not saved
        header = click.prompt("   New header", default=message.header).strip()
        edited = f"{header}\n\n{message.body}" if message.body else header
    edited = edited.strip()
    if edited:
        print_success("Message edited successfully")
        return edited
    print_warning("Empty message, using original")
    return message.text


def prompt_description(group: CommitGroup) -> Optional[CommitMessage]:
    """Ask for a manual description for a group that could not be described."""
    click.echo("\n   💡 No description could be derived for this group.")
    while True:
        description = click.prompt("   Description (leave empty to skip)", default="", show_default=False).strip()
        if not description:
            print_warning("Skipped commit group")
            return None
        try:
            return compose_message(group, description=description)
        except UncomposableMessageError as exc:
            print_error(str(exc))


def _old_paths(group: CommitGroup) -> List[str]:
    return [changed.old_path for changed in group.files
            if changed.status is FileStatus.RENAMED and changed.old_path]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="commitsplit")
def main(verbose: bool) -> None:
    """Split staged changes into atomic, well-labelled commits."""
    # force=True so that handlers are reconfigured on every invocation (tests)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        force=True,
    )
    if verbose:
        # module loggers stay silent until asked for debug output
        for name in list(logging.root.manager.loggerDict):
            if name.startswith("commit_splitter"):
                logging.getLogger(name).propagate = True


@main.command("commit")
@click.option("--no-verify", "no_verify", is_flag=True, help="Bypass pre-commit and commit-msg hooks.")
@click.option("--yes", "yes", is_flag=True, help="Accept all proposed commits without prompting.")
@click.option("--dry-run", "dry_run", is_flag=True, help="Show the plan without creating commits.")
@click.option("--description", "description", default=None,
              help="Fallback description for groups whose message cannot be derived.")
def commit(no_verify: bool, yes: bool, dry_run: bool, description: Optional[str]) -> None:
    """Plan and create atomic commits from the staged changes."""
    total_steps = 5
    ctx = click.get_current_context()

    try:
        # Step 1: Detect repository
        print_step(1, total_steps, "Detecting Repository")
        repo_root = GitClient.find_repo_root(Path.cwd())
        if repo_root is None:
            print_error("Current directory is not inside a Git repository.")
            raise click.exceptions.Exit(EXIT_NO_REPO)
        print_success(f"Found Git repository at: {repo_root}")

        try:
            config = load_config(repo_root)
        except ConfigError as exc:
            print_error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
        no_verify = no_verify or config["no_verify"]

        # Step 2: Read staged changes
        print_step(2, total_steps, "Reading Staged Changes")
        client = GitClient(repo_root)
        try:
            with ProgressIndicator("Reading staged files and diffs"):
                records = extract_staged_records(client)
        except GitError as exc:
            print_error(f"Git error: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)

        # Step 3: Plan commits
        print_step(3, total_steps, "Planning Commits")
        try:
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always", OversizedGroupWarning)
                result = plan_commits(
                    records,
                    large_threshold=config["large_threshold"],
                    max_header_length=config["max_header_length"],
                    container_dirs=config["container_dirs"],
                    fallback_description=description,
                )
        except EmptyStagingError as exc:
            print_warning(str(exc))
            raise click.exceptions.Exit(EXIT_EMPTY_STAGING)
        except UnmergedPathError as exc:
            print_error(str(exc))
            print_info("Resolve the conflicts and stage the result, then run commitsplit again.")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)
        except InvalidRecordError as exc:
            print_error(f"Cannot read the staged changes: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)

        print_success(f"Planned {_plural(len(result.groups), 'commit group')} "
                      f"for {_plural(len(records), 'staged file')}")
        for warning in caught:
            print_warning(str(warning.message), indent=1)

        # Step 4: Review
        print_step(4, total_steps, "Review")
        accepted: List[Tuple[CommitGroup, str]] = []
        skipped: List[CommitGroup] = []
        unresolved: List[CommitGroup] = []

        for idx, group in enumerate(result.groups, start=1):
            message = group.message
            show_group(group, idx, len(result.groups), message)
            if message is None:
                if yes or dry_run:
                    print_warning("Needs a manual description (use --description)", indent=1)
                    unresolved.append(group)
                    continue
                message = prompt_description(group)
                if message is None:
                    unresolved.append(group)
                    continue
                click.echo(f"   {message.header}")
            if yes or dry_run:
                accepted.append((group, message.text))
                continue
            text = prompt_user(message)
            if text is None:
                skipped.append(group)
            else:
                accepted.append((group, text))

        if dry_run:
            print_info("Dry run: no commits were created")
            raise click.exceptions.Exit(EXIT_UNCOMPOSABLE if unresolved else EXIT_SUCCESS)

        if not accepted:
            if unresolved:
                print_error("No commit group has a usable message; supply one with --description.")
                raise click.exceptions.Exit(EXIT_UNCOMPOSABLE)
            print_warning("All commit groups were declined; nothing committed.")
            raise click.exceptions.Exit(EXIT_ALL_DECLINED)

        # Step 5: Commit
        print_step(5, total_steps, "Committing")
        if no_verify:
            print_info("Commit hooks are bypassed (--no-verify)")
        try:
            index_tree = client.save_index()
        except GitError as exc:
            print_error(f"Failed to save the staged changes: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)
        for idx, (group, text) in enumerate(accepted, start=1):
            try:
                with ProgressIndicator(f"Committing group {idx}/{len(accepted)}: [{group.change_type.value}]"):
                    client.commit_group(group.paths, text, no_verify=no_verify, old_paths=_old_paths(group),
                                        index_tree=index_tree)
            except GitError as exc:
                print_error(f"Failed to commit {', '.join(group.paths)}: {exc}")
                print_info("Remaining changes are still staged")
                raise click.exceptions.Exit(EXIT_VCS_FAILURE)
            print_success(text.splitlines()[0])

        leftover = skipped + unresolved
        if leftover:
            try:
                leftover_paths = [path for group in leftover for path in _old_paths(group) + group.paths]
                client.stage_from_tree(index_tree, leftover_paths)
            except GitError as exc:
                print_error(f"Failed to restage remaining files: {exc}")
                raise click.exceptions.Exit(EXIT_VCS_FAILURE)

        click.echo(f"\n{'=' * 60}")
        click.echo("✨ Summary")
        click.echo(f"{'=' * 60}\n")
        click.echo(f"  ✓ Committed: {_plural(len(accepted), 'group')}")
        click.echo(f"  ✓ Files: {sum(len(group.files) for group, _ in accepted)}")
        if skipped:
            click.echo(f"  ⚠ Declined: {_plural(len(skipped), 'group')} (left staged)")
        if unresolved:
            click.echo(f"  ⚠ Needs description: {_plural(len(unresolved), 'group')} (left staged)")
            raise click.exceptions.Exit(EXIT_UNCOMPOSABLE)

        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        raise
    except click.exceptions.Abort:
        raise
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)
