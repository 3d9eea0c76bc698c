"""
Immutable snapshot of the staging area.

The diff model is the first stage of the pipeline. It receives the raw
staged file records produced by the Git collaborator (see
:mod:`commit_splitter.diff.diff_extractor`) and turns them into a tuple of
:class:`ChangedFile` objects. Everything downstream reads this snapshot;
nothing writes to it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Tuple


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class EmptyStagingError(Exception):
    """Raised when there is nothing staged to analyse."""

    def __init__(self, message: str = "No staged changes found. Stage files with 'git add' first.") -> None:
        super().__init__(message)


class InvalidRecordError(ValueError):
    """Raised when a staged file record cannot be turned into a ChangedFile."""

    pass


class UnmergedPathError(InvalidRecordError):
    """Raised for a path Git reports as unmerged (status ``U``)."""

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path
        where = f" ({path})" if path else ""
        super().__init__(f"Unmerged path in the staging area{where}; resolve merge conflicts first")


class FileStatus(str, Enum):
    """Status of a staged file."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"

    @classmethod
    def parse(cls, value: Any) -> "FileStatus":
        """Parse a status word or a Git name-status letter.

        ``None`` and the empty string are treated as ``modified``. Git
        similarity scores (``R087``) are accepted; copies count as added
        files and type changes as modifications.
        """
        if isinstance(value, cls):
            return value
        if value is None or str(value).strip() == "":
            return cls.MODIFIED
        text = str(value).strip()
        lowered = text.lower()
        for member in cls:
            if lowered == member.value:
                return member
        letter = text[0].upper()
        if letter == "U" and len(text) == 1:
            raise UnmergedPathError()
        mapping = {
            "A": cls.ADDED,
            "C": cls.ADDED,
            "M": cls.MODIFIED,
            "T": cls.MODIFIED,
            "D": cls.DELETED,
            "R": cls.RENAMED,
        }
        if letter in mapping and (len(text) == 1 or text[1:].isdigit()):
            return mapping[letter]
        raise InvalidRecordError(f"Unknown file status: {value!r}")


@dataclass(frozen=True)
class ChangedFile:
    """A single staged file.

    Attributes
    ----------
    path : str
        Repository-relative POSIX path of the file after the change.
    status : FileStatus
        How the file changed.
    added_lines : int
        Number of added lines.
    removed_lines : int
        Number of removed lines.
    hunks : Tuple[str, ...]
        The line-level edits of the file, in diff order.
    old_path : Optional[str]
        Previous path for renamed files.
    """

    path: str
    status: FileStatus
    added_lines: int = 0
    removed_lines: int = 0
    hunks: Tuple[str, ...] = ()
    old_path: Optional[str] = None

    @property
    def line_delta(self) -> int:
        return self.added_lines + self.removed_lines

    @property
    def hunk_text(self) -> str:
        return "\n".join(self.hunks)


def is_diff_header(line: str) -> bool:
    return line.startswith(("+++", "---", "diff --git", "index ", "@@", "new file mode", "deleted file mode",
                            "similarity index", "rename from", "rename to", "old mode", "new mode", "Binary files"))


def count_lines(hunk_lines: Iterable[str]) -> Tuple[int, int]:
    """Count added and removed lines in diff text.

    Text without any ``+``/``-`` markers is treated as free text: every
    non-empty line counts as added.
    """
    lines = [line for line in hunk_lines if line.strip()]
    added = sum(1 for line in lines if line.startswith("+") and not is_diff_header(line))
    removed = sum(1 for line in lines if line.startswith("-") and not is_diff_header(line))
    if added or removed:
        return added, removed
    free_text = [line for line in lines if not is_diff_header(line) and not line.startswith(" ")]
    return len(free_text), 0


def _field(record: Any, *names: str) -> Any:
    for name in names:
        if isinstance(record, Mapping):
            if name in record:
                return record[name]
        elif hasattr(record, name):
            return getattr(record, name)
    return None


def _normalise_path(path: str) -> str:
    cleaned = path.strip().replace("\\", "/")
    while cleaned.startswith("./"):
        cleaned = cleaned[2:]
    return cleaned


def _split_hunks(raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        return tuple(raw.splitlines())
    lines = []
    for chunk in raw:
        lines.extend(str(chunk).splitlines())
    return tuple(lines)


def to_changed_file(record: Any) -> ChangedFile:
    """Convert one staged record (mapping or object) into a ChangedFile."""
    path = _field(record, "path")
    if not path or not str(path).strip():
        raise InvalidRecordError(f"Staged record has no path: {record!r}")
    try:
        status = FileStatus.parse(_field(record, "status"))
    except UnmergedPathError as exc:
        raise UnmergedPathError(str(path).strip()) from exc
    hunks = _split_hunks(_field(record, "hunks", "hunk", "diff"))

    added = _field(record, "added", "added_lines")
    removed = _field(record, "removed", "removed_lines")
    if added is None or removed is None:
        counted_added, counted_removed = count_lines(hunks)
        added = counted_added if added is None else added
        removed = counted_removed if removed is None else removed
    if not isinstance(added, int) or not isinstance(removed, int) or added < 0 or removed < 0:
        raise InvalidRecordError(f"Line counts for {path!r} must be non-negative integers")

    old_path = _field(record, "old_path")
    return ChangedFile(
        path=_normalise_path(str(path)),
        status=status,
        added_lines=added,
        removed_lines=removed,
        hunks=hunks,
        old_path=_normalise_path(str(old_path)) if old_path else None,
    )


def build_snapshot(records: Optional[Iterable[Any]]) -> Tuple[ChangedFile, ...]:
    """Validate staged records and return the immutable snapshot.

    Parameters
    ----------
    records : Iterable
        Staged file records supplied by the Git collaborator. Each record
        is a mapping or an object exposing ``path``, ``status`` and
        ``hunks`` (or ``hunk``/``diff``); ``added``, ``removed`` and
        ``old_path`` are optional.

    Returns
    -------
    Tuple[ChangedFile, ...]
        The snapshot, in input order.

    Raises
    ------
    EmptyStagingError
        If no records were supplied.
    InvalidRecordError
        If a record is malformed or a path appears twice.
    """
    items = list(records or [])
    if not items:
        raise EmptyStagingError()

    snapshot = []
    seen = set()
    for record in items:
        changed = to_changed_file(record)
        if changed.path in seen:
            raise InvalidRecordError(f"Duplicate staged path: {changed.path}")
        seen.add(changed.path)
        snapshot.append(changed)

    logger.debug("Captured %d staged file(s)", len(snapshot))
    return tuple(snapshot)
