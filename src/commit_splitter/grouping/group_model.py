"""
Data models for commit grouping.

A :class:`CommitGroup` is a collection of staged files that should be
committed together. Each group has a dominant change type, a total line
delta and, once composed, a :class:`CommitMessage`. The orchestrator
hands :class:`CommitProposal` tuples to the Git-commit collaborator.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple

from commit_splitter.diff.diff_model import ChangedFile
from commit_splitter.grouping.change_classifier import Classification
from commit_splitter.grouping.change_types import ChangeType, priority_rank


@dataclass(frozen=True)
class CommitMessage:
    """A composed commit message.

    Attributes
    ----------
    header : str
        ``<glyph> <type>: <Description>``, at most 72 characters.
    body : str
        Optional body, separated from the header by a blank line.
    """

    header: str
    body: str = ""

    @property
    def text(self) -> str:
        if self.body:
            return f"{self.header}\n\n{self.body}"
        return self.header

    def __str__(self) -> str:
        return self.text


@dataclass
class CommitGroup:
    """Representation of a grouped commit.

    Attributes
    ----------
    category : ChangeType
        The core change type shared by every file in the group.
    classifications : List[Classification]
        Classified files of the group, in staging order.
    oversized : bool
        True when the group exceeds the large-change threshold and could
        not be split further.
    message : Optional[CommitMessage]
        Composed message, filled in by the orchestrator.
    """

    category: ChangeType
    classifications: List[Classification]
    oversized: bool = False
    message: Optional[CommitMessage] = None

    @property
    def files(self) -> Tuple[ChangedFile, ...]:
        return tuple(item.file for item in self.classifications)

    @property
    def paths(self) -> List[str]:
        return [item.path for item in self.classifications]

    @property
    def line_delta(self) -> int:
        return sum(item.file.line_delta for item in self.classifications)

    @property
    def change_type(self) -> ChangeType:
        """The dominant change type: most frequent, then highest priority."""
        counts = Counter(item.change_type for item in self.classifications)
        if not counts:
            return self.category
        return min(counts, key=lambda change_type: (-counts[change_type], priority_rank(change_type)))

    @property
    def concern(self) -> str:
        return self.change_type.concern


class CommitProposal(NamedTuple):
    """One commit for the Git-commit collaborator to create."""

    group: CommitGroup
    message: CommitMessage
    oversized: bool


@dataclass
class GroupFailure:
    """A group whose message could not be composed."""

    group: CommitGroup
    error: Exception


@dataclass
class PlanResult:
    """Outcome of one pipeline run.

    ``groups`` is the full partition in commit order, ``proposals`` are
    ready to commit and ``failures`` need a manual description before
    they can be committed.
    """

    groups: List[CommitGroup] = field(default_factory=list)
    proposals: List[CommitProposal] = field(default_factory=list)
    failures: List[GroupFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def oversized(self) -> List[CommitGroup]:
        return [proposal.group for proposal in self.proposals if proposal.oversized]
