"""
Classification and grouping of staged changes.

This package classifies staged files into change types and partitions
them into atomic commit groups. See
:mod:`commit_splitter.grouping.change_classifier` and
:mod:`commit_splitter.grouping.partitioner` for details.
"""

from .change_types import ChangeType, Confidence  # noqa: F401
from .change_classifier import Classification, classify_change  # noqa: F401
from .group_model import CommitGroup, CommitMessage, CommitProposal, PlanResult  # noqa: F401
from .partitioner import OversizedGroupWarning, partition  # noqa: F401
