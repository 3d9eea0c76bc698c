"""
End-to-end commit planning.

:func:`plan_commits` runs the whole pipeline over one staging snapshot:

  records -> snapshot -> classifications -> groups -> messages

and returns a :class:`~commit_splitter.grouping.group_model.PlanResult`.
The pipeline is a pure function of its input; nothing is written to the
repository here. Creating the commits is left to the Git-commit
collaborator (see :meth:`commit_splitter.vcs.git_client.GitClient.commit_group`).
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from commit_splitter.diff.diff_model import EmptyStagingError, InvalidRecordError, build_snapshot
from commit_splitter.grouping.change_classifier import classify_all
from commit_splitter.grouping.group_model import CommitProposal, GroupFailure, PlanResult
from commit_splitter.grouping.partitioner import OversizedGroupWarning, partition
from commit_splitter.message.composer import MAX_HEADER_LENGTH, UncomposableMessageError, compose_message


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


def plan_commits(
    records: Optional[Iterable[Any]],
    large_threshold: Optional[int] = None,
    max_header_length: int = MAX_HEADER_LENGTH,
    container_dirs: Optional[Iterable[str]] = None,
    fallback_description: Optional[str] = None,
) -> PlanResult:
    """Plan atomic commits for a set of staged file records.

    Parameters
    ----------
    records : Iterable
        Staged file records (see :func:`commit_splitter.diff.diff_model.build_snapshot`).
    large_threshold : int, optional
        Line delta above which a group is split (default 200).
    max_header_length : int
        Header length limit (at most 72).
    container_dirs : Iterable[str], optional
        Directory names whose children are independent roots.
    fallback_description : str, optional
        Description used for groups whose message cannot be derived.
        Without it such groups are reported in ``PlanResult.failures``.

    Returns
    -------
    PlanResult
        Groups in commit order with their proposals and failures.

    Raises
    ------
    EmptyStagingError
        If nothing is staged. Raised before any analysis runs.
    InvalidRecordError
        If a staged record is malformed, including unmerged paths
        (:class:`~commit_splitter.diff.diff_model.UnmergedPathError`).
    """
    snapshot = build_snapshot(records)
    classifications = classify_all(snapshot, large_threshold)
    groups = partition(classifications, large_threshold=large_threshold, container_dirs=container_dirs)

    result = PlanResult(groups=groups)
    for group in groups:
        try:
            try:
                message = compose_message(group, max_length=max_header_length)
            except UncomposableMessageError:
                if not fallback_description:
                    raise
                logger.info("Using fallback description for %s", ", ".join(group.paths))
                message = compose_message(group, description=fallback_description, max_length=max_header_length)
        except UncomposableMessageError as exc:
            logger.warning("%s", exc)
            result.failures.append(GroupFailure(group=group, error=exc))
            continue

        group.message = message
        if group.oversized:
            warnings.warn(
                OversizedGroupWarning(
                    f"{message.header!r} changes {group.line_delta} lines and could not be split"
                ),
                stacklevel=2,
            )
        result.proposals.append(CommitProposal(group=group, message=message, oversized=group.oversized))

    logger.debug(
        "Planned %d commit(s) for %d file(s); %d need a manual description",
        len(result.proposals),
        len(snapshot),
        len(result.failures),
    )
    return result


@dataclass
class BatchOutcome:
    """Result of planning one staging set within a batch."""

    index: int
    result: Optional[PlanResult] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None and self.result.ok


def plan_batches(record_sets: Iterable[Optional[Iterable[Any]]], **options: Any) -> List[BatchOutcome]:
    """Plan several independent staging sets.

    Each set is planned on its own; an empty set or a malformed record
    (for example an unmerged path) is reported in its outcome instead of
    aborting the batch.
    """
    outcomes = []
    for index, records in enumerate(record_sets):
        try:
            outcomes.append(BatchOutcome(index=index, result=plan_commits(records, **options)))
        except EmptyStagingError as exc:
            logger.info("Staging set %d is empty", index)
            outcomes.append(BatchOutcome(index=index, error=exc))
        except InvalidRecordError as exc:
            logger.warning("Staging set %d cannot be planned: %s", index, exc)
            outcomes.append(BatchOutcome(index=index, error=exc))
    return outcomes
