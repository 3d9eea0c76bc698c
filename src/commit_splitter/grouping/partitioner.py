"""
Partition classified files into atomic commit groups.

Files are grouped by change category, then split until each group holds
a single concern family, a single independent directory root and, where
possible, no more than ``large_threshold`` changed lines. The result is
a total, disjoint cover of the input ordered by ascending risk, so that
low-risk commits are created first and risky ones can be aborted on
their own.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from commit_splitter.grouping.change_classifier import Classification
from commit_splitter.grouping.change_types import ChangeType
from commit_splitter.grouping.feature_extractor import LARGE_THRESHOLD
from commit_splitter.grouping.group_model import CommitGroup


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# Directories that hold several independent features. Their immediate
# children are treated as separate roots.
DEFAULT_CONTAINER_DIRS = frozenset({
    "src", "lib", "libs", "app", "apps", "packages", "services", "modules",
    "pkg", "internal", "cmd", "components", "plugins",
})


class OversizedGroupWarning(UserWarning):
    """Issued when an unsplittable group exceeds the large-change threshold."""

    pass


def _directories(path: str) -> List[str]:
    return path.split("/")[:-1]


def root_of(path: str, container_dirs: Iterable[str] = DEFAULT_CONTAINER_DIRS) -> str:
    """Return the independent root directory of ``path``.

    Files at the repository root have the empty root.
    """
    dirs = _directories(path)
    if not dirs:
        return ""
    if dirs[0] in set(container_dirs) and len(dirs) >= 2:
        return "/".join(dirs[:2])
    return dirs[0]


def _delta(items: Sequence[Tuple[int, Classification]]) -> int:
    return sum(item.file.line_delta for _, item in items)


def _common_dirs(items: Sequence[Tuple[int, Classification]]) -> List[str]:
    dir_lists = [_directories(item.path) for _, item in items]
    common: List[str] = []
    for segments in zip(*dir_lists):
        if len(set(segments)) != 1:
            break
        common.append(segments[0])
    return common


def split_by_size(
    items: Sequence[Tuple[int, Classification]],
    threshold: int,
) -> List[List[Tuple[int, Classification]]]:
    """Split indexed classifications along directory boundaries.

    Subtrees directly below the common directory are taken largest
    first and packed into pieces of at most ``threshold`` lines. A
    subtree that is itself too large is split recursively; a single file
    is never split.
    """
    if _delta(items) <= threshold or len(items) <= 1:
        return [list(items)]

    depth = len(_common_dirs(items))
    subtrees: "OrderedDict[str, List[Tuple[int, Classification]]]" = OrderedDict()
    for index, item in items:
        dirs = _directories(item.path)
        key = dirs[depth] + "/" if len(dirs) > depth else item.path
        subtrees.setdefault(key, []).append((index, item))

    ordered = sorted(subtrees.values(), key=lambda subtree: (-_delta(subtree), subtree[0][0]))

    pieces: List[List[Tuple[int, Classification]]] = []
    open_sizes: Dict[int, int] = {}
    for subtree in ordered:
        size = _delta(subtree)
        if size > threshold:
            pieces.extend(split_by_size(subtree, threshold))
            continue
        for position, used in open_sizes.items():
            if used + size <= threshold:
                pieces[position].extend(subtree)
                open_sizes[position] = used + size
                break
        else:
            open_sizes[len(pieces)] = size
            pieces.append(list(subtree))

    return [sorted(piece, key=lambda pair: pair[0]) for piece in pieces]


def _split_by_root(
    items: Sequence[Tuple[int, Classification]],
    container_dirs: Iterable[str],
) -> List[List[Tuple[int, Classification]]]:
    roots: "OrderedDict[str, List[Tuple[int, Classification]]]" = OrderedDict()
    loose: List[Tuple[int, Classification]] = []
    for index, item in items:
        root = root_of(item.path, container_dirs)
        if root:
            roots.setdefault(root, []).append((index, item))
        else:
            loose.append((index, item))

    if not roots:
        return [loose]
    buckets = list(roots.values())
    # Root-level files share the repository root with every directory, so
    # they join the first bucket instead of forming their own commit.
    buckets[0] = sorted(buckets[0] + loose, key=lambda pair: pair[0])
    return buckets


def partition(
    classifications: Sequence[Classification],
    large_threshold: Optional[int] = None,
    container_dirs: Optional[Iterable[str]] = None,
) -> List[CommitGroup]:
    """Partition classified files into ordered commit groups.

    Parameters
    ----------
    classifications : Sequence[Classification]
        Classified staged files, in staging order.
    large_threshold : int, optional
        Maximum line delta of a group before it is split (default 200).
    container_dirs : Iterable[str], optional
        Directory names whose children count as independent roots.

    Returns
    -------
    List[CommitGroup]
        Groups ordered by ascending risk. Every input file appears in
        exactly one group.
    """
    threshold = large_threshold if large_threshold is not None else LARGE_THRESHOLD
    containers = frozenset(container_dirs) if container_dirs is not None else DEFAULT_CONTAINER_DIRS

    by_concern: "OrderedDict[Tuple[ChangeType, str], List[Tuple[int, Classification]]]" = OrderedDict()
    for index, item in enumerate(classifications):
        key = (item.change_type.category, item.change_type.concern)
        by_concern.setdefault(key, []).append((index, item))

    groups: List[CommitGroup] = []
    for (category, concern), items in by_concern.items():
        for bucket in _split_by_root(items, containers):
            pieces = split_by_size(bucket, threshold)
            if len(pieces) > 1:
                logger.debug(
                    "Split %s/%s group of %d line(s) into %d piece(s)",
                    category.value,
                    concern,
                    _delta(bucket),
                    len(pieces),
                )
            for piece in pieces:
                group = CommitGroup(
                    category=category,
                    classifications=[item for _, item in piece],
                )
                group.oversized = group.line_delta > threshold
                if group.oversized:
                    logger.warning(
                        "Group [%s] %s has %d changed lines (threshold %d) and cannot be split further",
                        category.value,
                        ", ".join(group.paths),
                        group.line_delta,
                        threshold,
                    )
                groups.append(group)

    # sorted() is stable, so groups of equal risk keep their creation order
    return sorted(groups, key=lambda group: group.category.risk)
