"""
Staged record extraction.

This module connects the Git collaborator to the diff model: it asks the
client for the staged file list and the staged diff of each file, and
returns plain records ready for
:func:`commit_splitter.diff.diff_model.build_snapshot`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from commit_splitter.vcs.git_client import GitError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


def extract_staged_records(
    vcs_client: Any,
    changes: Optional[Iterable[Any]] = None,
) -> List[Dict[str, Any]]:
    """Build staged file records for the diff model.

    Parameters
    ----------
    vcs_client : object
        The VCS client instance. Must implement ``get_staged_changes()``
        and ``get_staged_diff(path, old_path=None)``.
    changes : Iterable, optional
        Staged changes to use instead of asking the client. Each object
        must have ``path`` and ``status`` attributes.

    Returns
    -------
    List[Dict[str, Any]]
        One record per staged file with ``path``, ``status``, ``hunks``
        and ``old_path`` keys.
    """
    staged = list(changes) if changes is not None else vcs_client.get_staged_changes()
    records: List[Dict[str, Any]] = []
    for change in staged:
        old_path = getattr(change, "old_path", None)
        try:
            diff = vcs_client.get_staged_diff(change.path, old_path=old_path)
        except GitError as exc:
            # Binary or unreadable files still classify on their path.
            logger.warning("Could not read staged diff of %s: %s", change.path, exc)
            diff = ""
        records.append(
            {
                "path": change.path,
                "status": change.status,
                "hunks": diff,
                "old_path": old_path,
            }
        )
    return records
