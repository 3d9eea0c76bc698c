"""
Staged change capture.

:mod:`commit_splitter.diff.diff_model` defines the immutable snapshot of
the staging area and :mod:`commit_splitter.diff.diff_extractor` builds
its input records from a Git client.
"""

from .diff_model import (  # noqa: F401
    ChangedFile,
    EmptyStagingError,
    FileStatus,
    InvalidRecordError,
    UnmergedPathError,
    build_snapshot,
)
from .diff_extractor import extract_staged_records  # noqa: F401
