"""
Git integration.

Contains the :class:`GitClient` used to read the staged changes and to
create one commit per planned group.
"""

from .git_client import GitClient, GitError  # noqa: F401
