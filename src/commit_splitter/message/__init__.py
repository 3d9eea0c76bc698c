"""
Commit message composition.
"""

from .composer import UncomposableMessageError, compose_message  # noqa: F401
