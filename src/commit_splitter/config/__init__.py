"""
Configuration loading for commit_splitter.

Provides a loader for the optional JSON configuration file. See
:mod:`commit_splitter.config.loader` for implementation details.
"""

from .loader import ConfigError, load_config  # noqa: F401
