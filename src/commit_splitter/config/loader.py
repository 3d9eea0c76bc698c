"""
Configuration loader for commit_splitter.

Configuration is optional. The loader looks for a JSON file named
``.commitsplit.json`` in the repository root and then for
``config.json`` in the ``~/.commitsplit/`` directory. The first file
found is validated and merged over the defaults. Without any file the
defaults are returned.

If a configuration file is malformed or holds values of the wrong type,
a :class:`ConfigError` is raised.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings in environments
# where logging is not configured. The CLI configures logging explicitly.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


REPO_CONFIG_NAME = ".commitsplit.json"
USER_CONFIG_NAME = "config.json"

DEFAULTS: Dict[str, Any] = {
    "large_threshold": 200,
    "max_header_length": 72,
    "no_verify": False,
    "container_dirs": None,
}


class ConfigError(Exception):
    """Raised when a configuration file is malformed or invalid."""

    pass


def _get_config_directory() -> Path:
    """Return the user-level configuration directory, ``~/.commitsplit/``."""
    return Path.home() / ".commitsplit"


def find_config_file(repo_root: Optional[Path] = None) -> Optional[Path]:
    """Return the configuration file to use, or None if there is none."""
    candidates: List[Path] = []
    if repo_root is not None:
        candidates.append(Path(repo_root) / REPO_CONFIG_NAME)
    candidates.append(_get_config_directory() / USER_CONFIG_NAME)
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def _validate(data: Dict[str, Any], source: Path) -> None:
    unknown = sorted(set(data) - set(DEFAULTS))
    if unknown:
        logger.warning("Ignoring unknown configuration keys in %s: %s", source, ", ".join(unknown))

    threshold = data.get("large_threshold")
    if "large_threshold" in data and (
        not isinstance(threshold, int) or isinstance(threshold, bool) or threshold <= 0
    ):
        raise ConfigError("'large_threshold' must be a positive integer")

    length = data.get("max_header_length")
    if "max_header_length" in data and (
        not isinstance(length, int) or isinstance(length, bool) or not 20 <= length <= 72
    ):
        raise ConfigError("'max_header_length' must be an integer between 20 and 72")

    if "no_verify" in data and not isinstance(data["no_verify"], bool):
        raise ConfigError("'no_verify' must be a boolean")

    containers = data.get("container_dirs")
    if containers is not None and (
        not isinstance(containers, list) or not all(isinstance(item, str) and item for item in containers)
    ):
        raise ConfigError("'container_dirs' must be a list of directory names")


def load_config(repo_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load the commit planner configuration and return it.

    Args:
        repo_root: Repository root. A ``.commitsplit.json`` file there
                   takes precedence over the user-level configuration.

    Returns:
        A dictionary with the keys:
        - large_threshold (int): Line delta above which groups are split
        - max_header_length (int): Header length limit, at most 72
        - no_verify (bool): Bypass commit hooks by default
        - container_dirs (list[str] | None): Directories whose children
          are independent roots; None keeps the built-in list

    Raises:
        ConfigError: If the configuration file is malformed or invalid.
    """
    config = dict(DEFAULTS)
    config_path = find_config_file(repo_root)
    if config_path is None:
        logger.debug("No configuration file found; using defaults")
        return config

    try:
        content = config_path.read_text(encoding="utf-8")
        data = json.loads(content)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {config_path.name}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path.name} must contain a JSON object")

    _validate(data, config_path)
    config.update({key: value for key, value in data.items() if key in DEFAULTS})
    logger.debug("Loaded configuration from: %s", config_path)
    logger.debug("Configuration data: %s", config)
    return config
