"""
Deterministic commit message composition.

This module turns a :class:`~commit_splitter.grouping.group_model.CommitGroup`
into a :class:`~commit_splitter.grouping.group_model.CommitMessage`. The
header always has the form::

  <glyph> <type>: <Description>

The description is taken from the most frequent verb phrase found in the
changed lines (for example a ``# fix rounding of totals`` comment or a
plain-text note such as ``add install section``). If there is none, it is
built from the group's dominant verb and the most frequent meaningful
word in its paths. Descriptions are written in the imperative mood,
truncated on a word boundary so that the header fits in 72 characters,
capitalised and stripped of a trailing period.

All messages follow the format:
  <glyph> <type>: Description

  - file1
  - file2
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from pathlib import PurePosixPath
from typing import Iterable, List, Optional

from commit_splitter.diff.diff_model import FileStatus
from commit_splitter.grouping.change_types import DEPENDENCY, ChangeType
from commit_splitter.grouping.feature_extractor import changed_lines
from commit_splitter.grouping.group_model import CommitGroup, CommitMessage


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


MAX_HEADER_LENGTH = 72
MAX_PHRASE_WORDS = 6


class UncomposableMessageError(Exception):
    """Raised when no description can be derived for a commit group.

    The caller must supply a manual description for the group.
    """

    def __init__(self, group: CommitGroup, reason: str = "no extractable description") -> None:
        self.group = group
        super().__init__(f"Cannot compose a message for {', '.join(group.paths)}: {reason}")


# Inflected forms mapped to their imperative.
_VERBS = {
    "add": ("add", "adds", "added", "adding"),
    "fix": ("fix", "fixes", "fixed", "fixing"),
    "remove": ("remove", "removes", "removed", "removing", "delete", "deletes", "deleted", "drop", "drops", "dropped"),
    "update": ("update", "updates", "updated", "updating"),
    "rename": ("rename", "renames", "renamed"),
    "move": ("move", "moves", "moved"),
    "refactor": ("refactor", "refactors", "refactored"),
    "implement": ("implement", "implements", "implemented"),
    "improve": ("improve", "improves", "improved"),
    "optimize": ("optimize", "optimizes", "optimized", "optimise", "optimised"),
    "introduce": ("introduce", "introduces", "introduced"),
    "support": ("support", "supports", "supported"),
    "document": ("document", "documents", "documented"),
    "handle": ("handle", "handles", "handled"),
    "replace": ("replace", "replaces", "replaced"),
    "simplify": ("simplify", "simplifies", "simplified"),
    "extract": ("extract", "extracts", "extracted"),
    "upgrade": ("upgrade", "upgrades", "upgraded", "bump", "bumps", "bumped"),
    "downgrade": ("downgrade", "downgrades", "downgraded"),
    "revert": ("revert", "reverts", "reverted"),
    "prevent": ("prevent", "prevents", "prevented"),
    "validate": ("validate", "validates", "validated"),
    "sanitize": ("sanitize", "sanitizes", "sanitized"),
    "allow": ("allow", "allows", "allowed"),
    "enable": ("enable", "enables", "enabled"),
    "disable": ("disable", "disables", "disabled"),
    "create": ("create", "creates", "created"),
    "correct": ("correct", "corrects", "corrected"),
    "clean": ("clean", "cleans", "cleaned"),
    "format": ("format", "formats", "formatted"),
    "change": ("change", "changes", "changed"),
}
IMPERATIVE = {form: verb for verb, forms in _VERBS.items() for form in forms}

# Path words that say nothing about what changed.
STOPWORDS = frozenset({
    "src", "lib", "libs", "app", "apps", "pkg", "internal", "cmd", "main", "index", "init",
    "mod", "core", "common", "util", "utils", "helpers", "misc", "tmp", "temp", "test", "tests",
    "spec", "specs", "the", "and", "of", "to", "in", "for", "on", "with", "file", "files",
    "py", "js", "ts", "tsx", "jsx", "go", "rs", "java", "rb", "md", "json", "yml", "yaml", "toml",
    "txt", "lock", "cfg", "ini", "dist", "build", "out", "new", "old",
})

_COMMENT_PREFIX_RE = re.compile(r"^\s*(?:#+|//+|/\*+|\*+|--|<!--|;+|%+|>+|[-*+]\s)?\s*")
_COMMENT_SUFFIX_RE = re.compile(r"\s*(?:\*/|-->)\s*$")
_WORD_RE = re.compile(r"^[A-Za-z][A-Za-z0-9'-]*$")
_PATH_TOKEN_RE = re.compile(r"[A-Z]?[a-z]+|[A-Z]+(?![a-z])|[0-9]+")


def _verb_phrase(line: str) -> Optional[str]:
    """Return ``verb rest-of-phrase`` if the line reads like an imperative note."""
    text = _COMMENT_SUFFIX_RE.sub("", _COMMENT_PREFIX_RE.sub("", line, count=1))
    words = text.split()
    if len(words) < 2:
        return None
    verb = IMPERATIVE.get(words[0].lower())
    if verb is None:
        return None

    phrase: List[str] = [verb]
    for word in words[1:]:
        stripped = word.rstrip(".,;:!")
        if not _WORD_RE.match(stripped):
            break
        phrase.append(stripped)
        if stripped != word or len(phrase) > MAX_PHRASE_WORDS:
            break
    if len(phrase) < 2:
        return None
    return " ".join(phrase)


def _most_common(values: Iterable[str]) -> Optional[str]:
    """Most frequent value; ties go to the first one seen."""
    items = list(values)
    if not items:
        return None
    counts = Counter(value.lower() for value in items)
    best = max(counts.values())
    for value in items:
        if counts[value.lower()] == best:
            return value
    return None


def hunk_phrases(group: CommitGroup) -> List[str]:
    phrases = []
    for changed in group.files:
        added, _ = changed_lines(changed)
        for line in added:
            phrase = _verb_phrase(line)
            if phrase:
                phrases.append(phrase)
    return phrases


def path_nouns(group: CommitGroup) -> List[str]:
    """Meaningful words from each file name and its nearest directory."""
    nouns = []
    for path in group.paths:
        pure = PurePosixPath(path)
        sources = [pure.name.split(".")[0] or pure.name]
        if pure.parent.name:
            sources.append(pure.parent.name)
        for source in sources:
            for token in _PATH_TOKEN_RE.findall(source):
                if len(token) < 2 or token.isdigit() or token.lower() in STOPWORDS:
                    continue
                nouns.append(token if token.isupper() else token.lower())
    return nouns


def _dominant_verb(group: CommitGroup) -> str:
    statuses = {changed.status for changed in group.files}
    if statuses == {FileStatus.ADDED}:
        return "add"
    if statuses == {FileStatus.DELETED}:
        return "remove"
    if statuses == {FileStatus.RENAMED}:
        return "move"
    verbs = []
    for changed in group.files:
        added, removed = changed_lines(changed)
        for line in added + removed:
            verbs.extend(IMPERATIVE[token.lower()] for token in re.findall(r"[A-Za-z]+", line)
                         if token.lower() in IMPERATIVE)
    return _most_common(verbs) or group.change_type.info.verb


def derive_description(group: CommitGroup) -> str:
    """Derive an imperative description for a group.

    Raises
    ------
    UncomposableMessageError
        If neither the changed lines nor the paths contain anything usable.
    """
    phrase = _most_common(hunk_phrases(group))
    if phrase:
        return phrase

    verb = _dominant_verb(group)
    if group.concern == DEPENDENCY:
        return f"{verb} dependencies"

    noun = _most_common(path_nouns(group))
    if not noun:
        raise UncomposableMessageError(group)
    if group.change_type is ChangeType.TEST and noun.lower() != "tests":
        noun = f"{noun} tests"
    return f"{verb} {noun}"


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    cut = text[: limit + 1]
    boundary = cut.rfind(" ")
    if boundary > 0:
        return text[:boundary]
    return text[:limit]


def _capitalise(text: str) -> str:
    """Upper-case the first letter, skipping leading quotes and digits."""
    for index, char in enumerate(text):
        if char.isalpha():
            return text[:index] + char.upper() + text[index + 1:]
    return text


def format_header(change_type: ChangeType, description: str, max_length: int = MAX_HEADER_LENGTH) -> str:
    """Render ``<glyph> <code>: <Description>`` within ``max_length`` characters."""
    prefix = f"{change_type.glyph} {change_type.code}: "
    text = _capitalise(" ".join(description.split()).rstrip(". "))
    # casing may lengthen the text ("ß" -> "SS"), so truncate afterwards
    text = _truncate(text, max_length - len(prefix)).rstrip(" .,;:-")
    if not text:
        raise ValueError("Empty commit description")
    return prefix + text


def compose_message(
    group: CommitGroup,
    description: Optional[str] = None,
    max_length: int = MAX_HEADER_LENGTH,
    include_body: bool = True,
) -> CommitMessage:
    """Compose the commit message of a group.

    Parameters
    ----------
    group : CommitGroup
        The group to describe.
    description : str, optional
        Manual description. Used as-is (after formatting) instead of the
        derived one.
    max_length : int
        Header length limit, at most 72.
    include_body : bool
        Whether to list the group's files in the message body.

    Raises
    ------
    UncomposableMessageError
        If no description was given and none can be derived.
    """
    limit = min(max_length, MAX_HEADER_LENGTH)
    text = description if description and description.strip() else derive_description(group)
    try:
        header = format_header(group.change_type, text, limit)
    except ValueError as exc:
        raise UncomposableMessageError(group, str(exc)) from exc

    body = "\n".join(f"- {path}" for path in group.paths) if include_body else ""
    logger.debug("Composed header for %d file(s): %s", len(group.paths), header)
    return CommitMessage(header=header, body=body)
