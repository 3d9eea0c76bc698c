"""
Signal extraction for staged files.

Each :class:`~commit_splitter.diff.diff_model.ChangedFile` is reduced to a
set of signals: path-pattern matches, keyword hits in the changed lines,
a source-extension hint and a size bucket. The extractor is a pure
function of its input so that it can be unit tested without a
repository.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Pattern, Tuple

from commit_splitter.diff.diff_model import ChangedFile, FileStatus, is_diff_header
from commit_splitter.grouping.change_types import ChangeType


SMALL_LIMIT = 20
LARGE_THRESHOLD = 200


class SignalKind(Enum):
    """Where a signal came from. The value is its classification weight."""

    PATH = 40
    CONTENT = 30
    EXTENSION = 20
    SIZE = 10


class SizeBucket(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


@dataclass(frozen=True)
class Signal:
    """One piece of evidence for a change type.

    ``specificity`` only matters for path signals: the first element is
    the rule rank (rename > directory scope > file name), the second the
    nesting depth of the matched directory segment.
    """

    kind: SignalKind
    change_type: ChangeType
    source: str
    specificity: Tuple[int, int] = (0, 0)

    @property
    def weight(self) -> int:
        return self.kind.value


@dataclass(frozen=True)
class FeatureSet:
    """All signals of one file plus its size bucket.

    The bucket is informational: it is reported with the classification
    but never votes. Size-kind candidates come from the file status only
    (see :func:`size_signals`).
    """

    path: str
    signals: Tuple[Signal, ...]
    line_delta: int
    size: SizeBucket

    def of_kind(self, kind: SignalKind) -> Tuple[Signal, ...]:
        return tuple(signal for signal in self.signals if signal.kind is kind)


# ---------------------------------------------------------------------------
# Static tables
# ---------------------------------------------------------------------------

RANK_FILE = 0
RANK_SCOPE = 1
RANK_RENAME = 2

DEPENDENCY_MARKER = ChangeType.DEPENDENCY_UPGRADE

# Glob patterns. ``**/`` matches any number of leading directories and a
# pattern without a slash is matched against the file name only. Patterns
# ending in ``/**`` are directory-scope rules.
PATH_RULES: Tuple[Tuple[str, ChangeType], ...] = (
    # tests
    ("**/test*/**", ChangeType.TEST),
    ("**/__tests__/**", ChangeType.TEST),
    ("**/spec/**", ChangeType.TEST),
    ("**/*.test.*", ChangeType.TEST),
    ("**/*.spec.*", ChangeType.TEST),
    ("test_*.py", ChangeType.TEST),
    ("*_test.py", ChangeType.TEST),
    ("*_test.go", ChangeType.TEST),
    ("conftest.py", ChangeType.TEST),
    # documentation
    ("docs/**", ChangeType.DOCS),
    ("doc/**", ChangeType.DOCS),
    ("*.md", ChangeType.DOCS),
    ("*.rst", ChangeType.DOCS),
    ("*.adoc", ChangeType.DOCS),
    ("LICENSE*", ChangeType.DOCS),
    ("CHANGELOG*", ChangeType.DOCS),
    # dependency manifests and lock files
    ("package*.json", DEPENDENCY_MARKER),
    ("*.lock", DEPENDENCY_MARKER),
    ("Cargo.toml", DEPENDENCY_MARKER),
    ("go.mod", DEPENDENCY_MARKER),
    ("go.sum", DEPENDENCY_MARKER),
    ("requirements*.txt", DEPENDENCY_MARKER),
    ("Pipfile", DEPENDENCY_MARKER),
    ("pyproject.toml", DEPENDENCY_MARKER),
    ("Gemfile", DEPENDENCY_MARKER),
    ("pnpm-lock.yaml", DEPENDENCY_MARKER),
    ("composer.json", DEPENDENCY_MARKER),
    # continuous integration
    (".github/**", ChangeType.CI),
    (".circleci/**", ChangeType.CI),
    (".gitlab-ci.yml", ChangeType.CI),
    ("Jenkinsfile", ChangeType.CI),
    (".travis.yml", ChangeType.CI),
    ("azure-pipelines.yml", ChangeType.CI),
    # formatter and linter configuration
    (".editorconfig", ChangeType.STYLE),
    (".prettierrc*", ChangeType.STYLE),
    (".eslintrc*", ChangeType.STYLE),
    (".stylelintrc*", ChangeType.STYLE),
    (".flake8", ChangeType.STYLE),
    (".clang-format", ChangeType.STYLE),
    # database
    ("**/migrations/**", ChangeType.DATABASE),
    ("**/migrate/**", ChangeType.DATABASE),
    ("*.sql", ChangeType.DATABASE),
    # repository housekeeping
    (".gitignore", ChangeType.GITIGNORE),
    (".gitattributes", ChangeType.GITIGNORE),
    ("Makefile", ChangeType.CHORE),
    ("Dockerfile", ChangeType.CHORE),
    ("docker-compose*.yml", ChangeType.CHORE),
    (".env.example", ChangeType.CHORE),
)

KEYWORDS: Dict[ChangeType, Tuple[str, ...]] = {
    ChangeType.SECURITY: (
        "security", "vulnerability", "vulnerabilities", "xss", "csrf", "cve", "sanitize",
        "sanitise", "injection", "exploit", "secret", "secrets",
    ),
    ChangeType.FIX: (
        "fix", "fixes", "fixed", "fixing", "bug", "bugs", "bugfix", "error", "errors",
        "issue", "crash", "hotfix", "patch", "broken", "regression",
    ),
    ChangeType.PERF: (
        "perf", "performance", "optimize", "optimise", "optimized", "faster", "speedup",
        "latency", "memoize", "cache", "cached",
    ),
    ChangeType.REFACTOR: (
        "refactor", "refactored", "restructure", "cleanup", "simplify", "simplified",
        "extract", "extracted", "rename", "renamed", "reorganize",
    ),
    ChangeType.FEAT: (
        "feat", "feature", "add", "adds", "added", "implement", "implemented",
        "introduce", "introduced", "support", "new",
    ),
    ChangeType.DOCS: ("docs", "documentation", "readme", "docstring", "typo", "typos"),
    ChangeType.STYLE: ("format", "formatting", "lint", "linting", "whitespace", "prettier", "indent"),
    ChangeType.TEST: ("test", "tests", "assert", "asserts", "mock", "fixture", "pytest", "unittest"),
    ChangeType.REVERT: ("revert", "reverts", "reverted"),
    ChangeType.BREAKING: ("breaking",),
    ChangeType.REMOVE_CODE: ("deprecated", "unused", "obsolete"),
}

# Markers that must never count as keywords, even though they look like one.
IGNORED_TOKENS = frozenset({"todo", "fixme", "xxx", "hack"})

SOURCE_EXTENSIONS = frozenset({
    ".py", ".pyi", ".go", ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".java", ".kt",
    ".kts", ".rs", ".c", ".cc", ".cpp", ".cxx", ".h", ".hpp", ".cs", ".rb", ".php",
    ".swift", ".scala", ".m", ".mm", ".dart", ".ex", ".exs", ".erl", ".clj", ".lua",
    ".vue", ".svelte", ".html", ".css", ".scss", ".sass", ".less", ".sh",
})

_TOKEN_RE = re.compile(r"[A-Za-z]+")
_KEYWORD_INDEX: Dict[str, ChangeType] = {
    keyword: change_type for change_type, keywords in KEYWORDS.items() for keyword in keywords
}


@dataclass(frozen=True)
class _CompiledRule:
    pattern: str
    change_type: ChangeType
    regex: Pattern[str]
    scope: bool
    name_only: bool


def _glob_to_regex(pattern: str) -> Tuple[Pattern[str], bool, bool]:
    """Translate a path glob into an anchored regular expression.

    For scope rules the directory segment that the rule is about is
    captured in group ``scope`` so its nesting depth can be measured.
    """
    scope = pattern.endswith("/**")
    body = pattern[:-3] if scope else pattern
    name_only = "/" not in pattern
    leading_any = body.startswith("**/")
    if leading_any:
        body = body[3:]

    parts = []
    for char in body:
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
    core = "".join(parts)

    prefix = "(?:.*/)?" if leading_any else ""
    if scope:
        regex = f"^{prefix}(?P<scope>{core})/.+$"
    else:
        regex = f"^{prefix}{core}$"
    return re.compile(regex), scope, name_only


def _compile_rules() -> Tuple[_CompiledRule, ...]:
    compiled = []
    for pattern, change_type in PATH_RULES:
        regex, scope, name_only = _glob_to_regex(pattern)
        compiled.append(_CompiledRule(pattern, change_type, regex, scope, name_only))
    return tuple(compiled)


_RULES = _compile_rules()


def _dependency_type(changed: ChangedFile) -> ChangeType:
    if changed.status is FileStatus.ADDED or changed.added_lines > changed.removed_lines:
        return ChangeType.DEPENDENCY_ADD
    if changed.status is FileStatus.DELETED or changed.removed_lines > changed.added_lines:
        return ChangeType.DEPENDENCY_REMOVE
    return ChangeType.DEPENDENCY_UPGRADE


def path_signals(changed: ChangedFile) -> List[Signal]:
    """Match the file path against the static glob table."""
    signals: List[Signal] = []
    if changed.status is FileStatus.RENAMED and changed.line_delta == 0:
        signals.append(Signal(SignalKind.PATH, ChangeType.MOVE, f"rename:{changed.old_path or '?'}",
                              (RANK_RENAME, 0)))

    path = changed.path
    name = PurePosixPath(path).name
    seen = set()
    for rule in _RULES:
        target = name if rule.name_only else path
        match = rule.regex.match(target)
        if not match:
            continue
        change_type = rule.change_type
        if change_type is DEPENDENCY_MARKER:
            change_type = _dependency_type(changed)
        if rule.scope:
            depth = path[: match.start("scope")].count("/")
            specificity = (RANK_SCOPE, depth)
        else:
            specificity = (RANK_FILE, path.count("/"))
        key = (change_type, specificity)
        if key in seen:
            continue
        seen.add(key)
        signals.append(Signal(SignalKind.PATH, change_type, rule.pattern, specificity))
    return signals


def changed_lines(changed: ChangedFile) -> Tuple[List[str], List[str]]:
    """Split hunk lines into (added, removed) content, markers stripped.

    Free text without diff markers is returned as added lines.
    """
    added: List[str] = []
    removed: List[str] = []
    marked = False
    for line in changed.hunks:
        if line.startswith(("+++", "---")):
            continue
        if line.startswith("+"):
            added.append(line[1:])
            marked = True
        elif line.startswith("-"):
            removed.append(line[1:])
            marked = True
    if not marked:
        added = [line for line in changed.hunks if line.strip() and not is_diff_header(line)]
    return added, removed


def _is_whitespace_only(added: List[str], removed: List[str]) -> bool:
    if not added and not removed:
        return False
    if added and removed:
        norm_removed = "".join(re.sub(r"\s", "", line) for line in removed)
        norm_added = "".join(re.sub(r"\s", "", line) for line in added)
        if norm_removed == norm_added:
            return True
    # blank line additions and removals
    return all(not re.sub(r"\s", "", line) for line in added + removed)


def content_signals(changed: ChangedFile) -> List[Signal]:
    """Keyword and whitespace signals from the changed lines."""
    added, removed = changed_lines(changed)
    signals: List[Signal] = []
    if _is_whitespace_only(added, removed):
        signals.append(Signal(SignalKind.CONTENT, ChangeType.STYLE, "whitespace-only"))
        return signals

    seen = set()
    for line in added + removed:
        for token in _TOKEN_RE.findall(line):
            lowered = token.lower()
            if lowered in IGNORED_TOKENS:
                continue
            change_type = _KEYWORD_INDEX.get(lowered)
            if change_type is None or change_type in seen:
                continue
            seen.add(change_type)
            signals.append(Signal(SignalKind.CONTENT, change_type, lowered))
    return signals


def extension_signals(changed: ChangedFile) -> List[Signal]:
    suffix = PurePosixPath(changed.path).suffix.lower()
    if suffix in SOURCE_EXTENSIONS:
        return [Signal(SignalKind.EXTENSION, ChangeType.FEAT, suffix)]
    return []


def size_bucket(line_delta: int, large_threshold: int = LARGE_THRESHOLD) -> SizeBucket:
    if line_delta < SMALL_LIMIT:
        return SizeBucket.SMALL
    if line_delta <= large_threshold:
        return SizeBucket.MEDIUM
    return SizeBucket.LARGE


def size_signals(changed: ChangedFile) -> List[Signal]:
    if changed.status is FileStatus.ADDED:
        return [Signal(SignalKind.SIZE, ChangeType.FEAT, "new-file")]
    if changed.status is FileStatus.DELETED:
        return [Signal(SignalKind.SIZE, ChangeType.REMOVE_CODE, "deleted-file")]
    return []


def extract_features(changed: ChangedFile, large_threshold: Optional[int] = None) -> FeatureSet:
    """Compute the full, ordered signal set of a staged file."""
    threshold = large_threshold if large_threshold is not None else LARGE_THRESHOLD
    signals = (
        path_signals(changed)
        + content_signals(changed)
        + extension_signals(changed)
        + size_signals(changed)
    )
    return FeatureSet(
        path=changed.path,
        signals=tuple(signals),
        line_delta=changed.line_delta,
        size=size_bucket(changed.line_delta, threshold),
    )
