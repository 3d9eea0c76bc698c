"""
Static change-type vocabulary.

Every change type carries a header type code, a display glyph, the core
category it is grouped under, a concern family and a risk rank. The
table is fixed; nothing here is derived at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class ChangeType(str, Enum):
    """Core and extended change types."""

    FEAT = "feat"
    FIX = "fix"
    DOCS = "docs"
    STYLE = "style"
    REFACTOR = "refactor"
    PERF = "perf"
    TEST = "test"
    CHORE = "chore"
    CI = "ci"
    SECURITY = "security"
    # extended vocabulary
    MOVE = "move"
    DEPENDENCY_ADD = "dependency-add"
    DEPENDENCY_REMOVE = "dependency-remove"
    DEPENDENCY_UPGRADE = "dependency-upgrade"
    BREAKING = "breaking"
    REVERT = "revert"
    REMOVE_CODE = "remove-code"
    DATABASE = "database"
    GITIGNORE = "gitignore"

    def __str__(self) -> str:
        return self.value

    @property
    def info(self) -> "TypeInfo":
        return TYPE_TABLE[self]

    @property
    def code(self) -> str:
        return TYPE_TABLE[self].code

    @property
    def glyph(self) -> str:
        return TYPE_TABLE[self].glyph

    @property
    def category(self) -> "ChangeType":
        return TYPE_TABLE[self].category

    @property
    def concern(self) -> str:
        return TYPE_TABLE[self].concern

    @property
    def risk(self) -> int:
        return TYPE_TABLE[self].risk


class Confidence(int, Enum):
    """Ordinal classification confidence. Only used to order tie-breaks."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class TypeInfo:
    code: str
    glyph: str
    category: ChangeType
    concern: str
    risk: int
    verb: str


# Concern families. Two files in different families never share a commit.
LOGIC = "logic"
DEPENDENCY = "dependency"
DATA = "data"
DOCUMENTATION = "documentation"
TOOLING = "tooling"

T = ChangeType

TYPE_TABLE: Dict[ChangeType, TypeInfo] = {
    T.DOCS: TypeInfo("docs", "📝", T.DOCS, DOCUMENTATION, 0, "update"),
    T.STYLE: TypeInfo("style", "💄", T.STYLE, LOGIC, 1, "format"),
    T.CHORE: TypeInfo("chore", "🔧", T.CHORE, TOOLING, 2, "update"),
    T.GITIGNORE: TypeInfo("chore", "🙈", T.CHORE, TOOLING, 2, "update"),
    T.DEPENDENCY_ADD: TypeInfo("chore", "➕", T.CHORE, DEPENDENCY, 2, "add"),
    T.DEPENDENCY_REMOVE: TypeInfo("chore", "➖", T.CHORE, DEPENDENCY, 2, "remove"),
    T.DEPENDENCY_UPGRADE: TypeInfo("chore", "⬆️", T.CHORE, DEPENDENCY, 2, "upgrade"),
    T.DATABASE: TypeInfo("chore", "🗃️", T.CHORE, DATA, 2, "update"),
    T.TEST: TypeInfo("test", "✅", T.TEST, LOGIC, 3, "update"),
    T.CI: TypeInfo("ci", "🚀", T.CI, TOOLING, 4, "update"),
    T.REFACTOR: TypeInfo("refactor", "♻️", T.REFACTOR, LOGIC, 5, "refactor"),
    T.MOVE: TypeInfo("refactor", "🚚", T.REFACTOR, LOGIC, 5, "move"),
    T.REMOVE_CODE: TypeInfo("refactor", "🔥", T.REFACTOR, LOGIC, 5, "remove"),
    T.PERF: TypeInfo("perf", "⚡️", T.PERF, LOGIC, 6, "improve"),
    T.FEAT: TypeInfo("feat", "✨", T.FEAT, LOGIC, 7, "add"),
    T.FIX: TypeInfo("fix", "🐛", T.FIX, LOGIC, 8, "fix"),
    T.REVERT: TypeInfo("revert", "⏪️", T.REVERT, LOGIC, 9, "revert"),
    T.SECURITY: TypeInfo("fix", "🔒️", T.SECURITY, LOGIC, 10, "secure"),
    T.BREAKING: TypeInfo("feat", "💥", T.BREAKING, LOGIC, 11, "change"),
}

# Tie-break order, strongest first. Extended types rank right after the
# core type they are grouped under.
PRIORITY: Tuple[ChangeType, ...] = (
    T.BREAKING,
    T.SECURITY,
    T.REVERT,
    T.FIX,
    T.FEAT,
    T.REFACTOR,
    T.MOVE,
    T.REMOVE_CODE,
    T.PERF,
    T.TEST,
    T.DOCS,
    T.STYLE,
    T.CI,
    T.CHORE,
    T.DEPENDENCY_ADD,
    T.DEPENDENCY_REMOVE,
    T.DEPENDENCY_UPGRADE,
    T.DATABASE,
    T.GITIGNORE,
)

_PRIORITY_INDEX = {change_type: index for index, change_type in enumerate(PRIORITY)}


def priority_rank(change_type: ChangeType) -> int:
    """Return the tie-break rank of a change type (lower wins)."""
    return _PRIORITY_INDEX[change_type]
