"""Value types shared by the diff builder, analyzers, scoring and presenter.

Everything here is frozen: a ChangedFile or Issue is built once per event and
then only read, so the analyzers can run concurrently over the same objects
without copying or locking.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, value, default: Severity | None = None) -> Severity:
        """Return the member matching ``value`` (case-insensitive).

        Unrecognized or missing values fall back to ``default``; with no
        default they raise ValueError so free-form strings never leak through.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        if default is None:
            raise ValueError(f"Unknown severity: {value!r}")
        return default


class Category(str, Enum):
    SECURITY = "security"
    BUG = "bug"
    PERFORMANCE = "performance"
    QUALITY = "quality"
    STYLE = "style"

    @classmethod
    def parse(cls, value, default: Category | None = None) -> Category:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        if default is None:
            raise ValueError(f"Unknown category: {value!r}")
        return default


class LineKind(str, Enum):
    ADDED = "add"
    UNCHANGED = "normal"


@dataclass(frozen=True)
class ChangedLine:
    # New-file line number, exactly as GitHub's file viewer numbers it.
    line_number: int
    content: str
    kind: LineKind


@dataclass(frozen=True)
class ChangedFile:
    """One file entry of a pull request diff.

    ``content`` is None until the pipeline attaches the head-revision text,
    and stays None for deleted, unreadable, excluded or oversized files.
    Those files still count in the diff model but no content-based analyzer
    sees them.
    """

    path: str
    additions: int
    deletions: int
    changed_lines: tuple[ChangedLine, ...] = ()
    language: str = "unknown"
    content: str | None = None
    is_deleted: bool = False

    @property
    def added_lines(self) -> tuple[ChangedLine, ...]:
        return tuple(cl for cl in self.changed_lines if cl.kind is LineKind.ADDED)

    @property
    def lines(self) -> list[str]:
        return self.content.split("\n") if self.content is not None else []


@dataclass(frozen=True)
class Issue:
    path: str
    line: int
    severity: Severity
    category: Category
    title: str
    description: str
    suggestion: str | None = None
    documentation: str | None = None
    language: str = "unknown"

    def __post_init__(self):
        # Normalize at construction so only enum members travel downstream.
        object.__setattr__(self, "severity", Severity.parse(self.severity))
        object.__setattr__(self, "category", Category.parse(self.category))


@dataclass(frozen=True)
class SecuritySignature:
    """A single entry of the security rule table."""

    name: str
    pattern: re.Pattern[str]
    title: str
    description: str
    severity: Severity
    suggestion: str | None = None
    documentation: str | None = None


@dataclass
class AnalysisResult:
    """Issues produced by one analyzer run, or the error that stopped it."""

    analyzer: str
    issues: list[Issue] = field(default_factory=list)
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
