"""Structural and complexity heuristics.

Three independent line scans per file: indentation depth, function length
(brace counting), and decision-point density in fixed windows. They are
language-neutral approximations, so they run on every file with content,
including files whose language is unknown.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from enum import Enum

from reviewbot_core.models import Category, ChangedFile, Issue, Severity

logger = logging.getLogger(__name__)

MAX_NESTING_INDENT = 10
MAX_FUNCTION_LENGTH = 50
MAX_COMPLEXITY = 10
COMPLEXITY_WINDOW = 30

_COMMENT_PREFIXES = ("//", "/*", "*", "#")
_LEADING_WS_RE = re.compile(r"\s*")

# Named function declaration, const-bound (async) arrow function, or a lambda opening a block.
_FUNCTION_START_RE = re.compile(r"function\s+\w+\s*\(|const\s+\w+\s*=\s*(?:async\s*)?\(|=>\s*\{")

_DECISION_POINT_RE = re.compile(r"\b(?:if|else|while|for|switch|case|catch|try)\b|\?\?|\|\||&&")


class _ScanState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    IN_FUNCTION = "in_function"


def _brace_balance(line: str) -> int:
    return line.count("{") - line.count("}")


def check_nesting(file: ChangedFile, lines: list[str]) -> list[Issue]:
    issues = []
    for index, line in enumerate(lines):
        if line.strip().startswith(_COMMENT_PREFIXES):
            continue
        indentation = _LEADING_WS_RE.match(line).end()
        if indentation > MAX_NESTING_INDENT:
            issues.append(
                Issue(
                    path=file.path,
                    line=index + 1,
                    severity=Severity.MEDIUM,
                    category=Category.QUALITY,
                    title="Deeply nested code",
                    description=(
                        "This code has high nesting. Consider refactoring to improve readability and maintainability."
                    ),
                    suggestion="Extract nested logic into separate functions or use early returns to reduce nesting.",
                    language=file.language,
                )
            )
    return issues


def _long_function_issue(file: ChangedFile, start: int, length: int) -> Issue:
    return Issue(
        path=file.path,
        line=start + 1,
        severity=Severity.MEDIUM,
        category=Category.QUALITY,
        title="Function too long",
        description=(
            f"This function is {length} lines long (Max: {MAX_FUNCTION_LENGTH}). "
            "It violates the Single Responsibility Principle."
        ),
        suggestion="Break down this function into smaller, single-responsibility functions.",
        language=file.language,
    )


def check_function_length(file: ChangedFile, lines: list[str]) -> list[Issue]:
    """Flag functions spanning more than MAX_FUNCTION_LENGTH lines.

    Only one function is tracked at a time: a function start seen while
    already inside a function is ignored, so an inner function is measured
    as part of its outer one.

    A signature line without an opening brace (Allman style, or a parameter
    list spread over several lines) leaves the scan pending until the first
    line that opens one; the function is still measured from its signature.
    A pending signature is dropped at a line ending in ``;``. A line whose
    braces open and close on that same line is a one-line function.
    """
    issues = []
    state = _ScanState.IDLE
    start = 0
    depth = 0

    for index, line in enumerate(lines):
        balance = _brace_balance(line)

        if state is _ScanState.IDLE:
            if not _FUNCTION_START_RE.search(line):
                continue
            if balance > 0:
                state, start, depth = _ScanState.IN_FUNCTION, index, balance
            elif "{" not in line and not line.rstrip().endswith(";"):
                state, start = _ScanState.PENDING, index
            continue

        if state is _ScanState.PENDING:
            if balance > 0:
                state, depth = _ScanState.IN_FUNCTION, balance
            elif "{" in line or line.rstrip().endswith(";"):
                state = _ScanState.IDLE
            continue

        depth += balance
        if depth > 0:
            continue

        length = index - start
        if length > MAX_FUNCTION_LENGTH:
            issues.append(_long_function_issue(file, start, length))
        state = _ScanState.IDLE

    return issues


def check_complexity(file: ChangedFile, lines: list[str]) -> list[Issue]:
    issues = []
    for window_start in range(0, len(lines), COMPLEXITY_WINDOW):
        window = lines[window_start : window_start + COMPLEXITY_WINDOW]
        complexity = sum(len(_DECISION_POINT_RE.findall(line)) for line in window)
        if complexity > MAX_COMPLEXITY:
            issues.append(
                Issue(
                    path=file.path,
                    line=window_start + 1,
                    severity=Severity.HIGH,
                    category=Category.QUALITY,
                    title="High cyclomatic complexity",
                    description=(
                        f"This code section has high complexity ({complexity} decision points in "
                        f"{len(window)} lines). It is hard to test and maintain."
                    ),
                    suggestion=(
                        "Reduce nested conditionals, extract complex logic into functions, "
                        "or use Polymorphism/Strategy patterns."
                    ),
                    language=file.language,
                )
            )
    return issues


def analyze_structure(files: Iterable[ChangedFile]) -> list[Issue]:
    issues: list[Issue] = []
    for file in files:
        if not file.content:
            continue
        lines = file.lines
        issues.extend(check_nesting(file, lines))
        issues.extend(check_function_length(file, lines))
        issues.extend(check_complexity(file, lines))

    logger.info("Complexity analysis: %d issue(s)", len(issues))
    return issues
