"""Deterministic 0–100 quality score for one pull request."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from reviewbot_core.models import ChangedFile, Issue, Severity

SEVERITY_PENALTIES = {
    Severity.CRITICAL: 25,
    Severity.HIGH: 10,
    Severity.MEDIUM: 4,
    Severity.LOW: 1,
}
UNKNOWN_SEVERITY_PENALTY = 2

LARGE_CHANGE_LINES = 200
LARGE_CHANGE_PENALTY = 5
UNTESTED_CHANGE_LINES = 50
MISSING_TESTS_PENALTY = 15
TESTS_BONUS = 5

TEST_PATH_MARKERS = ("test", "spec", "__tests__")


def touches_tests(files: Iterable[ChangedFile]) -> bool:
    return any(marker in f.path for f in files for marker in TEST_PATH_MARKERS)


def calculate_score(issues: Iterable[Issue], reviewed_files: Sequence[ChangedFile]) -> int:
    """Score ``issues`` against the files whose content was actually analyzed.

    Pure and order-independent: the same issues and files always give the
    same integer in [0, 100].
    """
    score = 100
    for issue in issues:
        score -= SEVERITY_PENALTIES.get(issue.severity, UNKNOWN_SEVERITY_PENALTY)

    added_lines = sum(f.additions for f in reviewed_files)
    if added_lines > LARGE_CHANGE_LINES:
        score -= LARGE_CHANGE_PENALTY

    # A sizeable change with no test file alongside it is a red flag.
    has_tests = touches_tests(reviewed_files)
    if not has_tests and added_lines > UNTESTED_CHANGE_LINES:
        score -= MISSING_TESTS_PENALTY
    elif has_tests:
        score += TESTS_BONUS

    return int(round(max(0, min(100, score))))
