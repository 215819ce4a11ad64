"""Run every analyzer concurrently over one event's files and merge the results."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from reviewbot_core.analyzers import ai, lint
from reviewbot_core.analyzers.ai import analyze_with_ai
from reviewbot_core.analyzers.lint import analyze_lint
from reviewbot_core.analyzers.security import analyze_security
from reviewbot_core.analyzers.structural import analyze_structure
from reviewbot_core.models import AnalysisResult, ChangedFile, Issue
from reviewbot_core.providers.base import CompletionProvider

logger = logging.getLogger(__name__)

# Aggregate order. Presenter ranking uses it as the tie-break.
ANALYZER_ORDER = ("security", "structural", "lint", "ai")


async def run_analyzers(
    files: Sequence[ChangedFile],
    provider: CompletionProvider | None = None,
    config: dict | None = None,
) -> list[AnalysisResult]:
    """Run all analyzers concurrently and return one result per analyzer, in ANALYZER_ORDER.

    Every analyzer gets the same immutable tuple of files. A failing analyzer
    is logged and reported through ``AnalysisResult.error``; it never stops
    the others.
    """
    config = config or {}
    shared = tuple(files)

    coroutines = [
        asyncio.to_thread(analyze_security, shared),
        asyncio.to_thread(analyze_structure, shared),
        asyncio.to_thread(
            analyze_lint,
            shared,
            config.get("eslint_command", lint.DEFAULT_ESLINT_COMMAND),
            config.get("eslint_timeout", lint.DEFAULT_TIMEOUT),
        ),
        analyze_with_ai(
            shared,
            provider,
            max_files=config.get("max_ai_files", ai.MAX_AI_FILES),
            min_lines=config.get("ai_min_lines", ai.MIN_LINES),
            max_chars=config.get("ai_max_chars", ai.MAX_CHARS),
            context_chars=config.get("ai_context_chars", ai.CONTEXT_CHARS),
        ),
    ]
    outcomes = await asyncio.gather(*coroutines, return_exceptions=True)

    results = []
    for name, outcome in zip(ANALYZER_ORDER, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("%s analyzer failed; continuing without it: %r", name, outcome, exc_info=outcome)
            results.append(AnalysisResult(analyzer=name, error=outcome))
        else:
            results.append(AnalysisResult(analyzer=name, issues=list(outcome)))
    return results


def merge_issues(results: Sequence[AnalysisResult]) -> list[Issue]:
    issues: list[Issue] = []
    for result in results:
        issues.extend(result.issues)
    return issues


async def analyze(
    files: Sequence[ChangedFile],
    provider: CompletionProvider | None = None,
    config: dict | None = None,
) -> list[Issue]:
    return merge_issues(await run_analyzers(files, provider, config))
