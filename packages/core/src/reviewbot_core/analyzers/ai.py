"""AI-assisted review of the added lines in a few small files.

The completion service is the only external dependency of the analysis
stage, so everything here degrades instead of raising: a failed call, an
unparseable completion or a malformed item just means fewer issues.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Sequence

from reviewbot_core.errors import CompletionError, RateLimitedError
from reviewbot_core.models import Category, ChangedFile, Issue, Severity
from reviewbot_core.providers.base import CompletionProvider

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("javascript", "typescript", "python", "java")
MAX_AI_FILES = 3
MIN_LINES = 5
MAX_CHARS = 10_000
CONTEXT_CHARS = 3_000

AI_TITLE_PREFIX = "[AI] "
DEFAULT_DESCRIPTION = "AI-identified concern."

_PROMPT_TEMPLATE = """Analyze the code changes in the "Changed Lines" section from the file "{path}".

File Language: {language}

Changed Lines (Focus your review ONLY on these lines and their impact):
```{language}
{changed_lines}
```

Full File Context (only use this for broader context, don't review it directly):
```{language}
{file_context}
```

Provide a review in this exact, raw JSON format (no markdown, no preamble, just the raw JSON object):
{{
  "issues": [
    {{
      "line": <line number of the issue in the NEW code>,
      "severity": "critical|high|medium|low",
      "category": "bug|security|performance|quality|style",
      "title": "Brief, actionable issue title (e.g., Unhandled Promise Rejection)",
      "description": "Detailed explanation of the problem, its impact, and why it should be fixed.",
      "suggestion": "A concise code fix or refactoring advice if applicable"
    }}
  ]
}}

Focus strictly on **bugs, security vulnerabilities, and performance regressions**. \
If the code is good, return: {{"issues": []}}."""


def select_files(
    files: Sequence[ChangedFile],
    max_files: int = MAX_AI_FILES,
    min_lines: int = MIN_LINES,
    max_chars: int = MAX_CHARS,
) -> list[ChangedFile]:
    """Return the first ``max_files`` files that are worth an AI call, in diff order."""
    eligible = [
        f
        for f in files
        if f.content
        and len(f.lines) > min_lines
        and len(f.content) < max_chars
        and f.language in SUPPORTED_LANGUAGES
    ]
    return eligible[:max_files]


def build_prompt(file: ChangedFile, context_chars: int = CONTEXT_CHARS) -> str:
    changed_lines = "\n".join(f"Line {cl.line_number}: {cl.content}" for cl in file.added_lines)
    return _PROMPT_TEMPLATE.format(
        path=file.path,
        language=file.language,
        changed_lines=changed_lines,
        file_context=(file.content or "")[:context_chars],
    )


def parse_response(raw: str | None) -> list[dict]:
    """Return the ``issues`` items of a completion, or [] if it is not the expected schema."""
    if not raw:
        return []
    # Strip only an outer ```json ... ``` fence, not backticks inside values.
    cleaned = re.sub(r"^```(?:json)?\s*", "", raw.strip())
    cleaned = re.sub(r"\s*```$", "", cleaned.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("AI review: failed to parse response as JSON: %s", raw[:200])
        return []

    if not isinstance(data, dict):
        return []
    items = data.get("issues")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _coerce_line(value) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        line = int(value)
    except (TypeError, ValueError):
        return None
    return line if line > 0 else None


def to_issues(file: ChangedFile, items: list[dict]) -> list[Issue]:
    line_count = len(file.lines)
    issues = []
    for item in items:
        line = _coerce_line(item.get("line"))
        title = str(item.get("title") or "").strip()
        if line is None or not title:
            continue
        if line > line_count:
            logger.debug("AI review: dropping issue for %s:%d (beyond end of file)", file.path, line)
            continue
        suggestion = item.get("suggestion")
        issues.append(
            Issue(
                path=file.path,
                line=line,
                severity=Severity.parse(item.get("severity"), default=Severity.LOW),
                category=Category.parse(item.get("category"), default=Category.QUALITY),
                title=f"{AI_TITLE_PREFIX}{title}",
                description=str(item.get("description") or DEFAULT_DESCRIPTION),
                suggestion=str(suggestion) if suggestion else None,
                language=file.language,
            )
        )
    return issues


async def analyze_with_ai(
    files: Sequence[ChangedFile],
    provider: CompletionProvider | None,
    max_files: int = MAX_AI_FILES,
    min_lines: int = MIN_LINES,
    max_chars: int = MAX_CHARS,
    context_chars: int = CONTEXT_CHARS,
) -> list[Issue]:
    if provider is None:
        logger.info("AI review: no completion provider configured, skipping")
        return []

    selected = select_files(files, max_files, min_lines, max_chars)
    if not selected:
        logger.info("AI review: no suitable files for AI analysis")
        return []

    logger.info("AI review: analyzing %d file(s) with %s", len(selected), provider.__class__.__name__)
    issues: list[Issue] = []
    for file in selected:
        if not file.added_lines:
            continue  # nothing new to review

        prompt = build_prompt(file, context_chars)
        try:
            raw = await asyncio.to_thread(provider.complete, prompt)
        except RateLimitedError:
            logger.warning("AI review: rate limit reached, skipping remaining AI reviews")
            break
        except CompletionError as e:
            logger.error("AI review failed for %s: %s", file.path, e)
            continue

        issues.extend(to_issues(file, parse_response(raw)))

    logger.info("AI review: %d issue(s)", len(issues))
    return issues
