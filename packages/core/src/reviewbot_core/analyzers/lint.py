"""ESLint-backed style analysis for JavaScript files.

ESLint is the rule engine; this module only builds its command line, feeds
the file content on stdin and maps the JSON report to Issues. The rule set is
fixed here and the repository's own ESLint configuration is ignored, so every
pull request is judged by the same rules.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from collections.abc import Iterable, Sequence

from reviewbot_core.errors import LintEngineError
from reviewbot_core.models import Category, ChangedFile, Issue, Severity

logger = logging.getLogger(__name__)

LINT_LANGUAGE = "javascript"
DEFAULT_ESLINT_COMMAND = ("eslint",)
DEFAULT_TIMEOUT = 30

RULES: dict = {
    # Errors → high severity
    "no-undef": "error",
    "eqeqeq": ["error", "always"],
    "no-eval": "error",
    "no-implied-eval": "error",
    "semi": ["error", "always"],
    # Warnings → low severity
    "no-unused-vars": "warn",
    "no-console": ["warn", {"allow": ["warn", "error"]}],
    "quotes": ["warn", "single"],
    "no-var": "warn",
    "prefer-const": "warn",
}

_ESLINT_ERROR = 2


def build_eslint_args(eslint_command: Sequence[str], file_path: str) -> list[str]:
    args = [
        *eslint_command,
        "--no-eslintrc",
        "--env",
        "browser,node,es2021",
        "--parser-options",
        "ecmaVersion:latest",
        "--parser-options",
        "sourceType:module",
        "--format",
        "json",
        "--stdin",
        "--stdin-filename",
        file_path,
    ]
    for rule, setting in RULES.items():
        args.extend(["--rule", json.dumps({rule: setting})])
    return args


def run_eslint(
    content: str,
    file_path: str,
    eslint_command: Sequence[str] = DEFAULT_ESLINT_COMMAND,
    timeout: int = DEFAULT_TIMEOUT,
) -> list[dict]:
    """Lint ``content`` and return ESLint's message dicts.

    Raises LintEngineError when ESLint cannot run or its output is unusable.
    Exit code 1 only means lint problems were found and is not a failure.
    """
    # --no-eslintrc and --env are legacy-config flags; ESLint 9 still honours
    # them when flat config is switched off.
    env = {**os.environ, "ESLINT_USE_FLAT_CONFIG": "false"}
    try:
        result = subprocess.run(
            build_eslint_args(eslint_command, file_path),
            input=content,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
        )
    except FileNotFoundError as e:
        raise LintEngineError(f"ESLint executable not found: {eslint_command[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise LintEngineError(f"ESLint timed out after {timeout}s") from e

    if result.returncode not in (0, 1):
        raise LintEngineError(f"ESLint exited with {result.returncode}: {result.stderr.strip()[:300]}")

    try:
        report = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise LintEngineError(f"ESLint produced non-JSON output: {result.stdout[:200]!r}") from e
    if not isinstance(report, list):
        raise LintEngineError("ESLint report is not a list of results")

    return [msg for entry in report if isinstance(entry, dict) for msg in entry.get("messages", [])]


def _message_to_issue(file: ChangedFile, msg: dict) -> Issue | None:
    line = msg.get("line")
    if not isinstance(line, int) or line < 1:
        return None
    rule_id = msg.get("ruleId") or "parser"
    return Issue(
        path=file.path,
        line=line,
        severity=Severity.HIGH if msg.get("severity") == _ESLINT_ERROR else Severity.LOW,
        category=Category.STYLE,
        title=f"Static Analysis: {msg.get('message', '').strip()}",
        description=f"ESLint rule: `{rule_id}`",
        language=LINT_LANGUAGE,
    )


def analyze_lint(
    files: Iterable[ChangedFile],
    eslint_command: Sequence[str] = DEFAULT_ESLINT_COMMAND,
    timeout: int = DEFAULT_TIMEOUT,
) -> list[Issue]:
    issues: list[Issue] = []
    for file in files:
        if not file.content or file.language != LINT_LANGUAGE:
            continue
        try:
            messages = run_eslint(file.content, file.path, eslint_command, timeout)
        except LintEngineError as e:
            logger.error("ESLint error for %s: %s", file.path, e)
            continue
        for msg in messages:
            issue = _message_to_issue(file, msg)
            if issue is not None:
                issues.append(issue)

    logger.info("Static analysis: %d issue(s)", len(issues))
    return issues
