"""Core PR review orchestration.

One pull request event becomes one asyncio task chain:

    fetch diff → parse → fetch contents (concurrently) → run analyzers
    (concurrently) → score → post inline comments → post summary

All state for an event lives in a ReviewContext built for that event; nothing
is cached or shared between events.
"""

from __future__ import annotations

import asyncio
import dataclasses
import fnmatch
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from github import GithubException
from rich.console import Console

from reviewbot_core.errors import ConfigurationError
from reviewbot_core.gh.pull_request import (
    fetch_changed_files,
    fetch_file_content,
    get_pull,
    get_repo,
    post_inline_comments,
    post_summary_comment,
)
from reviewbot_core.models import ChangedFile, Issue
from reviewbot_core.orchestrator import analyze
from reviewbot_core.presenter import (
    DEFAULT_PUBLIC_LINK,
    MAX_INLINE_COMMENTS,
    build_comment_batch,
    build_error_report,
    build_summary,
    count_by_severity,
    recommend,
    risk_level,
)
from reviewbot_core.providers.anthropic import AnthropicProvider
from reviewbot_core.providers.base import CompletionProvider
from reviewbot_core.providers.openai import OpenAIProvider
from reviewbot_core.scoring import calculate_score
from reviewbot_core.utils.code import is_code_file

console = Console()
logger = logging.getLogger(__name__)

PROCESSED_ACTIONS = ("opened", "reopened", "synchronize")
DEFAULT_MAX_FILE_ADDITIONS = 500


@dataclass
class ReviewContext:
    """Everything one event needs to talk to its collaborators.

    Built once per event and passed explicitly; there are no module-level
    clients.
    """

    repo_name: str
    pr_number: int
    repo: object
    pull: object
    head_sha: str
    config: dict
    provider: CompletionProvider | None = None


@dataclass
class ReviewSummary:
    """Result returned by run_review — enough for a caller to report or persist the outcome."""

    repo: str
    pr_number: int
    head_sha: str
    score: int
    risk_level: str
    recommendation: str
    issues: list[Issue] = field(default_factory=list)
    reviewed_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    comments: list[dict] = field(default_factory=list)
    summary_body: str = ""
    reviewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def total_issues(self) -> int:
        return len(self.issues)


def get_provider(config: dict) -> CompletionProvider | None:
    """Build the configured completion provider, or None when AI review cannot run.

    A missing API key or SDK only disables the AI analyzer; the pattern
    analyzers still run.
    """
    model = config["model"]
    if model not in ("anthropic", "openai"):
        raise ValueError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")

    key_name = f"{model}_api_key"
    api_key = config.get(key_name)
    if not api_key:
        logger.warning("%s is not set; AI review is disabled.", key_name.upper())
        return None

    try:
        if model == "anthropic":
            return AnthropicProvider(api_key=api_key, model=config.get("ai_model"))
        return OpenAIProvider(api_key=api_key, base_url=config.get("openai_base_url"), model=config.get("ai_model"))
    except ImportError as e:
        logger.warning("AI review is disabled: %s", e)
        return None


def should_process(event_name: str, payload: dict) -> bool:
    """Return True for pull_request events the pipeline reviews."""
    if event_name == "ping":
        logger.info("Ping received - webhook is configured correctly")
        return False
    if event_name != "pull_request":
        logger.info("Ignoring event: %s", event_name)
        return False
    action = payload.get("action")
    if action not in PROCESSED_ACTIONS:
        logger.info("Skipping pull_request action: %s", action)
        return False
    return True


def _is_excluded(filename: str, patterns: list[str]) -> bool:
    """Return True if filename matches any exclude pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py"
    - fnmatch globs on the basename: "*.lock", "*.min.js"
    - Directory names/prefixes: "migrations/", "tests" (matches any file within that tree)
    """
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        if fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False


def skip_reason(file: ChangedFile, config: dict) -> str | None:
    """Why ``file`` gets no content, or None if it should be fetched."""
    if file.is_deleted:
        return "deleted"
    if file.additions > config.get("max_file_additions", DEFAULT_MAX_FILE_ADDITIONS):
        return f"too large ({file.additions} additions)"
    if not is_code_file(file.path):
        return "not a code file"
    if _is_excluded(file.path, config.get("exclude", [])):
        return "excluded"
    return None


async def attach_contents(context: ReviewContext, files: list[ChangedFile]) -> list[ChangedFile]:
    """Return ``files`` with head-revision content attached where it can be read.

    Fetches run concurrently and fail independently: a file that cannot be
    fetched keeps ``content=None`` and is left out of content-based analysis.
    """

    async def _fetch(file: ChangedFile) -> ChangedFile:
        reason = skip_reason(file, context.config)
        if reason:
            logger.info("Skipping content for %s: %s", file.path, reason)
            return file
        content = await asyncio.to_thread(fetch_file_content, context.repo, file.path, context.head_sha)
        return dataclasses.replace(file, content=content)

    outcomes = await asyncio.gather(*(_fetch(f) for f in files), return_exceptions=True)
    attached = []
    for file, outcome in zip(files, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning("Could not fetch %s: %s", file.path, outcome)
            attached.append(file)
        else:
            attached.append(outcome)
    return attached


def print_shadow_comments(comments: list[dict], summary_body: str) -> None:
    """Print the review to the terminal without posting to GitHub."""
    if not comments:
        console.print("[yellow]Shadow mode: no inline comments generated.[/yellow]")
    else:
        console.print(f"\n[bold]Shadow review — {len(comments)} inline comment(s) (not posted)[/bold]\n")
        for c in comments:
            console.print(f"[bold cyan]{c['path']}[/bold cyan]  line [bold]{c['line']}[/bold]")
            console.print(f"  {c['body']}", markup=False)
            console.print()
    console.rule("Summary")
    console.print(summary_body, markup=False)


async def review_pull_request(context: ReviewContext, shadow: bool = False) -> ReviewSummary | None:
    """Analyze one pull request and post (or print) the results.

    Returns None when the diff contains no reviewable file entries.
    """
    start = time.monotonic()
    files = await asyncio.to_thread(fetch_changed_files, context.pull)
    if not files:
        console.print("[yellow]No code changes detected.[/yellow]")
        return None

    files = await attach_contents(context, files)
    reviewable = [f for f in files if f.content]
    skipped = [f for f in files if not f.content]
    console.print(f"Analyzing {len(reviewable)} file(s) ({len(skipped)} without content)...")

    issues = await analyze(reviewable, context.provider, context.config)

    score = calculate_score(issues, reviewable)
    counts = count_by_severity(issues)
    comments = build_comment_batch(issues, context.config.get("max_inline_comments", MAX_INLINE_COMMENTS))
    summary_body = build_summary(
        issues,
        score,
        reviewed_files=len(reviewable),
        skipped_files=len(skipped),
        elapsed_seconds=time.monotonic() - start,
        public_link=context.config.get("public_link", DEFAULT_PUBLIC_LINK),
    )

    if shadow:
        print_shadow_comments(comments, summary_body)
    else:
        # Summary goes out even when the inline batch fails or is empty.
        await asyncio.to_thread(post_inline_comments, context.repo, context.pull, context.head_sha, comments)
        await asyncio.to_thread(post_summary_comment, context.pull, summary_body)

    console.print(f"[green]Review complete: {len(issues)} issue(s), score {score}/100.[/green]")
    return ReviewSummary(
        repo=context.repo_name,
        pr_number=context.pr_number,
        head_sha=context.head_sha,
        score=score,
        risk_level=risk_level(counts).value,
        recommendation=recommend(score, counts).value,
        issues=issues,
        reviewed_files=[f.path for f in reviewable],
        skipped_files=[f.path for f in skipped],
        comments=comments,
        summary_body=summary_body,
    )


async def run_review(
    repo: str,
    pr_number: int,
    config: dict,
    shadow: bool = False,
    repo_obj=None,
) -> ReviewSummary | None:
    """Run the full pipeline for one pull request.

    Returns None for early exits (draft skip, no file entries). Once the pull
    request is known, any failure is reported on it as a single error comment
    (unless in shadow mode) and then re-raised.
    """
    if repo_obj is None and not config.get("github_token"):
        raise ConfigurationError("GITHUB_TOKEN is not set; cannot fetch or comment on pull requests.")
    this_repo = repo_obj if repo_obj is not None else await asyncio.to_thread(get_repo, repo, config["github_token"])

    try:
        this_pr = await asyncio.to_thread(get_pull, this_repo, pr_number)
    except GithubException:
        raise ValueError(f"PR #{pr_number} not found in {repo}.")

    if this_pr.draft and not config.get("review_draft_prs", False):
        console.print("[yellow]Skipping draft PR. Set review_draft_prs: true in .reviewbot.yml to review drafts.[/yellow]")
        return None

    console.print(f"\nAnalyzing PR #{pr_number} in {repo}")
    try:
        context = ReviewContext(
            repo_name=repo,
            pr_number=pr_number,
            repo=this_repo,
            pull=this_pr,
            head_sha=this_pr.head.sha,
            config=config,
            provider=get_provider(config),
        )
        return await review_pull_request(context, shadow=shadow)
    except Exception as e:
        if not shadow:
            await asyncio.to_thread(post_summary_comment, this_pr, build_error_report(str(e)))
        raise


async def handle_pull_request_event(payload: dict, config: dict, repo_obj=None) -> ReviewSummary | None:
    """Review the pull request named by a validated ``pull_request`` webhook payload.

    Never raises: failures are logged here, and run_review has already left
    an error comment on the pull request when it got that far.
    """
    try:
        repo_name = payload["repository"]["full_name"]
        pr_number = payload["pull_request"]["number"]
    except (KeyError, TypeError):
        logger.error("Malformed pull_request payload; missing repository or pull request number")
        return None

    try:
        return await run_review(repo_name, pr_number, config, repo_obj=repo_obj)
    except Exception:
        logger.exception("Error analyzing %s#%s", repo_name, pr_number)
        return None


def _log_task_result(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.warning("Review task %s was cancelled", task.get_name())
    elif task.exception() is not None:
        logger.error("Review task %s failed", task.get_name(), exc_info=task.exception())


def schedule_pull_request_event(event_name: str, payload: dict, config: dict) -> asyncio.Task | None:
    """Start reviewing an event in the background and return immediately.

    Lets a transport acknowledge the delivery before analysis finishes. Must
    be called from a running event loop; the caller keeps the returned task
    alive until it completes.
    """
    if not should_process(event_name, payload):
        return None
    number = (payload.get("pull_request") or {}).get("number")
    logger.info("Processing PR #%s (%s)", number, payload.get("action"))
    task = asyncio.create_task(handle_pull_request_event(payload, config), name=f"review-pr-{number}")
    task.add_done_callback(_log_task_result)
    return task
